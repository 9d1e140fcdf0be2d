"""Render runner for the rowcue CLI.

This module wires a Coordinator to a RenderState, decoupled from display.
The display polls state to render.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from rowcue.config import RenderConfig
from rowcue.coordinator import Coordinator
from rowcue.models import RenderResult
from rowcue.sequential import render_sequential
from rowcue.transport import make_transport

if TYPE_CHECKING:
    from rowcue_cli.display import RenderState

logger = logging.getLogger(__name__)


class RenderRunner:
    """Runs a render and updates state for display.

    Usage:
        config = RenderConfig(width=800, height=600, workers=4)
        state = RenderState()
        runner = RenderRunner(config, state)

        # In your event loop:
        result = await runner.run()
    """

    def __init__(self, config: RenderConfig, state: RenderState):
        self.config = config
        self.state = state

    def _build_coordinator(self) -> Coordinator:
        config = self.config
        transport = make_transport(config.transport, config.width, config.height, config.workers)
        coordinator = Coordinator(transport, config.width, config.height)

        @coordinator.on_assign
        def on_assign(worker, row):
            self.state.row_assigned(worker, row)

        @coordinator.on_row
        def on_row(result, elapsed):
            self.state.row_completed(result.worker, result.row, elapsed)

        return coordinator

    async def run(self) -> RenderResult:
        """Run the render to completion."""
        config = self.config
        self.state.width = config.width
        self.state.height = config.height
        self.state.transport = config.transport

        if config.sequential:
            # Blocking by nature; keep the loop free for the display
            result = await asyncio.to_thread(render_sequential, config.width, config.height)
            self.state.assigned = self.state.completed = config.height
            self.state.worker(0).rows_done = config.height
        else:
            coordinator = self._build_coordinator()
            for worker in coordinator.workers:
                self.state.worker(worker)
            result = await coordinator.run()

        self.state.finish(result.elapsed)
        return result
