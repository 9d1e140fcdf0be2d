"""The coordinator: drives the row scheduler over a transport."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from rowcue.kernel import compute_row
from rowcue.models import COORDINATOR, Assignment, Message, RenderResult, RowResult
from rowcue.raster import Raster
from rowcue.scheduler import RowScheduler
from rowcue.transport import Transport, make_transport

logger = logging.getLogger(__name__)


class Coordinator:
    """
    Owns the raster and the scheduler; workers only ever see row indices.

    Every worker gets one row to start with. After that, whenever any
    worker hands back a row, the same worker is immediately given the next
    unassigned row, or told to stop when none are left.

    Example:
        transport = ProcessTransport(800, 600, workers=4)
        coordinator = Coordinator(transport, 800, 600)

        @coordinator.on_row
        def on_row(result, elapsed):
            print(f"row {result.row} from worker {result.worker}")

        result = await coordinator.run()
    """

    def __init__(self, transport: Transport | None, width: int, height: int) -> None:
        self.transport = transport
        self.width = width
        self.height = height

        self.scheduler = RowScheduler(height)
        self.raster = Raster(width, height)
        self.rows_per_worker: dict[int, int] = {}

        # Callbacks
        self._on_assign_callback: Callable | None = None
        self._on_row_callback: Callable | None = None

        self._start_time = 0.0

    # --- Event Callbacks ---

    def on_assign(self, func):
        """
        Decorator to register the assignment callback.

        Called with (worker, row) each time a row is handed out.
        """
        self._on_assign_callback = func
        return func

    def on_row(self, func):
        """
        Decorator to register the row callback.

        Called with (result, elapsed) after each row is stored.

        Example:
            @coordinator.on_row
            def on_row(result, elapsed):
                logging.info(f"row {result.row} done at {elapsed:.2f}s")
        """
        self._on_row_callback = func
        return func

    def _emit(self, callback: Callable | None, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Callback %r failed", callback)

    # --- Run ---

    @property
    def workers(self) -> list[int]:
        return self.transport.workers if self.transport is not None else []

    async def run(self) -> RenderResult:
        """Compute every row and return the assembled raster."""
        if not self.workers:
            return self._run_inline()

        await self.transport.start()
        try:
            self._start_time = time.perf_counter()
            await self._distribute()
            elapsed = time.perf_counter() - self._start_time
        finally:
            await self.transport.close()

        logger.info(
            "Rendered %dx%d with %d workers in %.6fs",
            self.width, self.height, len(self.workers), elapsed,
        )
        return self._result(elapsed)

    async def _distribute(self) -> None:
        for worker, message in self.scheduler.prime(self.workers):
            await self._send(worker, message)

        while not self.scheduler.finished:
            result = await self.transport.recv_any()
            self._store(result)
            reply = self.scheduler.complete(result.worker, result.row)
            await self._send(result.worker, reply)

        # Every worker is terminated once the last row is in
        assert len(self.scheduler.terminated) == len(self.workers)

    async def _send(self, worker: int, message: Message) -> None:
        await self.transport.send(worker, message)
        if isinstance(message, Assignment):
            self._emit(self._on_assign_callback, worker, message.row)

    def _store(self, result: RowResult) -> None:
        self.raster.store(result.row, result.pixels)
        self.rows_per_worker[result.worker] = self.rows_per_worker.get(result.worker, 0) + 1
        self._emit(self._on_row_callback, result, time.perf_counter() - self._start_time)

    def _run_inline(self) -> RenderResult:
        """No workers: the coordinator computes every row itself, in order."""
        logger.debug("No workers in pool, computing %d rows inline", self.height)
        self._start_time = time.perf_counter()
        for worker, message in self.scheduler.prime([COORDINATOR]):
            while isinstance(message, Assignment):
                self._emit(self._on_assign_callback, worker, message.row)
                pixels = compute_row(message.row, self.width, self.height)
                self._store(RowResult(worker=worker, row=message.row, pixels=pixels))
                message = self.scheduler.complete(worker, message.row)
        return self._result(time.perf_counter() - self._start_time)

    def _result(self, elapsed: float) -> RenderResult:
        return RenderResult(
            raster=self.raster,
            elapsed=elapsed,
            assignments={row: worker for row, worker in self.scheduler.assignments},
            rows_per_worker=dict(self.rows_per_worker),
        )


def render(
    width: int,
    height: int,
    *,
    workers: int = 0,
    transport: str = "process",
) -> RenderResult:
    """Render a full image with the dynamic row scheduler.

    With ``workers=0`` the rows are computed in the calling process.
    """
    coordinator = Coordinator(make_transport(transport, width, height, workers), width, height)
    return asyncio.run(coordinator.run())
