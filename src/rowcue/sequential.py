"""Single-threaded baseline: every pixel through the scalar kernel, no scheduling."""

from __future__ import annotations

import time

from rowcue.kernel import pixel_value
from rowcue.models import COORDINATOR, RenderResult
from rowcue.raster import Raster


def render_sequential(width: int, height: int) -> RenderResult:
    """Reference render used to check the distributed one."""
    raster = Raster(width, height)
    start = time.perf_counter()
    for row in range(height):
        raster.store(row, bytes(pixel_value(row, col, width, height) for col in range(width)))
    elapsed = time.perf_counter() - start

    return RenderResult(
        raster=raster,
        elapsed=elapsed,
        assignments={row: COORDINATOR for row in range(height)},
        rows_per_worker={COORDINATOR: height} if height else {},
    )
