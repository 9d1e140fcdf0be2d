"""rowcue - Mandelbrot rendering with a dynamic row scheduler."""

from rowcue.coordinator import Coordinator, render
from rowcue.errors import InvalidInput, ProtocolError, RowcueError, WorkerCrashed
from rowcue.models import Assignment, RenderResult, RowResult, Terminate, WorkerState
from rowcue.raster import Raster
from rowcue.scheduler import RowScheduler
from rowcue.sequential import render_sequential
from rowcue.transport import LocalTransport, ProcessTransport, Transport

__version__ = "0.1.0"
__all__ = [
    "Coordinator",
    "render",
    "render_sequential",
    "RowScheduler",
    "Raster",
    "Transport",
    "ProcessTransport",
    "LocalTransport",
    "Assignment",
    "Terminate",
    "RowResult",
    "RenderResult",
    "WorkerState",
    "RowcueError",
    "InvalidInput",
    "ProtocolError",
    "WorkerCrashed",
]
