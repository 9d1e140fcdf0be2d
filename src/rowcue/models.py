"""Core data models for rowcue."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from rowcue.raster import Raster

# Worker ids start at 1; 0 is the coordinator itself.
COORDINATOR = 0


class WorkerState(str, Enum):
    """Possible states for a worker, as seen by the coordinator."""

    IDLE = "idle"
    BUSY = "busy"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Assignment:
    """Coordinator -> worker: compute this row."""

    row: int


@dataclass(frozen=True)
class Terminate:
    """Coordinator -> worker: no rows left, exit."""


Message = Union[Assignment, Terminate]


@dataclass(frozen=True)
class RowResult:
    """Worker -> coordinator: one finished row."""

    worker: int
    row: int
    pixels: bytes


@dataclass
class RenderResult:
    """Outcome of a full render."""

    raster: Raster
    elapsed: float  # Seconds spent computing, excludes I/O
    assignments: dict[int, int] = field(default_factory=dict)  # row -> worker
    rows_per_worker: dict[int, int] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height
