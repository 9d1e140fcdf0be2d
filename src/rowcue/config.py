"""Run configuration and input validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from rowcue.errors import InvalidInput
from rowcue.report import DYNAMIC_OUTPUT, SEQUENTIAL_OUTPUT

MIN_DIMENSION = 1
MAX_DIMENSION = 32000  # Bounds the in-memory raster


def default_workers() -> int:
    """One worker per CPU, keeping one for the coordinator."""
    return max((os.cpu_count() or 1) - 1, 0)


@dataclass
class RenderConfig:
    """Configuration for a render run."""

    width: int
    height: int
    workers: int = field(default_factory=default_workers)
    transport: str = "process"
    output: str | None = None     # None = default name for the mode
    sequential: bool = False      # Baseline run, no scheduling
    tui: bool = True
    verbose: bool = False

    def __post_init__(self) -> None:
        validate_dimensions(self.width, self.height)
        if self.workers < 0:
            raise InvalidInput(f"Worker count must be >= 0, got {self.workers}")

    @property
    def output_path(self) -> str:
        if self.output:
            return self.output
        return SEQUENTIAL_OUTPUT if self.sequential else DYNAMIC_OUTPUT


def parse_dimension(text: str) -> int:
    """Parse one image dimension; only plain integers are accepted."""
    try:
        return int(text.strip())
    except ValueError:
        raise InvalidInput(f"Not an integer: {text!r}") from None


def in_bounds(width: int, height: int) -> bool:
    return (
        MIN_DIMENSION <= width <= MAX_DIMENSION
        and MIN_DIMENSION <= height <= MAX_DIMENSION
    )


def validate_dimensions(width: int, height: int) -> None:
    if not in_bounds(width, height):
        raise InvalidInput(
            f"Invalid image dimensions {width}x{height}; "
            f"range is [{MIN_DIMENSION},{MAX_DIMENSION}]"
        )
