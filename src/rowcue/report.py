"""Report timing and write the raster to an image file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from PIL import Image

from rowcue.models import RenderResult
from rowcue.raster import Raster

logger = logging.getLogger(__name__)

DYNAMIC_OUTPUT = "dynamic.pgm"
SEQUENTIAL_OUTPUT = "sequential.pgm"


def format_elapsed(seconds: float) -> str:
    return f"{seconds:.6f}"


def write_image(path: str | Path, raster: Raster) -> bool:
    """Write a single-channel grayscale image. Returns False on failure.

    The format follows the file extension; ``.pgm`` gives a binary PGM.
    """
    try:
        image = Image.frombytes("L", (raster.width, raster.height), bytes(raster))
        image.save(path)
    except (OSError, ValueError) as e:
        logger.warning("Could not write %s: %s", path, e)
        return False
    return True


def report(
    result: RenderResult,
    path: str | Path,
    out: Callable[[str], None] = print,
) -> bool:
    """Print the computation time, then write the image.

    A failed write is reported but does not fail the run.
    """
    out(f"Set calculation took {format_elapsed(result.elapsed)}s.")
    out(f"Writing image to file '{path}'")

    if write_image(path, result.raster):
        out("SUCCESS: image written to file.")
        return True
    out("FAILED: image NOT written to file.")
    return False
