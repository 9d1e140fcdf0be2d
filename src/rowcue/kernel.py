"""Pixel math: map a pixel to the complex plane and run the escape test.

Two paths are provided. The scalar functions work one pixel at a time and
serve as the reference. ``compute_row`` evaluates a whole row with numpy
and is what workers run. Both use the same floating point operation order,
so their output is byte-identical.
"""

from __future__ import annotations

import numpy as np

RADIUS = 2.0
MAX_ITER = 256
ESCAPE = 4.0  # |z|^2 threshold
GREY_STRETCH = 35
GREY_LEVELS = 256


def map_pixel(row: int, col: int, width: int, height: int, radius: float = RADIUS) -> complex:
    """Map pixel (row, col) to a point in the complex plane.

    Both axes are scaled by a factor derived from ``width`` only, so
    non-square images come out stretched vertically.
    """
    scale = radius * radius / width
    return complex((col - width / radius) * scale, (row - height / radius) * scale)


def escape_count(c: complex, max_iter: int = MAX_ITER) -> int:
    """Iterations of z <- z^2 + c until |z|^2 >= 4, capped at ``max_iter``.

    The first iteration always runs, so the result is in [1, max_iter].
    """
    cr, ci = c.real, c.imag
    zr = zi = 0.0
    for count in range(1, max_iter + 1):
        t = zr * zr - zi * zi + cr
        zi = 2.0 * zr * zi + ci
        zr = t
        if zr * zr + zi * zi >= ESCAPE:
            return count
    return max_iter


def shade(count: int) -> int:
    """Grayscale byte for an iteration count."""
    return (count * GREY_STRETCH) % GREY_LEVELS


def pixel_value(row: int, col: int, width: int, height: int) -> int:
    """Grayscale byte for one pixel, computed with the scalar path."""
    return shade(escape_count(map_pixel(row, col, width, height)))


def map_row(row: int, width: int, height: int, radius: float = RADIUS) -> tuple[np.ndarray, np.ndarray]:
    """Real and imaginary parts for every column of ``row``."""
    scale = radius * radius / width
    cols = np.arange(width, dtype=np.float64)
    real = (cols - width / radius) * scale
    imag = np.full(width, (row - height / radius) * scale, dtype=np.float64)
    return real, imag


def escape_counts(real: np.ndarray, imag: np.ndarray, max_iter: int = MAX_ITER) -> np.ndarray:
    """Vectorised ``escape_count`` over 1-D arrays of points."""
    n = real.shape[0]
    counts = np.zeros(n, dtype=np.int32)

    # Only points that have not escaped are carried forward
    live = np.arange(n)
    zr = np.zeros(n)
    zi = np.zeros(n)
    cr = np.asarray(real, dtype=np.float64)
    ci = np.asarray(imag, dtype=np.float64)

    for _ in range(max_iter):
        if live.size == 0:
            break
        t = zr * zr - zi * zi + cr
        zi = 2.0 * zr * zi + ci
        zr = t
        counts[live] += 1

        keep = zr * zr + zi * zi < ESCAPE
        live, zr, zi, cr, ci = live[keep], zr[keep], zi[keep], cr[keep], ci[keep]

    return counts


def shade_array(counts: np.ndarray) -> np.ndarray:
    """Vectorised ``shade``."""
    return ((counts * GREY_STRETCH) % GREY_LEVELS).astype(np.uint8)


def compute_row(row: int, width: int, height: int) -> bytes:
    """Compute the grayscale bytes of one full image row."""
    real, imag = map_row(row, width, height)
    return shade_array(escape_counts(real, imag)).tobytes()
