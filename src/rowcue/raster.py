"""In-memory raster assembled from finished rows."""

from __future__ import annotations

from typing import Iterator

import numpy as np

from rowcue.errors import ProtocolError


class Raster:
    """
    A width x height grid of grayscale bytes.

    Stored as one flat row-major buffer. Rows are written whole, exactly
    once each, in any order.

    Example:
        raster = Raster(4, 2)
        raster.store(1, b"\\x00\\x01\\x02\\x03")
        raster.store(0, b"\\x04\\x05\\x06\\x07")
        assert raster.complete
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"Invalid raster size: {width}x{height}")
        self.width = width
        self.height = height
        self._buffer = bytearray(width * height)
        self._filled = bytearray(height)  # 1 once a row is stored
        self._count = 0

    def store(self, row: int, pixels: bytes) -> None:
        """Write one complete row at its index."""
        if not 0 <= row < self.height:
            raise ProtocolError(f"Row {row} outside raster of height {self.height}")
        if len(pixels) != self.width:
            raise ProtocolError(
                f"Row {row} has {len(pixels)} pixels, expected {self.width}"
            )
        if self._filled[row]:
            raise ProtocolError(f"Row {row} delivered twice")

        start = row * self.width
        self._buffer[start:start + self.width] = pixels
        self._filled[row] = 1
        self._count += 1

    @property
    def filled(self) -> int:
        """Number of rows stored so far."""
        return self._count

    @property
    def complete(self) -> bool:
        return self._count == self.height

    def missing(self) -> list[int]:
        """Rows not stored yet."""
        return [r for r in range(self.height) if not self._filled[r]]

    def row(self, row: int) -> bytes:
        start = row * self.width
        return bytes(self._buffer[start:start + self.width])

    def rows(self) -> Iterator[bytes]:
        for r in range(self.height):
            yield self.row(r)

    def to_array(self) -> np.ndarray:
        """Read-only (height, width) uint8 view of the buffer."""
        array = np.frombuffer(bytes(self._buffer), dtype=np.uint8)
        return array.reshape(self.height, self.width)

    def __getitem__(self, index: tuple[int, int]) -> int:
        row, col = index
        return self._buffer[row * self.width + col]

    def __bytes__(self) -> bytes:
        return bytes(self._buffer)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self._buffer == other._buffer
        )

    def __repr__(self) -> str:
        return f"Raster({self.width}x{self.height}, filled={self._count})"
