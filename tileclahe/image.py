"""Single-channel image type and the tiling constants used by CLAHE."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

TILE_SIZE = 32
"""Width and height of the square tiles the image is divided into."""

RELATIVE_CONTRAST_LIMIT = 0.015
"""Fraction of a tile's pixels that a single histogram bin may hold."""

PIXEL_RANGE = 256
"""Number of values a pixel can take."""

HALF_TILE_SIZE = round(TILE_SIZE / 2)
TILE_PIXELS = TILE_SIZE * TILE_SIZE
ABSOLUTE_CONTRAST_LIMIT = int(TILE_PIXELS * RELATIVE_CONTRAST_LIMIT)
PIXEL_MAX = PIXEL_RANGE - 1


@dataclass(frozen=True)
class Image:
    """A greyscale image stored row by row, one byte per pixel, without stride."""

    data: bytes
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"image dimensions must be non-negative, got {self.width}x{self.height}"
            )
        data = bytes(self.data)
        if len(data) != self.width * self.height:
            raise ValueError(
                f"expected {self.width * self.height} bytes for a "
                f"{self.width}x{self.height} image, got {len(data)}"
            )
        object.__setattr__(self, "data", data)

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[int]]) -> "Image":
        """Build an image from rows of pixel values in 0..255, top to bottom."""
        packed = [bytes(row) for row in rows]
        width = len(packed[0]) if packed else 0
        if any(len(row) != width for row in packed):
            raise ValueError("all rows must have the same length")
        return cls(b"".join(packed), width, len(packed))

    def tiles_x(self) -> int:
        """Number of whole tiles across the image."""
        return self.width // TILE_SIZE

    def tiles_y(self) -> int:
        """Number of whole tiles down the image."""
        return self.height // TILE_SIZE

    def rows(self) -> list[list[int]]:
        """Pixel values as a list of rows, top to bottom."""
        return [
            list(self.data[start:start + self.width])
            for start in range(0, self.width * self.height, self.width or 1)
        ] if self.width else [[] for _ in range(self.height)]