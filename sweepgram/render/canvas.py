"""Typed RGBA pixel buffer backing the rendered spectrogram."""

from __future__ import annotations

import numpy as np  # type: ignore
from PIL import Image  # type: ignore

CHANNELS = 4


class PixelBuffer:
    """Height x width x RGBA uint8 buffer, initialized to opaque black.

    Writes only touch the RGB channels. Row-block writes over disjoint row
    ranges may run concurrently.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas must be non-empty, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.pixels = np.zeros((self.height, self.width, CHANNELS), dtype=np.uint8)
        self.pixels[..., 3] = 255

    def write_rows(self, y0: int, rgb_rows: np.ndarray) -> None:
        """Copy a (rows, width, 3) uint8 block into rows ``y0 .. y0 + rows``."""
        rows = rgb_rows.shape[0]
        if rgb_rows.shape[1:] != (self.width, 3):
            raise ValueError(f"row block shape {rgb_rows.shape} does not fit width {self.width}")
        if y0 < 0 or y0 + rows > self.height:
            raise IndexError(f"rows {y0}..{y0 + rows} outside canvas height {self.height}")
        self.pixels[y0 : y0 + rows, :, :3] = rgb_rows

    def to_image(self) -> Image.Image:
        """Return an 8-bit RGB PIL image of the buffer."""
        return Image.fromarray(np.ascontiguousarray(self.pixels[..., :3]))
