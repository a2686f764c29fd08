"""In-memory pixel grid passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

if TYPE_CHECKING:
    from numpy.typing import NDArray

_MODES = {3: "RGB", 4: "RGBA"}


@dataclass(frozen=True)
class PixelGrid:
    """A decoded image: HxWxC uint8 pixels in row-major order, C is 3 (RGB) or 4 (RGBA)."""

    pixels: NDArray[np.uint8]

    def __post_init__(self) -> None:
        pixels = self.pixels
        if pixels.dtype != np.uint8:
            raise ValueError(f"Pixel grid must be uint8, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] not in _MODES:
            raise ValueError(f"Pixel grid must have shape (H, W, 3|4), got {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("Pixel grid dimensions must be positive")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    @property
    def size(self) -> tuple[int, int]:
        """Return ``(width, height)``."""
        return self.width, self.height

    @property
    def mode(self) -> str:
        """Pillow mode name matching the channel layout."""
        return _MODES[self.channels]

    @classmethod
    def from_image(cls, image: Image.Image) -> PixelGrid:
        """Build a grid from a Pillow image already in RGB or RGBA mode."""
        if image.mode not in _MODES.values():
            raise ValueError(f"Unsupported image mode for pixel grid: {image.mode}")
        return cls(np.array(image, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        """Return a Pillow image sharing this grid's layout."""
        return Image.fromarray(self.pixels)
