"""Bounded-box downscaling."""

from __future__ import annotations

import logging

from PIL import Image

from compressx.imaging.grid import PixelGrid

logger = logging.getLogger(__name__)

RESAMPLE_FILTERS: dict[str, Image.Resampling] = {
    "box": Image.Resampling.BOX,
    "bilinear": Image.Resampling.BILINEAR,
    "hamming": Image.Resampling.HAMMING,
    "bicubic": Image.Resampling.BICUBIC,
    "lanczos": Image.Resampling.LANCZOS,
}

DEFAULT_MAX_DIMENSION = 1024


def scaled_size(width: int, height: int, max_dim: int) -> tuple[int, int]:
    """Return ``(width, height)`` shrunk uniformly so the longer side is at most ``max_dim``."""
    longest = max(width, height)
    if longest <= max_dim:
        return width, height
    scale = max_dim / longest
    if width >= height:
        return max_dim, max(1, round(height * scale))
    return max(1, round(width * scale)), max_dim


def bound(grid: PixelGrid, max_dim: int = DEFAULT_MAX_DIMENSION, resample: str = "bilinear") -> PixelGrid:
    """Downscale ``grid`` to fit a ``max_dim`` square, preserving aspect ratio.

    Grids already within the bound are returned as-is; nothing is ever upscaled.

    Raises:
        ValueError: If ``max_dim`` is not positive or ``resample`` is not a smoothing filter.
    """
    if max_dim < 1:
        raise ValueError(f"max_dim must be positive, got {max_dim}")
    try:
        resample_filter = RESAMPLE_FILTERS[resample]
    except KeyError:
        raise ValueError(f"Unsupported resample filter: {resample}") from None

    new_size = scaled_size(grid.width, grid.height, max_dim)
    if new_size == grid.size:
        return grid

    # Pillow premultiplies alpha while resizing RGBA, so transparent pixels do not bleed.
    resized = grid.to_image().resize(new_size, resample_filter)
    logger.debug("Resized %dx%d -> %dx%d (%s)", grid.width, grid.height, *new_size, resample)
    return PixelGrid.from_image(resized)
