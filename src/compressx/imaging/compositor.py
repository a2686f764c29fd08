"""Alpha flattening onto an opaque solid background."""

from __future__ import annotations

import numpy as np

from compressx.imaging.grid import PixelGrid

WHITE: tuple[int, int, int] = (255, 255, 255)


def flatten(grid: PixelGrid, background: tuple[int, int, int] = WHITE) -> PixelGrid:
    """Composite an RGBA grid over ``background`` and drop the alpha channel.

    Each channel is blended as ``(src * a + bg * (255 - a)) / 255`` in integer
    arithmetic, rounded half up. Grids without alpha are returned unchanged.
    """
    if not grid.has_alpha:
        return grid

    pixels = grid.pixels.astype(np.uint32)
    rgb = pixels[..., :3]
    alpha = pixels[..., 3:4]
    bg = np.asarray(background, dtype=np.uint32)

    blended = (rgb * alpha + bg * (255 - alpha) + 127) // 255
    return PixelGrid(blended.astype(np.uint8))
