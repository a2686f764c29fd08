"""Tests for bounded downscaling."""

from __future__ import annotations

import numpy as np
import pytest

from compressx.imaging.grid import PixelGrid
from compressx.imaging.resampler import bound, scaled_size


def _grid(width: int, height: int, channels: int = 3, value: int = 128) -> PixelGrid:
    return PixelGrid(np.full((height, width, channels), value, dtype=np.uint8))


def _checkerboard(size: int) -> PixelGrid:
    yy, xx = np.indices((size, size))
    board = np.where((xx + yy) % 2 == 0, 0, 255).astype(np.uint8)
    return PixelGrid(np.repeat(board[..., None], 3, axis=2))


class TestScaledSize:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            ((2000, 1000), (1024, 512)),
            ((3000, 1000), (1024, 341)),
            ((1000, 3000), (341, 1024)),
            ((4096, 4096), (1024, 1024)),
            ((5000, 1), (1024, 1)),
            ((1024, 1024), (1024, 1024)),
            ((800, 600), (800, 600)),
        ],
    )
    def test_fits_bound(self, size: tuple[int, int], expected: tuple[int, int]) -> None:
        assert scaled_size(*size, 1024) == expected

    def test_shorter_side_follows_rounded_ratio(self) -> None:
        width, height = 2500, 1337
        new_w, new_h = scaled_size(width, height, 1024)
        assert new_w == 1024
        assert new_h == round(height * 1024 / width)


class TestBound:
    def test_within_bound_is_identity(self) -> None:
        grid = _grid(640, 480)
        assert bound(grid, 1024) is grid

    def test_exactly_at_bound_is_identity(self) -> None:
        grid = _grid(1024, 300)
        assert bound(grid, 1024) is grid

    def test_never_upscales(self) -> None:
        assert bound(_grid(10, 20), 1024).size == (10, 20)

    def test_landscape_downscale(self) -> None:
        assert bound(_grid(2048, 1536), 1024).size == (1024, 768)

    def test_portrait_downscale(self) -> None:
        assert bound(_grid(900, 1800), 1024).size == (512, 1024)

    def test_alpha_is_kept(self) -> None:
        out = bound(_grid(2000, 2000, channels=4), 1024)
        assert out.has_alpha
        assert out.size == (1024, 1024)

    def test_custom_bound(self) -> None:
        assert bound(_grid(400, 200), 100).size == (100, 50)

    @pytest.mark.parametrize("resample", ["box", "bilinear", "lanczos"])
    def test_smoothing_averages_fine_detail(self, resample: str) -> None:
        out = bound(_checkerboard(2048), 1024, resample)
        centre = out.pixels[100:900, 100:900]
        assert centre.min() > 100
        assert centre.max() < 155

    def test_nearest_neighbour_rejected(self) -> None:
        with pytest.raises(ValueError, match="resample"):
            bound(_grid(2000, 1000), 1024, "nearest")

    def test_non_positive_bound_rejected(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            bound(_grid(10, 10), 0)
