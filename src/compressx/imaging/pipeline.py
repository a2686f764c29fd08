"""Transcoding pipeline: decode -> [flatten] -> bound -> encode.

Each output format has its own ordered stage list built by
:func:`build_pipeline`; the JPEG pipeline flattens alpha before scaling, the
WebP pipeline keeps it. Decoder and resampler are shared by both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from compressx.imaging import codecs
from compressx.imaging.codecs import JpegEncoder, OutputFormat, WebpEncoder
from compressx.imaging.compositor import WHITE, flatten
from compressx.imaging.errors import EmptyInputError
from compressx.imaging.resampler import DEFAULT_MAX_DIMENSION, RESAMPLE_FILTERS, bound

if TYPE_CHECKING:
    from compressx.imaging.codecs import ImageEncoder
    from compressx.imaging.grid import PixelGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """Process-wide transcoding parameters."""

    max_dimension: int = DEFAULT_MAX_DIMENSION
    background: tuple[int, int, int] = WHITE
    jpeg_quality: int = 75
    webp_quality: int = 80
    resample: str = "bilinear"
    max_image_pixels: int | None = 64_000_000

    def __post_init__(self) -> None:
        if self.max_dimension < 1:
            raise ValueError(f"max_dimension must be positive, got {self.max_dimension}")
        if self.resample not in RESAMPLE_FILTERS:
            raise ValueError(f"resample must be one of {sorted(RESAMPLE_FILTERS)}, got {self.resample!r}")
        if len(self.background) != 3 or any(not 0 <= c <= 255 for c in self.background):
            raise ValueError(f"background must be three 0-255 channel values, got {self.background}")


@dataclass(frozen=True)
class EncodedResult:
    """Encoded output bytes tagged with their media type."""

    data: bytes
    media_type: str
    width: int
    height: int


class Stage(Protocol):
    """A pure grid-to-grid transform."""

    @property
    def name(self) -> str: ...

    def __call__(self, grid: PixelGrid) -> PixelGrid: ...


@dataclass(frozen=True)
class FlattenStage:
    background: tuple[int, int, int] = WHITE
    name: str = "flattened"

    def __call__(self, grid: PixelGrid) -> PixelGrid:
        return flatten(grid, self.background)


@dataclass(frozen=True)
class BoundStage:
    max_dim: int = DEFAULT_MAX_DIMENSION
    resample: str = "bilinear"
    name: str = "scaled"

    def __call__(self, grid: PixelGrid) -> PixelGrid:
        return bound(grid, self.max_dim, self.resample)


@dataclass(frozen=True)
class Pipeline:
    """An ordered stage list between a shared decoder and one encoder."""

    stages: tuple[Stage, ...]
    encoder: ImageEncoder
    max_image_pixels: int | None = None

    def run(self, raw: bytes) -> EncodedResult:
        """Run every stage on ``raw``; the first failure aborts the whole run.

        Raises:
            EmptyInputError: If ``raw`` is empty.
            DecodeError: If ``raw`` is not a supported, intact image.
            EncodeError: If the prepared grid cannot be serialized.
        """
        if not raw:
            raise EmptyInputError

        grid = codecs.decode(raw, self.max_image_pixels)
        logger.debug("decoded: %dx%d, %d channels", grid.width, grid.height, grid.channels)

        for stage in self.stages:
            grid = stage(grid)
            logger.debug("%s: %dx%d, %d channels", stage.name, grid.width, grid.height, grid.channels)

        data = self.encoder.encode(grid)
        logger.debug("encoded: %d bytes as %s", len(data), self.encoder.media_type)
        return EncodedResult(data=data, media_type=self.encoder.media_type, width=grid.width, height=grid.height)


def build_pipeline(target: OutputFormat, config: PipelineConfig | None = None) -> Pipeline:
    """Return the stage configuration for ``target``."""
    config = config or PipelineConfig()
    scale = BoundStage(config.max_dimension, config.resample)

    if target == OutputFormat.JPEG:
        return Pipeline(
            stages=(FlattenStage(config.background), scale),
            encoder=JpegEncoder(config.jpeg_quality),
            max_image_pixels=config.max_image_pixels,
        )
    if target == OutputFormat.WEBP:
        return Pipeline(
            stages=(scale,),
            encoder=WebpEncoder(config.webp_quality),
            max_image_pixels=config.max_image_pixels,
        )
    raise ValueError(f"Unsupported output format: {target}")


def transcode(raw: bytes, target: OutputFormat, config: PipelineConfig | None = None) -> EncodedResult:
    """Decode, normalize and re-encode ``raw`` as ``target``."""
    return build_pipeline(target, config).run(raw)
