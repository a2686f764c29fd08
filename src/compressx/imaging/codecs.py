"""Format-specific decoders and encoders.

Decoders are chosen by sniffing the leading signature bytes of the input,
never by a client-supplied content type. Encoders are chosen explicitly by
:class:`OutputFormat`. Both sides are backed by Pillow.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from PIL import Image

from compressx.imaging.errors import DecodeError, EncodeError, ImageTooLargeError
from compressx.imaging.grid import PixelGrid

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class ImageDecoder(Protocol):
    """Protocol for a single input format."""

    @property
    def name(self) -> str:
        """Return the format identifier string."""
        ...

    def matches(self, data: bytes) -> bool:
        """Return True if ``data`` starts with this format's signature."""
        ...

    def decode(self, data: bytes, max_image_pixels: int | None = None) -> PixelGrid:
        """Decode ``data`` into an RGB or RGBA pixel grid.

        Raises:
            DecodeError: If the bitstream is truncated or corrupt.
            ImageTooLargeError: If the image exceeds ``max_image_pixels``.
        """
        ...


class ImageEncoder(Protocol):
    """Protocol for a single output format."""

    @property
    def media_type(self) -> str:
        """Return the media type of the produced bytes."""
        ...

    def encode(self, grid: PixelGrid) -> bytes:
        """Serialize ``grid``.

        Raises:
            EncodeError: If the grid cannot be written in this format.
        """
        ...


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _prefix(*signatures: bytes) -> Callable[[bytes], bool]:
    return lambda data: data.startswith(signatures)


def _is_webp(data: bytes) -> bool:
    return data[:4] == b"RIFF" and data[8:12] == b"WEBP"


@dataclass(frozen=True)
class PillowDecoder:
    """Decodes one Pillow-supported format, refusing any other."""

    name: str
    pillow_format: str
    signature: Callable[[bytes], bool]

    def matches(self, data: bytes) -> bool:
        return self.signature(data)

    def decode(self, data: bytes, max_image_pixels: int | None = None) -> PixelGrid:
        try:
            image = Image.open(io.BytesIO(data), formats=[self.pillow_format])
        except Image.DecompressionBombError as exc:
            raise ImageTooLargeError(f"{self.name} rejected by Pillow size guard: {exc}") from exc
        except Exception as exc:
            raise DecodeError(f"Unreadable {self.name} header: {exc}") from exc

        with image:
            width, height = image.size
            source_mode = image.mode
            if max_image_pixels is not None and width * height > max_image_pixels:
                raise ImageTooLargeError.for_size(width, height, max_image_pixels)
            if width <= 0 or height <= 0:
                raise DecodeError(f"Invalid {self.name} dimensions {width}x{height}")

            try:
                image.load()
                # has_transparency_data covers alpha bands as well as palette and
                # grayscale images that carry a transparency key.
                mode = "RGBA" if image.has_transparency_data else "RGB"
                converted = image if image.mode == mode else image.convert(mode)
                grid = PixelGrid.from_image(converted)
            except Exception as exc:
                raise DecodeError(f"Corrupt {self.name} data: {exc}") from exc

        logger.debug("Decoded %s %dx%d (source mode %s)", self.name, width, height, source_mode)
        return grid


# TGA carries no leading signature, so it cannot be sniffed and is not listed.
DECODERS: tuple[ImageDecoder, ...] = (
    PillowDecoder("png", "PNG", _prefix(b"\x89PNG\r\n\x1a\n")),
    PillowDecoder("jpeg", "JPEG", _prefix(b"\xff\xd8\xff")),
    PillowDecoder("gif", "GIF", _prefix(b"GIF87a", b"GIF89a")),
    PillowDecoder("bmp", "BMP", _prefix(b"BM")),
    PillowDecoder("tiff", "TIFF", _prefix(b"II*\x00", b"MM\x00*")),
    PillowDecoder("webp", "WEBP", _is_webp),
    PillowDecoder("ico", "ICO", _prefix(b"\x00\x00\x01\x00")),
    PillowDecoder("pnm", "PPM", _prefix(b"P1", b"P2", b"P3", b"P4", b"P5", b"P6")),
    PillowDecoder("qoi", "QOI", _prefix(b"qoif")),
)


def sniff(data: bytes) -> ImageDecoder | None:
    """Return the decoder whose signature matches ``data``, if any."""
    for decoder in DECODERS:
        if decoder.matches(data):
            return decoder
    return None


def decode(data: bytes, max_image_pixels: int | None = None) -> PixelGrid:
    """Sniff the input format and decode ``data`` into a pixel grid.

    Raises:
        DecodeError: If no supported signature matches or decoding fails.
    """
    decoder = sniff(data)
    if decoder is None:
        raise DecodeError("Unrecognized image signature")
    return decoder.decode(data, max_image_pixels)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class OutputFormat(StrEnum):
    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def media_type(self) -> str:
        return f"image/{self.value}"


def _save(image: Image.Image, pillow_format: str, **params: object) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=pillow_format, **params)
    return buffer.getvalue()


@dataclass(frozen=True)
class JpegEncoder:
    """Baseline (non-progressive) lossy JPEG at a fixed quality."""

    quality: int = 75
    media_type: str = OutputFormat.JPEG.media_type

    def encode(self, grid: PixelGrid) -> bytes:
        if grid.has_alpha:
            raise EncodeError("JPEG cannot store an alpha channel; flatten the image first")
        try:
            return _save(grid.to_image(), "JPEG", quality=self.quality, progressive=False, optimize=False)
        except Exception as exc:
            raise EncodeError(f"JPEG encoding failed: {exc}") from exc


@dataclass(frozen=True)
class WebpEncoder:
    """Lossy WebP; an alpha channel in the grid is kept."""

    quality: int = 80
    media_type: str = OutputFormat.WEBP.media_type

    def encode(self, grid: PixelGrid) -> bytes:
        try:
            return _save(grid.to_image(), "WEBP", quality=self.quality, lossless=False)
        except Exception as exc:
            raise EncodeError(f"WebP encoding failed: {exc}") from exc
