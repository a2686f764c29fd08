"""Failure classes raised by the transcoding pipeline."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every classified pipeline failure."""


class EmptyInputError(PipelineError):
    """No bytes were supplied."""

    def __init__(self) -> None:
        super().__init__("No data")


class DecodeError(PipelineError):
    """Input bytes are not a recognizable, intact image."""


class ImageTooLargeError(DecodeError):
    """Decoded pixel count exceeds the configured limit.

    ``width`` and ``height`` are None when Pillow's own decompression-bomb
    guard fired before the header size was handed back.
    """

    def __init__(self, message: str, *, width: int | None = None, height: int | None = None) -> None:
        self.width = width
        self.height = height
        super().__init__(message)

    @classmethod
    def for_size(cls, width: int, height: int, limit: int) -> ImageTooLargeError:
        return cls(
            f"Image is {width}x{height} ({width * height} pixels), limit is {limit}",
            width=width,
            height=height,
        )


class EncodeError(PipelineError):
    """A prepared pixel grid could not be serialized into the target format."""
