"""Image transcoding core.

Pure, synchronous transforms over in-memory buffers. Nothing here performs
I/O or keeps state between calls.
"""

from compressx.imaging.codecs import OutputFormat, decode, sniff
from compressx.imaging.compositor import flatten
from compressx.imaging.errors import DecodeError, EmptyInputError, EncodeError, ImageTooLargeError, PipelineError
from compressx.imaging.grid import PixelGrid
from compressx.imaging.pipeline import EncodedResult, Pipeline, PipelineConfig, build_pipeline, transcode
from compressx.imaging.resampler import bound

__all__ = [
    "DecodeError",
    "EmptyInputError",
    "EncodeError",
    "EncodedResult",
    "ImageTooLargeError",
    "OutputFormat",
    "Pipeline",
    "PipelineConfig",
    "PipelineError",
    "PixelGrid",
    "bound",
    "build_pipeline",
    "decode",
    "flatten",
    "sniff",
    "transcode",
]
