"""CompressX: normalize uploaded images into size-bounded JPEG or WebP."""

__version__ = "0.1.0"
