"""Environment-based configuration for CompressX."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from compressx.imaging.pipeline import PipelineConfig


class Settings(BaseSettings):
    """Application settings loaded from COMPRESSX_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COMPRESSX_",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(default=8080, validation_alias=AliasChoices("COMPRESSX_PORT", "PORT"))
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Pipeline
    max_dimension: int = Field(default=1024, ge=1)
    jpeg_quality: int = Field(default=75, ge=1, le=95)
    webp_quality: int = Field(default=80, ge=0, le=100)
    resample: Literal["box", "bilinear", "hamming", "bicubic", "lanczos"] = "bilinear"
    background: tuple[int, int, int] = (255, 255, 255)

    # Concurrency
    max_concurrent: int = Field(default=4, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=64_000_000, ge=1)
    max_file_size: int = Field(default=52_428_800, ge=1)

    def pipeline_config(self) -> PipelineConfig:
        """Return the transcoding parameters derived from these settings."""
        return PipelineConfig(
            max_dimension=self.max_dimension,
            background=self.background,
            jpeg_quality=self.jpeg_quality,
            webp_quality=self.webp_quality,
            resample=self.resample,
            max_image_pixels=self.max_image_pixels,
        )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
