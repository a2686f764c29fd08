"""Tests for environment-based settings."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from compressx.config import Settings, get_settings
from compressx.imaging.pipeline import PipelineConfig


def _settings_from_env(**env: str) -> Settings:
    with patch.dict(os.environ, env, clear=True):
        return get_settings()


class TestSettings:
    def test_defaults(self) -> None:
        settings = _settings_from_env()
        assert settings.port == 8080
        assert settings.max_dimension == 1024
        assert settings.jpeg_quality == 75
        assert settings.background == (255, 255, 255)
        assert settings.resample == "bilinear"

    def test_prefixed_overrides(self) -> None:
        settings = _settings_from_env(
            COMPRESSX_MAX_DIMENSION="512",
            compressx_jpeg_quality="60",
            COMPRESSX_BACKGROUND="[0, 0, 0]",
            COMPRESSX_RESAMPLE="lanczos",
        )
        assert settings.max_dimension == 512
        assert settings.jpeg_quality == 60
        assert settings.background == (0, 0, 0)
        assert settings.resample == "lanczos"

    def test_platform_port_variable(self) -> None:
        assert _settings_from_env(PORT="9000").port == 9000

    def test_prefixed_port_wins(self) -> None:
        assert _settings_from_env(COMPRESSX_PORT="7000", PORT="9000").port == 7000

    def test_port_by_field_name(self) -> None:
        assert Settings(port=1234).port == 1234

    @pytest.mark.parametrize(
        "env",
        [
            {"COMPRESSX_JPEG_QUALITY": "0"},
            {"COMPRESSX_JPEG_QUALITY": "100"},
            {"COMPRESSX_MAX_DIMENSION": "0"},
            {"COMPRESSX_RESAMPLE": "nearest"},
            {"COMPRESSX_MAX_CONCURRENT": "0"},
        ],
    )
    def test_invalid_values_rejected(self, env: dict[str, str]) -> None:
        with pytest.raises(ValidationError):
            _settings_from_env(**env)


class TestPipelineConfigFromSettings:
    def test_maps_every_field(self) -> None:
        settings = Settings(
            max_dimension=300,
            jpeg_quality=50,
            webp_quality=60,
            resample="box",
            background=(1, 2, 3),
            max_image_pixels=1000,
        )
        assert settings.pipeline_config() == PipelineConfig(
            max_dimension=300,
            background=(1, 2, 3),
            jpeg_quality=50,
            webp_quality=60,
            resample="box",
            max_image_pixels=1000,
        )
