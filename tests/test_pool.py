"""Tests for the transcoding thread pool."""

from __future__ import annotations

import asyncio
import io
import threading
from unittest.mock import patch

import pytest
from PIL import Image

from compressx.imaging.codecs import OutputFormat
from compressx.imaging.errors import DecodeError
from compressx.imaging.pipeline import EncodedResult, PipelineConfig
from compressx.pool import TranscodePool


def _png(size: tuple[int, int]) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (30, 60, 90)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestTranscodePool:
    async def test_transcodes_upload(self) -> None:
        pool = TranscodePool(2)
        try:
            result = await pool.transcode(_png((40, 20)), OutputFormat.JPEG, PipelineConfig())
            assert result.media_type == "image/jpeg"
            assert (result.width, result.height) == (40, 20)
        finally:
            pool.shutdown()

    async def test_config_is_passed_through(self) -> None:
        pool = TranscodePool(1)
        try:
            result = await pool.transcode(_png((400, 100)), OutputFormat.WEBP, PipelineConfig(max_dimension=100))
            assert (result.width, result.height) == (100, 25)
        finally:
            pool.shutdown()

    async def test_runs_off_the_event_loop_thread(self) -> None:
        seen: list[threading.Thread] = []

        def _record(raw: bytes, target: OutputFormat, config: PipelineConfig) -> EncodedResult:
            seen.append(threading.current_thread())
            return EncodedResult(raw, target.media_type, 1, 1)

        pool = TranscodePool(1)
        try:
            with patch("compressx.imaging.pipeline.transcode", _record):
                await pool.transcode(b"x", OutputFormat.JPEG, PipelineConfig())
            assert seen[0] is not threading.current_thread()
            assert seen[0].name.startswith("transcode")
        finally:
            pool.shutdown()

    async def test_pipeline_errors_propagate(self) -> None:
        pool = TranscodePool(1)
        try:
            with pytest.raises(DecodeError):
                await pool.transcode(b"not an image", OutputFormat.WEBP, PipelineConfig())
            stats = pool.stats()
            assert stats.active == 0
            assert stats.completed == 1
        finally:
            pool.shutdown()

    async def test_stats_record_wait_and_run_time(self) -> None:
        pool = TranscodePool(2)
        try:
            assert pool.stats().average_run_ms == 0.0
            for _ in range(3):
                await pool.transcode(_png((300, 300)), OutputFormat.JPEG, PipelineConfig())
            stats = pool.stats()
            assert stats.completed == 3
            assert stats.rejected == 0
            assert stats.average_run_ms > 0.0
            assert stats.average_wait_ms >= 0.0
            assert (stats.active, stats.waiting) == (0, 0)
        finally:
            pool.shutdown()

    async def test_times_out_when_saturated(self) -> None:
        release = threading.Event()

        def _blocking(raw: bytes, target: OutputFormat, config: PipelineConfig) -> EncodedResult:
            release.wait()
            return EncodedResult(raw, target.media_type, 1, 1)

        pool = TranscodePool(1, slot_timeout=0.05)
        try:
            with patch("compressx.imaging.pipeline.transcode", _blocking):
                blocker = asyncio.create_task(pool.transcode(b"first", OutputFormat.JPEG, PipelineConfig()))
                while pool.stats().active == 0:
                    await asyncio.sleep(0)

                with pytest.raises(TimeoutError):
                    await pool.transcode(b"second", OutputFormat.JPEG, PipelineConfig())
                stats = pool.stats()
                assert stats.waiting == 0
                assert stats.rejected == 1

                release.set()
                assert (await blocker).data == b"first"
            assert pool.stats().active == 0
            assert pool.stats().completed == 1
        finally:
            release.set()
            pool.shutdown()
