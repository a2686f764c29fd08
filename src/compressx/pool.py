"""Bounded, off-loop execution of transcodes.

Every upload first waits for one of ``max_concurrent`` slots and then runs
:func:`compressx.imaging.pipeline.transcode` on a worker thread, so Pillow
and numpy never block the event loop. An upload still waiting when the slot
timeout expires is refused with :class:`TimeoutError` (503 at the HTTP layer).

Slot waits and pipeline run times are accumulated for ``/health``. All
bookkeeping happens on the event loop thread, so no lock is needed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from compressx.imaging import pipeline

if TYPE_CHECKING:
    from compressx.imaging.codecs import OutputFormat
    from compressx.imaging.pipeline import EncodedResult, PipelineConfig

logger = logging.getLogger(__name__)

SLOT_TIMEOUT_SECONDS: float = 5.0


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time view of the pool for the health endpoint."""

    active: int
    waiting: int
    completed: int
    rejected: int
    average_wait_ms: float
    average_run_ms: float


class TranscodePool:
    """Runs at most ``max_concurrent`` transcodes at once on worker threads."""

    def __init__(self, max_concurrent: int, slot_timeout: float = SLOT_TIMEOUT_SECONDS) -> None:
        self._slots = asyncio.Semaphore(max_concurrent)
        self._workers = ThreadPoolExecutor(max_workers=max_concurrent, thread_name_prefix="transcode")
        self._slot_timeout = slot_timeout
        self._active = 0
        self._waiting = 0
        self._admitted = 0
        self._completed = 0
        self._rejected = 0
        self._wait_seconds = 0.0
        self._run_seconds = 0.0

    async def transcode(self, raw: bytes, target: OutputFormat, config: PipelineConfig) -> EncodedResult:
        """Transcode ``raw`` to ``target`` once a slot is free.

        Pipeline failures (``DecodeError``, ``EncodeError``, ...) propagate
        unchanged.

        Raises:
            TimeoutError: If no slot frees up within the slot timeout.
        """
        queued_at = time.perf_counter()
        self._waiting += 1
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self._slot_timeout)
        except TimeoutError:
            self._rejected += 1
            logger.warning(
                "Refusing %d-byte %s upload: no transcode slot free after %.1fs",
                len(raw),
                target,
                self._slot_timeout,
            )
            raise
        finally:
            self._waiting -= 1

        started_at = time.perf_counter()
        self._admitted += 1
        self._wait_seconds += started_at - queued_at
        self._active += 1
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._workers, pipeline.transcode, raw, target, config)
        finally:
            self._run_seconds += time.perf_counter() - started_at
            self._completed += 1
            self._active -= 1
            self._slots.release()

    def stats(self) -> PoolStats:
        return PoolStats(
            active=self._active,
            waiting=self._waiting,
            completed=self._completed,
            rejected=self._rejected,
            average_wait_ms=1000 * self._wait_seconds / self._admitted if self._admitted else 0.0,
            average_run_ms=1000 * self._run_seconds / self._completed if self._completed else 0.0,
        )

    def shutdown(self) -> None:
        """Wait for running transcodes, then stop the worker threads."""
        self._workers.shutdown(wait=True)
