"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from compressx import __version__
from compressx.api.routes import router
from compressx.config import get_settings
from compressx.pool import TranscodePool

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings
    app.state.pipeline_config = settings.pipeline_config()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting CompressX (max_dimension=%s, jpeg_quality=%s, webp_quality=%s, max_concurrent=%s)",
        settings.max_dimension,
        settings.jpeg_quality,
        settings.webp_quality,
        settings.max_concurrent,
    )

    transcode_pool = TranscodePool(settings.max_concurrent)
    app.state.transcode_pool = transcode_pool

    logger.info("CompressX ready")
    yield

    logger.info("Shutting down CompressX")
    transcode_pool.shutdown()
    logger.info("CompressX shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="CompressX",
        description="Image normalization service: downscale and re-encode uploads as JPEG or WebP",
        version=__version__,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
