"""API route definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile

from compressx.api.schemas import ErrorResponse, FormatsResponse, HealthResponse, OutputFormatInfo
from compressx.imaging.codecs import DECODERS, OutputFormat
from compressx.imaging.errors import DecodeError, EmptyInputError, EncodeError, ImageTooLargeError

if TYPE_CHECKING:
    from compressx.config import Settings
    from compressx.imaging.pipeline import PipelineConfig
    from compressx.pool import TranscodePool

logger = logging.getLogger(__name__)

router = APIRouter()

_ENDPOINTS: dict[OutputFormat, str] = {
    OutputFormat.JPEG: "/compress",
    OutputFormat.WEBP: "/compress_webp",
}

_ENCODE_FAILURE_DETAIL: dict[OutputFormat, str] = {
    OutputFormat.JPEG: "Encode error",
    OutputFormat.WEBP: "WebP Encode error",
}

_TRANSCODE_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_200_OK: {"content": {"image/jpeg": {}, "image/webp": {}}},
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
}


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_pipeline_config(request: Request) -> PipelineConfig:
    config: PipelineConfig = request.app.state.pipeline_config
    return config


def _get_transcode_pool(request: Request) -> TranscodePool:
    pool: TranscodePool = request.app.state.transcode_pool
    return pool


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(detail=detail).model_dump())


async def _read_payload(request: Request) -> bytes:
    """Concatenate every multipart part, in order, into one buffer."""
    chunks: list[bytes] = []
    async with request.form() as form:
        for _, value in form.multi_items():
            if isinstance(value, UploadFile):
                chunks.append(await value.read())
            else:
                chunks.append(value.encode())
    return b"".join(chunks)


async def _transcode_upload(request: Request, target: OutputFormat) -> Response:
    settings = _get_settings(request)
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > settings.max_file_size:
        return _error(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            f"Request body of {declared} bytes exceeds limit of {settings.max_file_size}",
        )

    raw = await _read_payload(request)

    if not raw:
        return _error(status.HTTP_400_BAD_REQUEST, "No data")
    if len(raw) > settings.max_file_size:
        return _error(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            f"Payload of {len(raw)} bytes exceeds limit of {settings.max_file_size}",
        )

    pool = _get_transcode_pool(request)
    try:
        result = await pool.transcode(raw, target, _get_pipeline_config(request))
    except TimeoutError:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Server busy, try again later")
    except EmptyInputError:
        return _error(status.HTTP_400_BAD_REQUEST, "No data")
    except ImageTooLargeError as exc:
        logger.info("Rejected oversized image: %s", exc)
        return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Image too large")
    except DecodeError as exc:
        logger.info("Decode failed for %d-byte upload: %s", len(raw), exc)
        return _error(status.HTTP_400_BAD_REQUEST, "Decode error")
    except EncodeError:
        logger.exception("Encoding to %s failed", target)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, _ENCODE_FAILURE_DETAIL[target])

    logger.info(
        "Transcoded %d bytes -> %d bytes %s (%dx%d)",
        len(raw),
        len(result.data),
        result.media_type,
        result.width,
        result.height,
    )
    return Response(content=result.data, media_type=result.media_type)


@router.post(
    "/compress",
    response_class=Response,
    responses=_TRANSCODE_RESPONSES,
    summary="Flatten, downscale and re-encode an image as JPEG",
)
async def compress(request: Request) -> Response:
    """Transcode the uploaded image to baseline JPEG on a white background."""
    return await _transcode_upload(request, OutputFormat.JPEG)


@router.post(
    "/compress_webp",
    response_class=Response,
    responses=_TRANSCODE_RESPONSES,
    summary="Downscale and re-encode an image as WebP",
)
async def compress_webp(request: Request) -> Response:
    """Transcode the uploaded image to lossy WebP, keeping transparency."""
    return await _transcode_upload(request, OutputFormat.WEBP)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    stats = _get_transcode_pool(request).stats()
    return HealthResponse(
        status="ok",
        max_dimension=_get_pipeline_config(request).max_dimension,
        concurrent_requests=stats.active,
        queue_depth=stats.waiting,
        transcodes_completed=stats.completed,
        transcodes_rejected=stats.rejected,
        average_queue_wait_ms=round(stats.average_wait_ms, 3),
        average_transcode_ms=round(stats.average_run_ms, 3),
    )


@router.get(
    "/formats",
    response_model=FormatsResponse,
    summary="List supported formats",
)
async def list_formats() -> FormatsResponse:
    """Return the sniffable input formats and the available output formats."""
    return FormatsResponse(
        input_formats=[decoder.name for decoder in DECODERS],
        output_formats=[
            OutputFormatInfo(name=fmt.value, media_type=fmt.media_type, endpoint=_ENDPOINTS[fmt])
            for fmt in OutputFormat
        ],
    )
