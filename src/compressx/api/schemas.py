"""Pydantic response schemas for the CompressX API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    max_dimension: int
    concurrent_requests: int
    queue_depth: int
    transcodes_completed: int = Field(description="Transcodes that ran to completion or failure since startup")
    transcodes_rejected: int = Field(description="Uploads refused with 503 because no slot freed up")
    average_queue_wait_ms: float
    average_transcode_ms: float


class OutputFormatInfo(BaseModel):
    """An encoding target and the media type it produces."""

    name: str
    media_type: str
    endpoint: str = Field(description="Upload endpoint that produces this format")


class FormatsResponse(BaseModel):
    """Response for the formats listing endpoint."""

    input_formats: list[str] = Field(description="Formats recognized by signature sniffing")
    output_formats: list[OutputFormatInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
