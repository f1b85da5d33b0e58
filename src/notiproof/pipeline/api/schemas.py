"""Shared Pydantic schemas for the pipeline API.

Request bodies and response models live here so they appear correctly
in the FastAPI/OpenAPI docs and can be reused across routers.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from notiproof.pipeline.engine.events.models import NormalizedEvent


# ---------------------------------------------------------------------------
# Common
# ---------------------------------------------------------------------------


class StatusResponse(BaseModel):
    """Generic operation acknowledgement."""

    status: str = Field(..., examples=["ok"])


class ErrorDetail(BaseModel):
    """Shared error envelope for 4xx / 5xx responses."""

    error: str
    reason: str | None = None
    details: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------


class RejectionOut(BaseModel):
    index: int
    reason: str
    errors: list[str] = Field(default_factory=list)


class BatchIngestRequest(BaseModel):
    events: list[Any] = Field(
        ..., description="Raw event envelopes: {source, event_type, payload, widget_id}"
    )


class BatchIngestResponse(BaseModel):
    status: str = Field("ok", examples=["ok", "partial"])
    stored: list[NormalizedEvent]
    rejected: list[RejectionOut]


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


class QueueBuildRequest(BaseModel):
    website_id: str = Field(..., min_length=1)
    widget_ids: list[str] = Field(..., min_length=1)
    target_queue_size: int | None = Field(
        None, ge=0, description="Defaults to DEFAULT_QUEUE_SIZE, capped at MAX_QUEUE_SIZE"
    )


# ---------------------------------------------------------------------------
# Render
# ---------------------------------------------------------------------------


class RenderRequest(BaseModel):
    template: str
    data: dict[str, Any] = Field(default_factory=dict)


class RenderResponse(BaseModel):
    message: str
    placeholders: list[str]


# ---------------------------------------------------------------------------
# Weights (admin)
# ---------------------------------------------------------------------------


class WeightOut(BaseModel):
    event_type: str
    weight: int
    max_per_queue: int
    ttl_days: int
    overridden: bool = Field(False, description="True if a website override row exists")


class WeightsResponse(BaseModel):
    website_id: str
    weights: list[WeightOut]


class WeightUpdate(BaseModel):
    """Unset fields keep the current effective value (override or default)."""

    weight: int | None = Field(None, ge=0)
    max_per_queue: int | None = Field(None, ge=0)
    ttl_days: int | None = Field(None, ge=0)
