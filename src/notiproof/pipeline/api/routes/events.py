"""Raw event intake.

POST /events            – normalize and store one raw event
POST /events/batch      – normalize and store many; bad envelopes are reported, not fatal
POST /events/normalize  – dry run, nothing is stored
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from notiproof.pipeline.api.schemas import (
    BatchIngestRequest,
    BatchIngestResponse,
    ErrorDetail,
    RejectionOut,
)
from notiproof.pipeline.db.session import get_db
from notiproof.pipeline.engine.errors import ValidationError
from notiproof.pipeline.engine.events.contract import parse_raw_event
from notiproof.pipeline.engine.events.models import NormalizedEvent, RawEvent
from notiproof.pipeline.engine.ingest_service import (
    ingest_batch,
    ingest_event,
    preview_event,
)

router = APIRouter(prefix="/events", tags=["events"])

logger = logging.getLogger(__name__)


def _server_stamped(body: Any) -> Any:
    # received_at becomes created_at, which drives TTL; only the server sets it
    if isinstance(body, dict) and "received_at" in body:
        body = {k: v for k, v in body.items() if k != "received_at"}
    return body


def _parse_or_422(body: Any) -> RawEvent:
    try:
        return parse_raw_event(_server_stamped(body))
    except ValidationError as e:
        logger.warning("Rejected raw event: %s %s", e.reason, e.details)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.to_dict(),
        ) from e


@router.post(
    "",
    summary="Ingest a raw integration event",
    response_model=NormalizedEvent,
    responses={422: {"description": "Invalid envelope", "model": ErrorDetail}},
    status_code=status.HTTP_201_CREATED,
)
async def ingest(body: Any = Body(...), db: AsyncSession = Depends(get_db)):
    raw = _parse_or_422(body)
    return await ingest_event(db, raw)


@router.post(
    "/batch",
    summary="Ingest many raw events",
    response_model=BatchIngestResponse,
)
async def ingest_many(body: BatchIngestRequest, db: AsyncSession = Depends(get_db)):
    result = await ingest_batch(db, [_server_stamped(e) for e in body.events])
    return BatchIngestResponse(
        status="partial" if result.rejected else "ok",
        stored=result.stored,
        rejected=[
            RejectionOut(index=r.index, reason=r.reason, errors=r.errors)
            for r in result.rejected
        ],
    )


@router.post(
    "/normalize",
    summary="Normalize without storing",
    response_model=NormalizedEvent,
    responses={422: {"description": "Invalid envelope", "model": ErrorDetail}},
)
async def normalize_only(body: Any = Body(...), db: AsyncSession = Depends(get_db)):
    return await preview_event(db, _parse_or_422(body))
