from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from notiproof.pipeline.api.schemas import ErrorDetail, QueueBuildRequest
from notiproof.pipeline.db.session import get_db
from notiproof.pipeline.engine.errors import QueueBuildError
from notiproof.pipeline.engine.queue_service import QueueResult, build_notification_queue

router = APIRouter(prefix="/queue", tags=["queue"])

logger = logging.getLogger(__name__)


@router.post(
    "/build",
    summary="Build the weighted notification queue for a website",
    description=(
        "Fetches eligible events per type (TTL, moderation, per-type cap), "
        "interleaves them by weight and returns render-ready records."
    ),
    response_model=QueueResult,
    responses={503: {"description": "Datastore unavailable", "model": ErrorDetail}},
)
async def build_queue(body: QueueBuildRequest, db: AsyncSession = Depends(get_db)):
    try:
        return await build_notification_queue(
            db,
            website_id=body.website_id,
            widget_ids=body.widget_ids,
            target_size=body.target_queue_size,
        )
    except QueueBuildError as e:
        logger.error("Queue build failed for website=%s: %s", body.website_id, e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.to_dict(),
        ) from e
