"""Per-website notification weights.

GET    /admin/weights/{website_id}               – effective rules (defaults + overrides)
PUT    /admin/weights/{website_id}/{event_type}  – create or update an override
DELETE /admin/weights/{website_id}/{event_type}  – drop the override, back to defaults
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from notiproof.pipeline.api.schemas import (
    StatusResponse,
    WeightOut,
    WeightsResponse,
    WeightUpdate,
)
from notiproof.pipeline.db.repository import delete_weight, query_weights, upsert_weight
from notiproof.pipeline.db.session import get_db
from notiproof.pipeline.engine.eligibility import resolve_weights
from notiproof.pipeline.engine.errors import SourceFetchError

router = APIRouter(prefix="/weights", tags=["admin"])
logger = logging.getLogger(__name__)


async def _effective(db: AsyncSession, website_id: str) -> WeightsResponse:
    try:
        overrides = await query_weights(db, website_id)
    except SourceFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.to_dict()
        ) from e

    overridden = {o.event_type for o in overrides}
    rules = resolve_weights(overrides)
    return WeightsResponse(
        website_id=website_id,
        weights=[
            WeightOut(
                event_type=r.event_type,
                weight=r.weight,
                max_per_queue=r.max_per_queue,
                ttl_days=r.ttl_days,
                overridden=r.event_type in overridden,
            )
            for r in sorted(rules.values(), key=lambda r: (-r.weight, r.event_type))
        ],
    )


@router.get("/{website_id}", response_model=WeightsResponse)
async def get_weights(website_id: str, db: AsyncSession = Depends(get_db)):
    return await _effective(db, website_id)


@router.put("/{website_id}/{event_type}", response_model=WeightOut)
async def put_weight(
    website_id: str,
    event_type: str,
    body: WeightUpdate,
    db: AsyncSession = Depends(get_db),
):
    current = await _effective(db, website_id)
    base = next((w for w in current.weights if w.event_type == event_type), None)
    if base is None:
        base = resolve_weights([{"event_type": event_type}])[event_type]

    merged = {
        "weight": body.weight if body.weight is not None else base.weight,
        "max_per_queue": (
            body.max_per_queue if body.max_per_queue is not None else base.max_per_queue
        ),
        "ttl_days": body.ttl_days if body.ttl_days is not None else base.ttl_days,
    }
    await upsert_weight(db, website_id=website_id, event_type=event_type, **merged)
    await db.commit()

    logger.info("Weight override %s/%s set to %s", website_id, event_type, merged)
    return WeightOut(event_type=event_type, overridden=True, **merged)


@router.delete("/{website_id}/{event_type}", response_model=StatusResponse)
async def remove_weight(
    website_id: str, event_type: str, db: AsyncSession = Depends(get_db)
):
    deleted = await delete_weight(db, website_id=website_id, event_type=event_type)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No override for {website_id}/{event_type}",
        )
    await db.commit()
    logger.info("Weight override %s/%s removed", website_id, event_type)
    return {"status": "ok"}
