"""Admin seed endpoint.

POST /admin/seed/apply

Accepts templates and weight overrides as JSON, validates them with the
same rules as the YAML loader and upserts them. Idempotent.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from notiproof.pipeline.db.seed_db import apply_seed
from notiproof.pipeline.db.session import get_db
from notiproof.pipeline.seed import SeedData, validate_seed

router = APIRouter(tags=["admin"])
logger = logging.getLogger(__name__)


class SeedApplyRequest(BaseModel):
    templates: list[dict] = []
    weights: list[dict] = []


class SeedApplyResponse(BaseModel):
    status: str = "ok"
    templates: int
    weights: int


@router.post(
    "/seed/apply",
    summary="Apply seed data",
    description=(
        "Upserts message templates and per-website weight overrides. "
        "Rejects the whole payload if any row is invalid."
    ),
    response_model=SeedApplyResponse,
    status_code=200,
)
async def seed_apply(
    body: SeedApplyRequest,
    db: AsyncSession = Depends(get_db),
) -> SeedApplyResponse:
    seed, errors = validate_seed(SeedData(templates=body.templates, weights=body.weights))
    if errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "Invalid seed data", "reason": "invalid_seed", "details": {"errors": errors}},
        )

    await apply_seed(db, seed.templates, seed.weights)

    logger.info(
        "Seed applied: %d templates, %d weight overrides",
        len(seed.templates),
        len(seed.weights),
    )

    return SeedApplyResponse(templates=len(seed.templates), weights=len(seed.weights))
