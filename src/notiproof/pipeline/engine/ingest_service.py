from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from notiproof.pipeline.db.repository import insert_event, load_active_templates
from notiproof.pipeline.engine.errors import SourceFetchError
from notiproof.pipeline.engine.events.models import NormalizedEvent, RawEvent
from notiproof.pipeline.engine.normalizer import Rejection, normalize, normalize_batch
from notiproof.pipeline.engine.templates.fallbacks import TemplateKey

logger = logging.getLogger(__name__)


async def _templates_or_fallback(
    db: AsyncSession, integration_type: str | None
) -> dict[TemplateKey, str]:
    # A template store outage must not block ingestion: fallbacks cover every type.
    try:
        return await load_active_templates(db, integration_type)
    except SourceFetchError as e:
        logger.warning("Template store unavailable, using fallbacks: %s", e.details)
        return {}


async def ingest_event(db: AsyncSession, raw: RawEvent) -> NormalizedEvent:
    templates = await _templates_or_fallback(db, (raw.source or "").strip().lower())
    normalized = normalize(raw, templates=templates)
    stored = await insert_event(db, normalized)
    await db.commit()

    logger.info(
        "Stored %s event %s from %s (status=%s, score=%d)",
        stored.event_type,
        stored.id,
        stored.integration_type,
        stored.moderation_status.value,
        stored.quality_score,
    )
    return stored


@dataclass
class BatchIngestResult:
    stored: list[NormalizedEvent] = field(default_factory=list)
    rejected: list[Rejection] = field(default_factory=list)


async def ingest_batch(db: AsyncSession, items: Iterable[Any]) -> BatchIngestResult:
    """
    Normalize and store many raw envelopes. Invalid envelopes are reported
    in `rejected` and never stored; valid ones are committed together.
    """
    templates = await _templates_or_fallback(db, None)
    batch = normalize_batch(items, templates=templates)

    result = BatchIngestResult(rejected=list(batch.rejected))
    for _, normalized in batch.normalized:
        result.stored.append(await insert_event(db, normalized))
    await db.commit()

    logger.info(
        "Batch ingest: %d stored, %d rejected", len(result.stored), len(result.rejected)
    )
    return result


async def preview_event(db: AsyncSession, raw: RawEvent) -> NormalizedEvent:
    """Normalize against the current template store without storing anything."""
    templates = await _templates_or_fallback(db, (raw.source or "").strip().lower())
    return normalize(raw, templates=templates)
