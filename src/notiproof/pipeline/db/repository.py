"""Datastore operations the pipeline depends on.

    insert_event               – append one normalized event
    query_by_type_and_window   – candidate rows for one event type
    query_weights              – per-website override rows (defaults applied in-process)
    load_active_templates      – highest-priority active template per (event_type, integration_type)

Read failures surface as SourceFetchError so callers can degrade per type.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notiproof.pipeline.db.models import Event, EventTemplate, NotificationWeight
from notiproof.pipeline.engine.errors import SourceFetchError
from notiproof.pipeline.engine.events.models import ModerationStatus, NormalizedEvent
from notiproof.pipeline.engine.templates.fallbacks import TemplateKey

logger = logging.getLogger(__name__)


def event_row(event: NormalizedEvent) -> Event:
    values = event.model_dump(exclude={"id"})
    values["moderation_status"] = event.moderation_status.value
    values["source"] = event.source.value
    row = Event(**values)
    if event.id:
        row.id = event.id
    return row


def to_normalized(row: Event) -> NormalizedEvent:
    return NormalizedEvent.model_validate(row)


async def insert_event(db: AsyncSession, event: NormalizedEvent) -> NormalizedEvent:
    """Stage an insert and flush so the generated id is available. Caller commits."""
    row = event_row(event)
    db.add(row)
    await db.flush()
    return to_normalized(row)


async def _rollback_quietly(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except SQLAlchemyError:
        logger.exception("Rollback after failed read also failed")


async def query_by_type_and_window(
    db: AsyncSession,
    *,
    widget_ids: Iterable[str],
    event_type: str,
    since: datetime,
    limit: int,
    moderation_status: ModerationStatus = ModerationStatus.approved,
) -> list[NormalizedEvent]:
    widget_ids = list(widget_ids)
    if not widget_ids or limit <= 0:
        return []

    stmt = (
        select(Event)
        .where(
            Event.widget_id.in_(widget_ids),
            Event.event_type == event_type,
            Event.moderation_status == moderation_status.value,
            Event.created_at >= since,
        )
        .order_by(Event.created_at.desc())
        .limit(limit)
    )
    try:
        res = await db.execute(stmt)
        rows = list(res.scalars().all())
    except SQLAlchemyError as e:
        await _rollback_quietly(db)
        raise SourceFetchError(
            f"Failed fetching {event_type} events",
            reason="event_fetch_failed",
            details={"event_type": event_type, "error": str(e)},
        ) from e

    return [to_normalized(r) for r in rows]


async def query_weights(db: AsyncSession, website_id: str) -> list[NotificationWeight]:
    try:
        res = await db.execute(
            select(NotificationWeight).where(NotificationWeight.website_id == website_id)
        )
        return list(res.scalars().all())
    except SQLAlchemyError as e:
        await _rollback_quietly(db)
        raise SourceFetchError(
            "Failed fetching notification weights",
            reason="weights_fetch_failed",
            details={"website_id": website_id, "error": str(e)},
        ) from e


async def load_active_templates(
    db: AsyncSession, integration_type: str | None = None
) -> dict[TemplateKey, str]:
    stmt = select(EventTemplate).where(EventTemplate.is_active.is_(True))
    if integration_type:
        stmt = stmt.where(EventTemplate.integration_type == integration_type)
    stmt = stmt.order_by(EventTemplate.priority.desc())

    try:
        res = await db.execute(stmt)
        rows = list(res.scalars().all())
    except SQLAlchemyError as e:
        await _rollback_quietly(db)
        raise SourceFetchError(
            "Failed fetching message templates",
            reason="templates_fetch_failed",
            details={"integration_type": integration_type, "error": str(e)},
        ) from e

    out: dict[TemplateKey, str] = {}
    for t in rows:
        # rows arrive highest priority first; keep the first per key
        out.setdefault((t.event_type, t.integration_type), t.template)
    return out


async def upsert_weight(
    db: AsyncSession,
    *,
    website_id: str,
    event_type: str,
    weight: int,
    max_per_queue: int,
    ttl_days: int,
) -> NotificationWeight:
    existing = await db.execute(
        select(NotificationWeight).where(
            NotificationWeight.website_id == website_id,
            NotificationWeight.event_type == event_type,
        )
    )
    obj = existing.scalar_one_or_none()
    if obj is None:
        obj = NotificationWeight(website_id=website_id, event_type=event_type)
        db.add(obj)

    obj.weight = int(weight)
    obj.max_per_queue = int(max_per_queue)
    obj.ttl_days = int(ttl_days)
    return obj


async def delete_weight(db: AsyncSession, *, website_id: str, event_type: str) -> int:
    res = await db.execute(
        delete(NotificationWeight).where(
            NotificationWeight.website_id == website_id,
            NotificationWeight.event_type == event_type,
        )
    )
    return int(res.rowcount or 0)
