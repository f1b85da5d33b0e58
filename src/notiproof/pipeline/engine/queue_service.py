# engine/queue_service.py
from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Sequence

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.db.repository import query_by_type_and_window, query_weights
from notiproof.pipeline.engine.eligibility import (
    WeightConfig,
    resolve_weights,
    select_candidates,
    window_start,
)
from notiproof.pipeline.engine.errors import QueueBuildError, SourceFetchError
from notiproof.pipeline.engine.events.models import EventOrigin, NormalizedEvent
from notiproof.pipeline.engine.queue_builder import (
    build_weighted_queue,
    queue_distribution,
)
from notiproof.pipeline.engine.templates.renderer import render, render_context
from notiproof.pipeline.engine.verification import should_show_verification_badge

logger = logging.getLogger(__name__)


class QueueMetadata(BaseModel):
    total_available: int
    distribution: Dict[str, int] = Field(default_factory=dict)
    weights_applied: Dict[str, int] = Field(default_factory=dict)
    ttl_applied: bool = True
    queue_size: int
    generated_at: datetime
    degraded_types: List[str] = Field(default_factory=list)


class QueueResult(BaseModel):
    events: List[Dict[str, Any]] = Field(default_factory=list)
    queue_metadata: QueueMetadata


# -----------------------------
# Pure assembly
# -----------------------------


def render_queue_item(event: NormalizedEvent, *, now: datetime) -> dict[str, Any]:
    """Render-ready record for the widget. The email never leaves the backend."""
    ctx = render_context(event, now=now)
    show_verified = event.source not in (
        EventOrigin.demo,
        EventOrigin.quick_win,
    ) and should_show_verification_badge(event.event_type, event.event_data)

    item = event.model_dump(mode="json", exclude={"user_email"})
    item["event_data"] = {**item["event_data"], "show_verified": show_verified}
    item["message"] = render(event.message_template, ctx)
    item["time_ago"] = ctx.get("time_ago")
    item["show_verified"] = show_verified
    return item


def assemble_queue(
    grouped: Mapping[str, Sequence[NormalizedEvent]],
    weights: Mapping[str, WeightConfig],
    target_size: int,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
    degraded_types: Sequence[str] = (),
) -> QueueResult:
    now = now or datetime.now(timezone.utc)
    queue = build_weighted_queue(grouped, weights, target_size, rng=rng)
    distribution = queue_distribution(queue)

    logger.info("Queue built: size=%d distribution=%s", len(queue), distribution)

    return QueueResult(
        events=[render_queue_item(e, now=now) for _, e in queue],
        queue_metadata=QueueMetadata(
            total_available=sum(len(pool) for pool in grouped.values()),
            distribution=distribution,
            weights_applied={t: w.weight for t, w in weights.items()},
            queue_size=len(queue),
            generated_at=now,
            degraded_types=list(degraded_types),
        ),
    )


# -----------------------------
# Service main
# -----------------------------


def clamp_target_size(target_size: int | None) -> int:
    if target_size is None:
        return settings.DEFAULT_QUEUE_SIZE
    return max(0, min(int(target_size), settings.MAX_QUEUE_SIZE))


async def fetch_grouped_candidates(
    db: AsyncSession,
    *,
    widget_ids: Sequence[str],
    weights: Mapping[str, WeightConfig],
    now: datetime,
) -> tuple[dict[str, list[NormalizedEvent]], list[str]]:
    """
    One read per event type. A failed read degrades that type to an empty
    pool; the remaining types are still fetched.
    """
    grouped: dict[str, list[NormalizedEvent]] = {}
    degraded: list[str] = []

    for event_type, rule in weights.items():
        try:
            rows = await query_by_type_and_window(
                db,
                widget_ids=widget_ids,
                event_type=event_type,
                since=window_start(rule, now),
                limit=rule.max_per_queue,
            )
        except SourceFetchError as e:
            logger.warning("Degrading %s to empty pool: %s", event_type, e.details)
            grouped[event_type] = []
            degraded.append(event_type)
            continue

        grouped[event_type] = select_candidates(rows, event_type, rule, now=now)
        logger.debug("Fetched %d %s candidates", len(grouped[event_type]), event_type)

    return grouped, degraded


async def build_notification_queue(
    db: AsyncSession,
    *,
    website_id: str,
    widget_ids: Sequence[str],
    target_size: int | None = None,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> QueueResult:
    now = now or datetime.now(timezone.utc)
    target = clamp_target_size(target_size)

    try:
        overrides = await query_weights(db, website_id)
    except SourceFetchError as e:
        raise QueueBuildError(
            "Datastore unavailable", reason="weights_unavailable", details=e.details
        ) from e

    weights = resolve_weights(overrides)
    grouped, degraded = await fetch_grouped_candidates(
        db, widget_ids=widget_ids, weights=weights, now=now
    )

    if weights and len(degraded) == len(weights):
        raise QueueBuildError(
            "Datastore unavailable",
            reason="all_sources_failed",
            details={"event_types": degraded},
        )

    return assemble_queue(
        grouped, weights, target, rng=rng, now=now, degraded_types=degraded
    )
