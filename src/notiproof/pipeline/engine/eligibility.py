from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.engine.adapters.base import DEFAULT_EVENT_TYPE, EVENT_TYPE_ALIASES
from notiproof.pipeline.engine.events.models import ModerationStatus, NormalizedEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightConfig:
    event_type: str
    weight: int
    max_per_queue: int
    ttl_days: int


DEFAULT_WEIGHTS: dict[str, WeightConfig] = {
    "purchase": WeightConfig("purchase", weight=10, max_per_queue=20, ttl_days=7),
    "subscription": WeightConfig("subscription", weight=9, max_per_queue=20, ttl_days=14),
    "testimonial": WeightConfig("testimonial", weight=8, max_per_queue=15, ttl_days=180),
    "review": WeightConfig("review", weight=8, max_per_queue=15, ttl_days=90),
    "form_capture": WeightConfig("form_capture", weight=7, max_per_queue=20, ttl_days=14),
    "form_submission": WeightConfig("form_submission", weight=7, max_per_queue=20, ttl_days=14),
    "signup": WeightConfig("signup", weight=6, max_per_queue=20, ttl_days=14),
    "newsletter_signup": WeightConfig("newsletter_signup", weight=6, max_per_queue=20, ttl_days=14),
    "download": WeightConfig("download", weight=5, max_per_queue=20, ttl_days=14),
    "announcement": WeightConfig("announcement", weight=4, max_per_queue=5, ttl_days=30),
    "live_visitors": WeightConfig("live_visitors", weight=2, max_per_queue=1, ttl_days=1),
}

# Applied to known event types without a row above, and to override-only types.
FALLBACK_MAX_PER_QUEUE = 10
FALLBACK_TTL_DAYS = 7


def default_weight_for(event_type: str) -> WeightConfig:
    return DEFAULT_WEIGHTS.get(event_type) or WeightConfig(
        event_type,
        weight=settings.DEFAULT_WEIGHT,
        max_per_queue=FALLBACK_MAX_PER_QUEUE,
        ttl_days=FALLBACK_TTL_DAYS,
    )


def known_event_types() -> list[str]:
    """Every canonical type an adapter can emit, plus the defaults table."""
    types = set(DEFAULT_WEIGHTS) | set(EVENT_TYPE_ALIASES.values()) | {DEFAULT_EVENT_TYPE}
    return sorted(types)


def default_weights() -> dict[str, WeightConfig]:
    return {t: default_weight_for(t) for t in known_event_types()}


def _field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def resolve_weights(overrides: Iterable[Any] = ()) -> dict[str, WeightConfig]:
    """
    Effective rules per event_type: website override row, else the default table.
    Override rows may be ORM rows or dicts; unset columns keep the default value.
    """
    effective = default_weights()
    for row in overrides:
        event_type = _field(row, "event_type")
        if not isinstance(event_type, str) or not event_type:
            logger.warning("Skipping weight override without event_type: %r", row)
            continue
        base = default_weight_for(event_type)
        changes: dict[str, int] = {}
        for k in ("weight", "max_per_queue", "ttl_days"):
            value = _field(row, k)
            if value is not None:
                changes[k] = int(value)
        effective[event_type] = replace(base, **changes)
    return effective


def weight_of(event_type: str, weights: Mapping[str, WeightConfig]) -> int:
    cfg = weights.get(event_type)
    if cfg is None:
        return settings.DEFAULT_WEIGHT
    return cfg.weight


# -----------------------------
# Candidate selection
# -----------------------------


def _as_utc(dt: datetime) -> datetime:
    # sqlite hands back naive datetimes; everything stored is UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def window_start(rule: WeightConfig, now: datetime) -> datetime:
    return _as_utc(now) - timedelta(days=rule.ttl_days)


def is_eligible(event: NormalizedEvent, rule: WeightConfig, now: datetime) -> bool:
    if event.event_type != rule.event_type:
        return False
    if event.moderation_status != ModerationStatus.approved:
        return False
    if _as_utc(event.created_at) < window_start(rule, now):
        return False
    if event.expires_at is not None and _as_utc(event.expires_at) <= _as_utc(now):
        return False
    return True


def select_candidates(
    events: Iterable[NormalizedEvent],
    event_type: str,
    rule: WeightConfig | None = None,
    *,
    now: datetime | None = None,
) -> list[NormalizedEvent]:
    """
    Narrow an event history to the candidate pool for one type:
    approved, inside the TTL window, not expired, most recent first,
    at most rule.max_per_queue items.
    """
    rule = rule or default_weight_for(event_type)
    now = now or datetime.now(timezone.utc)

    pool = [e for e in events if is_eligible(e, rule, now)]
    pool.sort(key=lambda e: _as_utc(e.created_at), reverse=True)
    return pool[: max(rule.max_per_queue, 0)]
