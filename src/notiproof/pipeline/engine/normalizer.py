# engine/normalizer.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.engine.adapters.base import Identity, SourceAdapter
from notiproof.pipeline.engine.adapters.registry import GENERIC_ADAPTER, get_adapter
from notiproof.pipeline.engine.errors import ValidationError
from notiproof.pipeline.engine.events.contract import parse_raw_event
from notiproof.pipeline.engine.events.models import (
    ANONYMOUS_NAME,
    EventOrigin,
    ModerationStatus,
    NormalizedEvent,
    RawEvent,
)
from notiproof.pipeline.engine.templates.fallbacks import (
    TemplateKey,
    resolve_message_template,
)

logger = logging.getLogger(__name__)

# Errors an adapter can hit on an unexpected payload shape.
_ADAPTER_ERRORS = (TypeError, ValueError, AttributeError, KeyError, IndexError)


# -----------------------------
# Quality score
# -----------------------------


def calculate_quality_score(
    *,
    user_name: str | None,
    user_email: str | None,
    user_location: str | None,
    event_data: Mapping[str, Any] | None,
) -> int:
    """
    Completeness heuristic, pure function of field presence:
      base 20, +20 real name, +15 email, +15 location,
      +10 rich event_data (> 3 keys), +20 recency (always, events are fresh).
    """
    score = 20
    if user_name and user_name != ANONYMOUS_NAME:
        score += 20
    if user_email:
        score += 15
    if user_location:
        score += 15
    if event_data and len(event_data) > 3:
        score += 10
    score += 20
    return max(0, min(score, 100))


def score_event(event: NormalizedEvent) -> int:
    return calculate_quality_score(
        user_name=event.user_name,
        user_email=event.user_email,
        user_location=event.user_location,
        event_data=event.event_data,
    )


# -----------------------------
# Helpers
# -----------------------------


def _moderation_for(source: str, trusted: Iterable[str] | None) -> ModerationStatus:
    trusted_set = {s.lower() for s in (settings.TRUSTED_SOURCES if trusted is None else trusted)}
    if source in trusted_set:
        return ModerationStatus.approved
    return ModerationStatus.pending


def _origin_for(payload: Mapping[str, Any]) -> EventOrigin:
    if payload.get("is_demo") or payload.get("isDemo") or payload.get("isSimulated"):
        return EventOrigin.demo
    if payload.get("quick_win"):
        return EventOrigin.quick_win
    return EventOrigin.natural


def _parse_expiry(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Ignoring unparseable expires_at=%r", value)
    return None


def _safe_identity(adapter: SourceAdapter, payload: Mapping[str, Any]) -> Identity:
    try:
        return adapter.extract_identity(payload)
    except _ADAPTER_ERRORS:
        logger.warning("Identity extraction failed for %r, using generic mapping", adapter)
        return Identity()


def _safe_location(adapter: SourceAdapter, payload: Mapping[str, Any]) -> str | None:
    try:
        return adapter.extract_location(payload)
    except _ADAPTER_ERRORS:
        logger.warning("Location extraction failed for %r, using generic mapping", adapter)
        return None


def _safe_domain_fields(adapter: SourceAdapter, payload: Mapping[str, Any]) -> dict:
    try:
        return dict(adapter.extract_domain_fields(payload))
    except _ADAPTER_ERRORS:
        logger.warning("Domain extraction failed for %r, keeping raw payload only", adapter)
        return {}


# -----------------------------
# Normalizer main
# -----------------------------


def normalize(
    raw: RawEvent,
    *,
    templates: Mapping[TemplateKey, str] | None = None,
    trusted_sources: Iterable[str] | None = None,
) -> NormalizedEvent:
    """
    Map a RawEvent to the canonical record. Never raises for missing optional
    fields: whatever the source-specific adapter cannot find falls back to the
    generic top-level mapping.

    `templates` maps (event_type, integration_type) -> highest-priority active
    template, as returned by the template store.
    """
    integration_type = (raw.source or "").strip().lower()
    adapter = get_adapter(integration_type)
    payload: dict[str, Any] = dict(raw.payload or {})

    identity = _safe_identity(adapter, payload)
    location = _safe_location(adapter, payload)
    if adapter is not GENERIC_ADAPTER:
        generic = GENERIC_ADAPTER.extract_identity(payload)
        identity = Identity(
            user_name=identity.user_name or generic.user_name,
            user_email=identity.user_email or generic.user_email,
        )
        location = location or GENERIC_ADAPTER.extract_location(payload)

    domain = _safe_domain_fields(adapter, payload)
    business_type = domain.pop("business_type", None) or adapter.business_type
    event_data = {**payload, **domain}

    event_type = adapter.default_event_type(raw.event_type)
    message_template = resolve_message_template(event_type, integration_type, templates)

    quality_score = calculate_quality_score(
        user_name=identity.user_name,
        user_email=identity.user_email,
        user_location=location,
        event_data=event_data,
    )

    return NormalizedEvent(
        widget_id=raw.widget_id,
        website_id=raw.website_id,
        event_type=event_type,
        event_data=event_data,
        user_name=identity.user_name,
        user_email=identity.user_email,
        user_location=location,
        message_template=message_template,
        integration_type=integration_type,
        moderation_status=_moderation_for(integration_type, trusted_sources),
        quality_score=quality_score,
        business_type=business_type,
        source=_origin_for(payload),
        created_at=raw.received_at,
        expires_at=_parse_expiry(payload.get("expires_at")),
    )


@dataclass(frozen=True)
class Rejection:
    index: int
    reason: str
    errors: list[str] = field(default_factory=list)


@dataclass
class BatchResult:
    normalized: list[tuple[int, NormalizedEvent]] = field(default_factory=list)
    rejected: list[Rejection] = field(default_factory=list)


def normalize_batch(
    items: Iterable[Any],
    *,
    templates: Mapping[TemplateKey, str] | None = None,
    trusted_sources: Iterable[str] | None = None,
) -> BatchResult:
    """Normalize many raw envelopes. A bad envelope is dropped without affecting the rest."""
    result = BatchResult()
    for idx, item in enumerate(items):
        try:
            raw = item if isinstance(item, RawEvent) else parse_raw_event(item)
        except ValidationError as e:
            logger.warning("Dropping raw event #%d: %s %s", idx, e.reason, e.details)
            result.rejected.append(
                Rejection(index=idx, reason=e.reason, errors=e.details.get("errors", []))
            )
            continue
        result.normalized.append(
            (idx, normalize(raw, templates=templates, trusted_sources=trusted_sources))
        )
    return result
