from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Mapping

from notiproof.pipeline.engine.events.models import ANONYMOUS_NAME

_TOKEN_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render(template: str, data: Mapping[str, Any]) -> str:
    """
    Replace each {{identifier}} with data[identifier], or "" when missing/None.

    Single pass: substituted values are never scanned again, so a value that
    itself contains "{{...}}" is emitted verbatim.
    """
    if not template:
        return ""

    def _sub(match: re.Match) -> str:
        value = data.get(match.group(1))
        return "" if value is None else str(value)

    return _TOKEN_RE.sub(_sub, template)


def placeholders(template: str) -> list[str]:
    return _TOKEN_RE.findall(template or "")


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n != 1 else ''} ago"


def relative_time(then: datetime, now: datetime | None = None) -> str:
    now = _as_utc(now or datetime.now(timezone.utc))
    then = _as_utc(then)
    minutes = int((now - then).total_seconds() // 60)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return _plural(minutes, "minute")

    hours = minutes // 60
    if hours < 24:
        return _plural(hours, "hour")

    days = hours // 24
    if days <= 7:
        return _plural(days, "day")

    weeks = days // 7
    if weeks <= 4:
        return _plural(weeks, "week")

    return then.date().isoformat()


def render_context(event: Any, *, now: datetime | None = None) -> dict[str, Any]:
    """
    Flatten a NormalizedEvent (or anything with the same attributes) into the
    field map templates are rendered against. Top-level identity fields win
    over same-named keys inside event_data.
    """
    ctx: dict[str, Any] = dict(getattr(event, "event_data", None) or {})
    ctx.update(
        {
            "user_name": getattr(event, "user_name", None) or ANONYMOUS_NAME,
            "user_location": getattr(event, "user_location", None),
            "event_type": getattr(event, "event_type", None),
        }
    )
    created_at = getattr(event, "created_at", None)
    if isinstance(created_at, datetime):
        ctx["time_ago"] = relative_time(created_at, now)
    return ctx
