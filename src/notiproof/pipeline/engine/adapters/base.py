from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, Sequence


@dataclass(frozen=True)
class Identity:
    user_name: str | None = None
    user_email: str | None = None


class SourceAdapter(Protocol):
    source: str
    business_type: str | None

    def extract_identity(self, data: Mapping[str, Any]) -> Identity: ...

    def extract_location(self, data: Mapping[str, Any]) -> str | None: ...

    def extract_domain_fields(self, data: Mapping[str, Any]) -> dict[str, Any]: ...

    def default_event_type(self, raw_type: str) -> str: ...


# Raw type strings seen across integrations -> canonical type tag.
EVENT_TYPE_ALIASES: dict[str, str] = {
    "order": "purchase",
    "orders/create": "purchase",
    "orders/paid": "purchase",
    "order.created": "purchase",
    "order_created": "purchase",
    "order.completed": "purchase",
    "sale": "purchase",
    "purchase": "purchase",
    "payment": "purchase",
    "subscription": "subscription",
    "subscribe": "subscription",
    "checkout.session.completed": "subscription",
    "customer.subscription.created": "subscription",
    "review": "review",
    "rating": "review",
    "sign_up": "signup",
    "signup": "signup",
    "registration": "signup",
    "register": "signup",
    "user.created": "signup",
    "form": "form_submission",
    "form_submit": "form_submission",
    "form_submission": "form_submission",
    "form_capture": "form_capture",
    "newsletter": "newsletter_signup",
    "newsletter_signup": "newsletter_signup",
    "download": "download",
    "testimonial": "testimonial",
    "announcement": "announcement",
    "live_visitors": "live_visitors",
    "visitors": "live_visitors",
}

DEFAULT_EVENT_TYPE = "custom"

_MISSING = object()


def canonical_event_type(raw_type: str | None, default: str = DEFAULT_EVENT_TYPE) -> str:
    key = (raw_type or "").strip().lower()
    if not key:
        return default
    return EVENT_TYPE_ALIASES.get(key, key)


def dig(data: Any, path: str) -> Any:
    """
    Resolve a dotted path inside nested mappings / lists.
    Numeric segments index into lists: "line_items.0.name".
    Returns None when any segment is missing.
    """
    current = data
    for part in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(part, _MISSING)
        elif isinstance(current, Sequence) and not isinstance(current, str):
            if not part.isdigit():
                return None
            idx = int(part)
            current = current[idx] if idx < len(current) else _MISSING
        else:
            return None
        if current is _MISSING:
            return None
    return current


def _as_text(value: Any) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def first_non_empty(data: Mapping[str, Any], candidates: Iterable[str]) -> str | None:
    """Return the first candidate path holding a non-empty scalar, in order."""
    for path in candidates:
        value = _as_text(dig(data, path))
        if value:
            return value
    return None


def join_location(city: Any, country: Any) -> str | None:
    city_s = _as_text(city)
    country_s = _as_text(country)
    if city_s and country_s:
        return f"{city_s}, {country_s}"
    return city_s or country_s


def name_from_email(email: str | None) -> str | None:
    """jane.doe@example.com -> "Jane Doe"."""
    if not email or "@" not in email:
        return None
    local = email.split("@", 1)[0]
    words = [w for w in re.split(r"[._\-+]+", local) if w]
    if not words:
        return None
    return " ".join(w[:1].upper() + w[1:] for w in words)


def compact(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


class BaseAdapter:
    """
    Candidate-list driven adapter. Subclasses override the candidate tuples
    and, when a source needs more than first-match lookups, the extract_* hooks.
    """

    source: str = "generic"
    business_type: str | None = None
    event_type: str | None = None

    name_fields: tuple[str, ...] = ("user_name", "name", "customer_name")
    email_fields: tuple[str, ...] = ("user_email", "email")
    location_fields: tuple[str, ...] = ("user_location", "location")

    def extract_identity(self, data: Mapping[str, Any]) -> Identity:
        return Identity(
            user_name=first_non_empty(data, self.name_fields),
            user_email=first_non_empty(data, self.email_fields),
        )

    def extract_location(self, data: Mapping[str, Any]) -> str | None:
        return first_non_empty(data, self.location_fields)

    def extract_domain_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {}

    def default_event_type(self, raw_type: str) -> str:
        if self.event_type:
            return self.event_type
        return canonical_event_type(raw_type)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} source={self.source!r}>"
