from __future__ import annotations

from typing import Any, Mapping

VERIFIED_EVENT_TYPES = {
    "purchase",
    "subscription",
    "review",
    "testimonial",
    "form_capture",
    "signup",
    "payment",
}


def should_show_verification_badge(
    event_type: str, event_data: Mapping[str, Any] | None
) -> bool:
    """
    Whether the widget may show the "verified" badge next to a notification.

      - announcements: never (business-authored content)
      - live visitors: only when counted from real traffic (mode == "real")
      - simulated / demo data: never
      - everything captured from a real integration: yes
    """
    data = event_data or {}
    if event_type == "announcement":
        return False
    if event_type == "live_visitors":
        return data.get("mode") == "real"
    if data.get("isSimulated") or data.get("isDemo") or data.get("is_demo"):
        return False
    return event_type in VERIFIED_EVENT_TYPES
