from __future__ import annotations

from typing import Any, Mapping

from notiproof.pipeline.engine.adapters.base import BaseAdapter, first_non_empty

DEFAULT_FORM_NAME = "Contact Form"


class FormHookAdapter(BaseAdapter):
    """Generic form captures (Typeform, HubSpot, native form hooks)."""

    source = "form_hook"
    event_type = "form_submission"

    name_fields = ("name", "full_name", "first_name", "your_name")
    email_fields = ("email", "email_address", "your_email")
    location_fields = ("location", "city", "address", "country")

    def extract_domain_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {"form_name": first_non_empty(data, ("form_name",)) or DEFAULT_FORM_NAME}
