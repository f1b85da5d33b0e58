from __future__ import annotations

from notiproof.pipeline.engine.adapters.base import BaseAdapter


class GenericAdapter(BaseAdapter):
    """Fallback for unknown sources: copies top-level identity/location keys only."""

    source = "generic"

    name_fields = ("user_name", "name", "customer_name")
    email_fields = ("user_email", "email")
    location_fields = ("user_location", "location")
