from __future__ import annotations

from typing import Any, Mapping

from notiproof.pipeline.engine.adapters.base import (
    BaseAdapter,
    Identity,
    compact,
    dig,
    first_non_empty,
)
from notiproof.pipeline.engine.events.models import ANONYMOUS_NAME


class GoogleReviewsAdapter(BaseAdapter):
    source = "google_reviews"
    business_type = "ecommerce"
    event_type = "review"

    def extract_identity(self, data: Mapping[str, Any]) -> Identity:
        return Identity(
            user_name=first_non_empty(data, ("author_name", "reviewer.displayName"))
            or ANONYMOUS_NAME,
        )

    def extract_location(self, data: Mapping[str, Any]) -> str | None:
        return None

    def extract_domain_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return compact(
            {
                "rating": dig(data, "rating"),
                "review_text": first_non_empty(data, ("text", "comment")),
                "author_name": first_non_empty(data, ("author_name", "reviewer.displayName")),
            }
        )
