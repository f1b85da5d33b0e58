from __future__ import annotations

from typing import Any, Mapping

from notiproof.pipeline.engine.adapters.base import (
    BaseAdapter,
    Identity,
    compact,
    dig,
    first_non_empty,
    join_location,
    name_from_email,
)

DEFAULT_PLAN_NAME = "Premium Plan"

# One-off payments read as purchases; everything else from the processor is a subscription.
ONE_OFF_PAYMENT_TYPES = {
    "charge.succeeded",
    "payment_intent.succeeded",
}


class StripeAdapter(BaseAdapter):
    source = "stripe"
    business_type = "saas"

    email_fields = ("customer.email", "customer_email", "customer_details.email", "email")

    def extract_identity(self, data: Mapping[str, Any]) -> Identity:
        email = first_non_empty(data, self.email_fields)
        name = first_non_empty(
            data, ("customer.name", "customer_name", "customer_details.name")
        )
        return Identity(user_name=name or name_from_email(email), user_email=email)

    def extract_location(self, data: Mapping[str, Any]) -> str | None:
        return join_location(
            first_non_empty(data, ("customer.address.city", "customer_details.address.city")),
            first_non_empty(
                data, ("customer.address.country", "customer_details.address.country")
            ),
        )

    def extract_domain_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return compact(
            {
                "plan_name": first_non_empty(
                    data, ("items.data.0.price.nickname", "plan.nickname")
                )
                or DEFAULT_PLAN_NAME,
                "amount": dig(data, "items.data.0.price.unit_amount")
                or dig(data, "amount_total")
                or dig(data, "amount"),
                "currency": dig(data, "currency"),
            }
        )

    def default_event_type(self, raw_type: str) -> str:
        if (raw_type or "").strip().lower() in ONE_OFF_PAYMENT_TYPES:
            return "purchase"
        return "subscription"
