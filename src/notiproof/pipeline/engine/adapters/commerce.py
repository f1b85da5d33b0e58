from __future__ import annotations

from typing import Any, Mapping

from notiproof.pipeline.engine.adapters.base import (
    BaseAdapter,
    Identity,
    compact,
    dig,
    first_non_empty,
    join_location,
)

DEFAULT_PRODUCT_NAME = "a product"


def _address_location(data: Mapping[str, Any], prefixes: tuple[str, ...]) -> str | None:
    # city+country, then city, then country; first address block that yields anything wins
    for prefix in prefixes:
        location = join_location(
            dig(data, f"{prefix}.city"), dig(data, f"{prefix}.country")
        )
        if location:
            return location
    return None


class ShopifyAdapter(BaseAdapter):
    """Shopify-style order payloads (customer / billing_address / line_items)."""

    source = "shopify"
    business_type = "ecommerce"
    event_type = "purchase"

    name_fields = (
        "customer.first_name",
        "billing_address.first_name",
        "shipping_address.first_name",
    )
    email_fields = ("customer.email", "email", "contact_email")

    def extract_location(self, data: Mapping[str, Any]) -> str | None:
        return _address_location(data, ("billing_address", "shipping_address"))

    def extract_domain_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return compact(
            {
                "product_name": first_non_empty(data, ("line_items.0.name", "line_items.0.title"))
                or DEFAULT_PRODUCT_NAME,
                "amount": dig(data, "total_price"),
                "currency": dig(data, "currency"),
            }
        )


class WooCommerceAdapter(BaseAdapter):
    """WooCommerce order payloads (billing / shipping / line_items)."""

    source = "woocommerce"
    business_type = "ecommerce"
    event_type = "purchase"

    email_fields = ("billing.email", "customer.email", "email")

    def extract_identity(self, data: Mapping[str, Any]) -> Identity:
        first = first_non_empty(data, ("billing.first_name", "shipping.first_name"))
        last = first_non_empty(data, ("billing.last_name", "shipping.last_name"))
        full = " ".join(p for p in (first, last) if p) or None
        return Identity(
            user_name=full,
            user_email=first_non_empty(data, self.email_fields),
        )

    def extract_location(self, data: Mapping[str, Any]) -> str | None:
        return _address_location(data, ("billing", "shipping"))

    def extract_domain_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return compact(
            {
                "product_name": first_non_empty(data, ("line_items.0.name",))
                or DEFAULT_PRODUCT_NAME,
                "amount": dig(data, "total"),
                "currency": dig(data, "currency"),
            }
        )
