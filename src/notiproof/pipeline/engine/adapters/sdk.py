from __future__ import annotations

from typing import Any, Mapping

from notiproof.pipeline.engine.adapters.base import BaseAdapter, first_non_empty


class CustomSDKAdapter(BaseAdapter):
    source = "custom_sdk"

    name_fields = ("user_name", "name")
    email_fields = ("user_email", "email")


class JavaScriptAPIAdapter(BaseAdapter):
    source = "javascript_api"

    name_fields = ("user_name",)
    email_fields = ("user_email",)


class APIAdapter(BaseAdapter):
    """Direct REST API calls; the caller may declare its own business_type."""

    source = "api"

    name_fields = ("user_name", "customer_name")
    email_fields = ("user_email", "email")

    def extract_domain_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        business_type = first_non_empty(data, ("business_type",))
        return {"business_type": business_type} if business_type else {}
