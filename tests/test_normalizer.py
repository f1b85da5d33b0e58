from datetime import datetime, timezone

import pytest

from notiproof.pipeline.engine.adapters.base import BaseAdapter
from notiproof.pipeline.engine.adapters.registry import register_adapter, unregister_adapter
from notiproof.pipeline.engine.events.models import (
    ANONYMOUS_NAME,
    EventOrigin,
    ModerationStatus,
    RawEvent,
)
from notiproof.pipeline.engine.normalizer import (
    calculate_quality_score,
    normalize,
    normalize_batch,
)
from notiproof.pipeline.engine.templates.renderer import render, render_context

SHOPIFY_ORDER = {
    "customer": {"first_name": "Sam"},
    "billing_address": {"city": "Austin", "country": "US"},
    "line_items": [{"name": "Mug"}],
    "total_price": "12.00",
    "currency": "USD",
}


def _raw(source="shopify", payload=None, **kw):
    return RawEvent(source=source, payload=payload if payload is not None else {}, widget_id="w1", **kw)


def test_end_to_end_commerce_order():
    event = normalize(_raw(payload=SHOPIFY_ORDER, event_type="orders/create"))

    assert event.user_name == "Sam"
    assert event.user_location == "Austin, US"
    assert event.event_data["product_name"] == "Mug"
    assert event.event_type == "purchase"
    assert event.integration_type == "shopify"
    assert event.business_type == "ecommerce"

    message = render(event.message_template, render_context(event))
    assert "Sam" in message
    assert "Mug" in message


def test_raw_payload_is_kept_in_event_data():
    event = normalize(_raw(payload=SHOPIFY_ORDER))
    assert event.event_data["line_items"] == [{"name": "Mug"}]
    assert event.event_data["currency"] == "USD"


def test_unknown_source_maps_top_level_fields():
    event = normalize(
        _raw(
            source="zapier",
            event_type="signup",
            payload={"name": "Lee", "email": "lee@x.io", "location": "Berlin"},
        )
    )
    assert event.user_name == "Lee"
    assert event.user_email == "lee@x.io"
    assert event.user_location == "Berlin"
    assert event.event_type == "signup"
    assert event.moderation_status == ModerationStatus.pending


def test_unknown_source_without_fields_never_fails():
    event = normalize(_raw(source="mystery"))
    assert event.user_name is None
    assert event.event_type == "custom"
    assert event.message_template == "{{user_name}} just took an action"


def test_trusted_sources_are_auto_approved():
    assert normalize(_raw()).moderation_status == ModerationStatus.approved
    assert normalize(_raw(source="form_hook")).moderation_status == ModerationStatus.pending
    assert (
        normalize(_raw(source="form_hook"), trusted_sources=["form_hook"]).moderation_status
        == ModerationStatus.approved
    )


def test_specific_adapter_falls_back_to_generic_identity():
    event = normalize(_raw(payload={"user_name": "Kim", "location": "Oslo"}))
    assert event.user_name == "Kim"
    assert event.user_location == "Oslo"


def test_broken_adapter_does_not_fail_normalization():
    class ExplodingAdapter(BaseAdapter):
        source = "exploding"

        def extract_identity(self, data):
            raise KeyError("customer")

        def extract_domain_fields(self, data):
            raise TypeError("bad shape")

    register_adapter(ExplodingAdapter())
    try:
        event = normalize(_raw(source="exploding", payload={"name": "Ana"}))
    finally:
        unregister_adapter("exploding")

    assert event.user_name == "Ana"
    assert event.event_data == {"name": "Ana"}


def test_stored_template_wins_over_fallback():
    templates = {("purchase", "shopify"): "{{user_name}} grabbed {{product_name}}"}
    event = normalize(_raw(payload=SHOPIFY_ORDER), templates=templates)
    assert event.message_template == "{{user_name}} grabbed {{product_name}}"


def test_origin_and_expiry_flags():
    event = normalize(
        _raw(payload={"is_demo": True, "expires_at": "2030-01-01T00:00:00Z"})
    )
    assert event.source == EventOrigin.demo
    assert event.expires_at == datetime(2030, 1, 1, tzinfo=timezone.utc)

    assert normalize(_raw(payload={"quick_win": True})).source == EventOrigin.quick_win
    assert normalize(_raw(payload={"expires_at": "soon"})).expires_at is None


def test_api_business_type_is_promoted():
    event = normalize(_raw(source="api", payload={"user_name": "Bo", "business_type": "saas"}))
    assert event.business_type == "saas"
    assert event.event_data["business_type"] == "saas"


def test_quality_score_values():
    assert calculate_quality_score(
        user_name=None, user_email=None, user_location=None, event_data={}
    ) == 40
    assert calculate_quality_score(
        user_name="Someone", user_email=None, user_location=None, event_data={}
    ) == 40
    assert calculate_quality_score(
        user_name="Sam",
        user_email="s@x.io",
        user_location="Austin, US",
        event_data={"a": 1, "b": 2, "c": 3, "d": 4},
    ) == 100


def test_quality_score_is_deterministic():
    first = normalize(_raw(payload=SHOPIFY_ORDER))
    second = normalize(_raw(payload=SHOPIFY_ORDER))
    assert first.quality_score == second.quality_score == 85


@pytest.mark.parametrize("bad", [None, "x", {"source": "shopify"}])
def test_batch_isolates_bad_envelopes(bad):
    items = [
        {"source": "shopify", "widget_id": "w1", "payload": SHOPIFY_ORDER},
        bad,
        {"source": "stripe", "widget_id": "w2", "payload": {"customer_email": "a.b@x.io"}},
    ]
    result = normalize_batch(items)

    assert [idx for idx, _ in result.normalized] == [0, 2]
    assert len(result.rejected) == 1
    assert result.rejected[0].index == 1
    assert result.rejected[0].reason == "invalid_envelope"
    assert result.rejected[0].errors


def test_anonymous_reviewer_is_not_scored_as_a_name():
    event = normalize(_raw(source="google_reviews"))
    assert event.user_name == ANONYMOUS_NAME
    assert event.quality_score == 40
    assert render_context(event.model_copy(update={"user_name": None}))["user_name"] == ANONYMOUS_NAME
