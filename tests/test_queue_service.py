import random

import pytest

from notiproof.pipeline.db import repository
from notiproof.pipeline.db.repository import insert_event, upsert_weight
from notiproof.pipeline.engine import queue_service
from notiproof.pipeline.engine.eligibility import resolve_weights
from notiproof.pipeline.engine.errors import QueueBuildError, SourceFetchError
from notiproof.pipeline.engine.events.models import EventOrigin, RawEvent
from notiproof.pipeline.engine.ingest_service import ingest_event
from notiproof.pipeline.engine.queue_service import (
    assemble_queue,
    build_notification_queue,
    clamp_target_size,
    render_queue_item,
)


def test_render_queue_item_hides_email(make_event, now):
    item = render_queue_item(make_event(user_email="sam@x.io"), now=now)
    assert "user_email" not in item
    assert item["message"] == "Sam just bought Mug"
    assert item["time_ago"] == "just now"
    assert item["show_verified"] is True
    assert item["event_data"]["show_verified"] is True


def test_demo_events_are_never_verified(make_event, now):
    item = render_queue_item(make_event(source=EventOrigin.demo), now=now)
    assert item["show_verified"] is False


def test_assemble_queue_metadata(make_event, now):
    grouped = {
        "purchase": [make_event(id=f"p{i}") for i in range(3)],
        "signup": [],
    }
    result = assemble_queue(grouped, resolve_weights(), 15, rng=random.Random(0), now=now)

    meta = result.queue_metadata
    assert meta.total_available == 3
    assert meta.queue_size == 3
    assert meta.distribution == {"purchase": 3}
    assert meta.weights_applied["purchase"] == 10
    assert meta.generated_at == now
    assert [e["id"] for e in result.events] == ["p0", "p1", "p2"]


def test_clamp_target_size():
    assert clamp_target_size(None) == 15
    assert clamp_target_size(500) == 50
    assert clamp_target_size(-3) == 0


async def test_build_queue_from_store(db_session, make_event, now):
    for i in range(3):
        await insert_event(db_session, make_event(days_ago=i))
    await insert_event(db_session, make_event("purchase", days_ago=30))
    await insert_event(db_session, make_event("testimonial", days_ago=30, event_data={"message": "Love it"}))
    await insert_event(db_session, make_event("signup", widget_id="someone-else"))
    await db_session.commit()

    result = await build_notification_queue(
        db_session, website_id="site-1", widget_ids=["w1"], rng=random.Random(1), now=now
    )

    assert result.queue_metadata.distribution == {"purchase": 3, "testimonial": 1}
    assert result.queue_metadata.degraded_types == []
    assert all("user_email" not in e for e in result.events)


async def test_website_override_changes_rules(db_session, make_event, now):
    for _ in range(5):
        await insert_event(db_session, make_event())
    await upsert_weight(db_session, website_id="site-1", event_type="purchase", weight=10, max_per_queue=2, ttl_days=7)
    await db_session.commit()

    result = await build_notification_queue(db_session, website_id="site-1", widget_ids=["w1"], now=now)
    assert result.queue_metadata.queue_size == 2

    other = await build_notification_queue(db_session, website_id="site-2", widget_ids=["w1"], now=now)
    assert other.queue_metadata.queue_size == 5


async def test_failed_type_degrades_to_empty(db_session, make_event, now, monkeypatch):
    await insert_event(db_session, make_event())
    await insert_event(db_session, make_event("signup"))
    await db_session.commit()

    real_query = repository.query_by_type_and_window

    async def _flaky(db, *, event_type, **kwargs):
        if event_type == "signup":
            raise SourceFetchError("boom", details={"event_type": event_type})
        return await real_query(db, event_type=event_type, **kwargs)

    monkeypatch.setattr(queue_service, "query_by_type_and_window", _flaky)

    result = await build_notification_queue(db_session, website_id="site-1", widget_ids=["w1"], now=now)
    assert result.queue_metadata.degraded_types == ["signup"]
    assert result.queue_metadata.distribution == {"purchase": 1}


async def test_all_sources_failing_raises(db_session, now, monkeypatch):
    async def _down(db, **kwargs):
        raise SourceFetchError("down")

    monkeypatch.setattr(queue_service, "query_by_type_and_window", _down)

    with pytest.raises(QueueBuildError) as exc:
        await build_notification_queue(db_session, website_id="site-1", widget_ids=["w1"], now=now)
    assert exc.value.reason == "all_sources_failed"


async def test_weights_unavailable_raises(db_session, now, monkeypatch):
    async def _down(db, website_id):
        raise SourceFetchError("down", details={"website_id": website_id})

    monkeypatch.setattr(queue_service, "query_weights", _down)

    with pytest.raises(QueueBuildError) as exc:
        await build_notification_queue(db_session, website_id="site-1", widget_ids=["w1"], now=now)
    assert exc.value.reason == "weights_unavailable"


async def test_empty_store_gives_empty_queue(db_session, now):
    result = await build_notification_queue(db_session, website_id="site-1", widget_ids=["w1"], now=now)
    assert result.events == []
    assert result.queue_metadata.queue_size == 0
    assert result.queue_metadata.generated_at == now


async def test_every_integration_reaches_the_queue(db_session):
    await ingest_event(
        db_session,
        RawEvent(
            source="stripe",
            event_type="customer.subscription.created",
            payload={"customer_email": "jane.doe@example.com"},
            widget_id="w1",
        ),
    )
    await ingest_event(
        db_session,
        RawEvent(source="google_reviews", payload={"author_name": "Ana", "rating": 5}, widget_id="w1"),
    )

    result = await build_notification_queue(db_session, website_id="s", widget_ids=["w1"])

    assert result.queue_metadata.queue_size == 2
    assert result.queue_metadata.distribution == {"subscription": 1, "review": 1}
    assert {e["user_name"] for e in result.events} == {"Jane Doe", "Ana"}
