from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from notiproof.pipeline.db.repository import (
    delete_weight,
    insert_event,
    load_active_templates,
    query_by_type_and_window,
    query_weights,
    upsert_weight,
)
from notiproof.pipeline.db.seed_db import apply_seed
from notiproof.pipeline.engine.errors import SourceFetchError
from notiproof.pipeline.engine.events.models import ModerationStatus


async def test_insert_assigns_id(db_session, make_event):
    stored = await insert_event(db_session, make_event())
    await db_session.commit()
    assert stored.id
    assert stored.moderation_status == ModerationStatus.approved


async def test_query_by_type_and_window(db_session, make_event, now):
    for days, widget in ((0, "w1"), (2, "w1"), (10, "w1"), (1, "other")):
        await insert_event(db_session, make_event(days_ago=days, widget_id=widget))
    await insert_event(db_session, make_event(moderation_status=ModerationStatus.pending))
    await insert_event(db_session, make_event("signup"))
    await db_session.commit()

    rows = await query_by_type_and_window(
        db_session,
        widget_ids=["w1"],
        event_type="purchase",
        since=now - timedelta(days=7),
        limit=10,
    )
    assert len(rows) == 2
    assert rows[0].created_at >= rows[1].created_at


async def test_query_respects_limit_and_empty_widgets(db_session, make_event, now):
    for _ in range(4):
        await insert_event(db_session, make_event())
    await db_session.commit()

    since = now - timedelta(days=7)
    assert len(await query_by_type_and_window(db_session, widget_ids=["w1"], event_type="purchase", since=since, limit=2)) == 2
    assert await query_by_type_and_window(db_session, widget_ids=[], event_type="purchase", since=since, limit=2) == []


async def test_weight_override_lifecycle(db_session):
    await upsert_weight(db_session, website_id="s1", event_type="purchase", weight=3, max_per_queue=4, ttl_days=5)
    await upsert_weight(db_session, website_id="s1", event_type="purchase", weight=7, max_per_queue=4, ttl_days=5)
    await db_session.commit()

    rows = await query_weights(db_session, "s1")
    assert [(r.event_type, r.weight) for r in rows] == [("purchase", 7)]
    assert await query_weights(db_session, "s2") == []

    assert await delete_weight(db_session, website_id="s1", event_type="purchase") == 1
    await db_session.commit()
    assert await query_weights(db_session, "s1") == []


async def test_load_active_templates_keeps_highest_priority(db_session):
    await apply_seed(
        db_session,
        templates=[
            {"id": "low", "event_type": "purchase", "integration_type": "shopify", "template": "low", "priority": 1},
            {"id": "high", "event_type": "purchase", "integration_type": "shopify", "template": "high", "priority": 9},
            {"id": "off", "event_type": "purchase", "integration_type": "shopify", "template": "off", "priority": 99, "is_active": False},
            {"event_type": "review", "integration_type": "google_reviews", "template": "review"},
        ],
        weights=[],
    )

    templates = await load_active_templates(db_session)
    assert templates[("purchase", "shopify")] == "high"
    assert templates[("review", "google_reviews")] == "review"

    only_shopify = await load_active_templates(db_session, "shopify")
    assert list(only_shopify) == [("purchase", "shopify")]


async def test_read_failure_surfaces_as_source_fetch_error(db_session, monkeypatch, now):
    async def _boom(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(db_session, "execute", _boom)

    with pytest.raises(SourceFetchError) as exc:
        await query_by_type_and_window(
            db_session, widget_ids=["w1"], event_type="purchase", since=now, limit=5
        )
    assert exc.value.details["event_type"] == "purchase"

    with pytest.raises(SourceFetchError):
        await query_weights(db_session, "s1")


async def test_seeded_templates_keep_every_priority(db_session):
    await apply_seed(
        db_session,
        templates=[
            {"event_type": "purchase", "integration_type": "shopify", "template": "HIGH {{user_name}}", "priority": 10},
            {"event_type": "purchase", "integration_type": "shopify", "template": "LOW {{user_name}}", "priority": 1},
        ],
        weights=[],
    )

    templates = await load_active_templates(db_session, "shopify")
    assert templates[("purchase", "shopify")] == "HIGH {{user_name}}"
