"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from notiproof.pipeline.db.models import Base
from notiproof.pipeline.db.session import get_db, make_engine, make_sessionmaker
from notiproof.pipeline.engine.events.models import (
    EventOrigin,
    ModerationStatus,
    NormalizedEvent,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_event():
    """Factory for approved, recent NormalizedEvents."""

    def _make(event_type="purchase", *, days_ago=0, **overrides):
        values = dict(
            widget_id="w1",
            website_id="site-1",
            event_type=event_type,
            event_data={"product_name": "Mug"},
            user_name="Sam",
            user_location="Austin, US",
            message_template="{{user_name}} just bought {{product_name}}",
            integration_type="shopify",
            moderation_status=ModerationStatus.approved,
            quality_score=75,
            source=EventOrigin.natural,
            created_at=NOW - timedelta(days=days_ago),
        )
        values.update(overrides)
        return NormalizedEvent(**values)

    return _make


@pytest.fixture
async def db_session():
    """Create a test database session."""
    # In-memory SQLite, one shared connection
    engine = make_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = make_sessionmaker(engine)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def client(db_session):
    """HTTP client bound to the app with get_db pointing at the test session."""
    from notiproof.pipeline.main import create_app

    app = create_app()

    async def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
