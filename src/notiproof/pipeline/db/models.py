from __future__ import annotations
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now():
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Event(Base):
    """Normalized social proof event. Append-only: rows are inserted, never updated in place."""

    __tablename__ = "events"
    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid4().hex
    )
    widget_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    website_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    message_template: Mapped[str] = mapped_column(Text, default="", nullable=False)
    integration_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # pending | approved | rejected | flagged
    moderation_status: Mapped[str] = mapped_column(
        String(20), default="pending", nullable=False
    )
    quality_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    business_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # natural | quick_win | demo | manual
    source: Mapped[str] = mapped_column(String(20), default="natural", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    __table_args__ = (
        Index(
            "ix_events_type_status_created",
            "event_type",
            "moderation_status",
            "created_at",
        ),
    )


class EventTemplate(Base):
    __tablename__ = "event_templates"
    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid4().hex
    )
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    integration_type: Mapped[str] = mapped_column(String(50), nullable=False)
    template: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class NotificationWeight(Base):
    """Per-website override of the default weight table."""

    __tablename__ = "notification_weights"
    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid4().hex
    )
    website_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)

    weight: Mapped[int] = mapped_column(Integer, nullable=False)
    max_per_queue: Mapped[int] = mapped_column(Integer, nullable=False)
    ttl_days: Mapped[int] = mapped_column(Integer, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "website_id", "event_type", name="uq_notification_weight_website_type"
        ),
    )
