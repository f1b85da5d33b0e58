"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

Events, message templates and per-website notification weight overrides.
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ------------------------------------------------------------------
    # events
    # ------------------------------------------------------------------
    op.create_table(
        "events",
        sa.Column("id", sa.String(64), primary_key=True, nullable=False),
        sa.Column("widget_id", sa.String(128), nullable=False),
        sa.Column("website_id", sa.String(128), nullable=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_data", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("user_name", sa.String(255), nullable=True),
        sa.Column("user_email", sa.String(255), nullable=True),
        sa.Column("user_location", sa.String(255), nullable=True),
        sa.Column("message_template", sa.Text(), nullable=False, server_default=""),
        sa.Column("integration_type", sa.String(50), nullable=False),
        sa.Column(
            "moderation_status", sa.String(20), nullable=False, server_default="pending"
        ),
        sa.Column("quality_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("business_type", sa.String(50), nullable=True),
        sa.Column("source", sa.String(20), nullable=False, server_default="natural"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_events_widget_id", "events", ["widget_id"])
    op.create_index(
        "ix_events_type_status_created",
        "events",
        ["event_type", "moderation_status", "created_at"],
    )

    # ------------------------------------------------------------------
    # event_templates
    # ------------------------------------------------------------------
    op.create_table(
        "event_templates",
        sa.Column("id", sa.String(64), primary_key=True, nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("integration_type", sa.String(50), nullable=False),
        sa.Column("template", sa.Text(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    # ------------------------------------------------------------------
    # notification_weights
    # ------------------------------------------------------------------
    op.create_table(
        "notification_weights",
        sa.Column("id", sa.String(64), primary_key=True, nullable=False),
        sa.Column("website_id", sa.String(128), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False),
        sa.Column("max_per_queue", sa.Integer(), nullable=False),
        sa.Column("ttl_days", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "website_id", "event_type", name="uq_notification_weight_website_type"
        ),
    )
    op.create_index(
        "ix_notification_weights_website_id", "notification_weights", ["website_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_notification_weights_website_id", table_name="notification_weights")
    op.drop_table("notification_weights")
    op.drop_table("event_templates")
    op.drop_index("ix_events_type_status_created", table_name="events")
    op.drop_index("ix_events_widget_id", table_name="events")
    op.drop_table("events")
