from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from notiproof.pipeline.db.models import utc_now


# Display name used when a source carries no identity; never scored as a real name.
ANONYMOUS_NAME = "Someone"


class IntegrationSource(str, Enum):
    shopify = "shopify"
    woocommerce = "woocommerce"
    stripe = "stripe"
    google_reviews = "google_reviews"
    custom_sdk = "custom_sdk"
    api = "api"
    form_hook = "form_hook"
    javascript_api = "javascript_api"
    webhook = "webhook"


class ModerationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    flagged = "flagged"


class EventOrigin(str, Enum):
    natural = "natural"
    quick_win = "quick_win"
    demo = "demo"
    manual = "manual"


class RawEvent(BaseModel):
    # Kept as a plain string: unknown sources are normalized generically, not rejected.
    source: str
    event_type: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)
    widget_id: str = Field(..., min_length=1)
    website_id: Optional[str] = None
    received_at: datetime = Field(default_factory=utc_now)


class NormalizedEvent(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    widget_id: str
    website_id: Optional[str] = None
    event_type: str
    event_data: Dict[str, Any] = Field(default_factory=dict)

    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_location: Optional[str] = None

    message_template: str = ""
    integration_type: str
    moderation_status: ModerationStatus = ModerationStatus.pending
    quality_score: int = Field(0, ge=0, le=100)
    business_type: Optional[str] = None
    source: EventOrigin = EventOrigin.natural

    created_at: datetime = Field(default_factory=utc_now)
    expires_at: Optional[datetime] = None
