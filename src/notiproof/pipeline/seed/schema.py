from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TemplateSeed(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    event_type: str
    integration_type: str
    template: str
    priority: int = 0
    is_active: bool = True


class WeightSeed(BaseModel):
    model_config = ConfigDict(extra="forbid")

    website_id: str
    event_type: str
    weight: int = Field(..., ge=0)
    max_per_queue: int = Field(..., ge=0)
    ttl_days: int = Field(..., ge=0)
