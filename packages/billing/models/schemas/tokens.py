"""
API schemas for token consumption and usage.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from packages.billing.models.domain.usage import MAX_TOKENS_PER_EVENT, UsageEvent


class ConsumeTokensRequest(BaseModel):
    """Request to consume tokens for an action."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: str = Field(..., min_length=1, max_length=100)
    tokens: int = Field(default=1, gt=0, le=MAX_TOKENS_PER_EVENT)
    metadata: Optional[dict[str, Any]] = None


class ConsumeTokensResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    tokens: int
    action: str
    # Only present for unlimited plans
    unlimited: Optional[bool] = None


class UsageEventResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    user_id: int
    team_id: Optional[int] = None
    tokens: int
    action: str
    stripe_meter_event_id: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, event: UsageEvent) -> "UsageEventResponse":
        return cls(
            id=event.id,
            user_id=event.user_id,
            team_id=event.team_id,
            tokens=event.tokens,
            action=event.action,
            stripe_meter_event_id=event.stripe_meter_event_id,
            metadata=event.event_metadata,
            created_at=event.created_at,
        )


class TokenUsageResponse(BaseModel):
    """Monthly total plus the most recent usage events."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    monthly_total: int
    token_limit: int
    plan_type: Optional[str] = None
    recent_usage: list[UsageEventResponse]
