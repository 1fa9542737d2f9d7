"""
Domain models for the token usage ledger.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from common.core.exceptions import ValidationError
from packages.billing.models.domain.alerts import FiredAlert

# token_usage.tokens is a 32-bit INTEGER column
MAX_TOKENS_PER_EVENT = 2**31 - 1


class UsageEvent(BaseModel):
    """
    Individual token consumption record.

    Immutable once written; monthly totals are computed from created_at.
    """

    id: int
    user_id: int
    team_id: Optional[int] = None
    tokens: int
    action: str
    stripe_meter_event_id: Optional[str] = None
    event_metadata: Optional[dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UsageEventCreateModel(BaseModel):
    """Model for appending a usage event."""

    user_id: int
    team_id: Optional[int] = None
    tokens: int = Field(gt=0, le=MAX_TOKENS_PER_EVENT)
    action: str
    stripe_meter_event_id: Optional[str] = None
    event_metadata: Optional[dict[str, Any]] = None
    # Set explicitly only when backfilling; the database stamps it otherwise
    created_at: Optional[datetime] = None


class ConsumptionResult(BaseModel):
    """Outcome of a successful consumption request."""

    tokens: int
    action: str
    unlimited: bool = False
    event: UsageEvent
    monthly_total: Optional[int] = None
    triggered_alerts: list[FiredAlert] = Field(default_factory=list)


def month_start(as_of: datetime) -> datetime:
    """Midnight on the first calendar day of ``as_of``'s month, same tzinfo."""
    return as_of.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def check_token_quantity(tokens: int) -> None:
    """
    Raise ValidationError unless ``tokens`` fits one ledger row.

    Consumption calls this before anything is reported to Stripe, so a
    quantity the ledger cannot store is never billed.
    """
    if tokens <= 0:
        raise ValidationError("tokens must be a positive integer", {"tokens": tokens})
    if tokens > MAX_TOKENS_PER_EVENT:
        raise ValidationError(
            f"tokens must not exceed {MAX_TOKENS_PER_EVENT}", {"tokens": tokens}
        )
