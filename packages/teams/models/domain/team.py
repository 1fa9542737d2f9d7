from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from packages.billing.models.domain.enums import SubscriptionStatus


class Team(BaseModel):
    id: int
    name: str
    owner_id: Optional[int] = None
    seat_count: int = 1
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_product_id: Optional[str] = None
    plan_type: Optional[str] = None
    subscription_status: Optional[SubscriptionStatus] = None
    deleted: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TeamBillingUpdateModel(BaseModel):
    """Billing fields written by webhook reconciliation."""

    model_config = ConfigDict(use_enum_values=True)

    stripe_subscription_id: Optional[str] = None
    stripe_product_id: Optional[str] = None
    plan_type: Optional[str] = None
    subscription_status: Optional[SubscriptionStatus] = None
