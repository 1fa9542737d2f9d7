"""
Domain models for mirrored Stripe subscription state.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class SubscriptionItem(BaseModel):
    """One line item of a team subscription, as last reconciled."""

    id: int
    team_id: int
    stripe_subscription_id: str
    stripe_subscription_item_id: str
    stripe_product_id: str
    stripe_price_id: str
    quantity: Optional[int] = None
    is_metered: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscriptionItemCreateModel(BaseModel):
    team_id: int
    stripe_subscription_id: str
    stripe_subscription_item_id: str
    stripe_product_id: str
    stripe_price_id: str
    quantity: Optional[int] = None
    is_metered: bool = False


class ProviderSubscriptionItem(BaseModel):
    id: str
    price_id: str
    quantity: Optional[int] = None
    is_metered: bool = False


class ProviderSubscription(BaseModel):
    """Subscription summary as returned by the payment provider."""

    id: str
    customer_id: str
    status: str
    created: int
    # Populated when the subscription is retrieved individually
    items: list[ProviderSubscriptionItem] = []
    current_period_end: Optional[int] = None
    cancel_at_period_end: bool = False

    @property
    def primary_item(self) -> Optional[ProviderSubscriptionItem]:
        return self.items[0] if self.items else None


class ProviderPrice(BaseModel):
    id: str
    is_metered: bool = False


class SwitchOutcome(str, Enum):
    """What a plan switch did at the payment provider."""

    # The price on the existing subscription was replaced in place
    UPDATED = "updated"
    # The old subscription is (being) canceled; a new checkout is needed
    CHECKOUT_REQUIRED = "checkout_required"


class PlanSwitchResult(BaseModel):
    outcome: SwitchOutcome
    plan_type: str
    subscription_id: Optional[str] = None


class SubscriptionSummary(BaseModel):
    """Live view of a team subscription for seat management."""

    quantity: int
    status: str
    current_period_end: Optional[int] = None
    cancel_at_period_end: bool = False
