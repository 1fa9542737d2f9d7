from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from packages.billing.models.domain.enums import SubscriptionStatus


class User(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
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


class UserCreateModel(BaseModel):
    """Model for creating a new user."""

    email: str
    full_name: Optional[str] = None
    api_key_hash: Optional[str] = None


class UserBillingUpdateModel(BaseModel):
    """Billing fields written by webhook reconciliation.

    Only fields that were explicitly set are written, so None clears a column.
    """

    model_config = ConfigDict(use_enum_values=True)

    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_product_id: Optional[str] = None
    plan_type: Optional[str] = None
    subscription_status: Optional[SubscriptionStatus] = None
