"""Database models for billing."""

from packages.billing.models.database.alerts import UsageAlertEntity
from packages.billing.models.database.stripe_event import StripeEventEntity
from packages.billing.models.database.subscription_item import SubscriptionItemEntity
from packages.billing.models.database.usage import UsageEventEntity

__all__ = [
    "StripeEventEntity",
    "SubscriptionItemEntity",
    "UsageAlertEntity",
    "UsageEventEntity",
]
