"""Advisory lock key generators for billing."""

from packages.billing.models.domain.entitlements import SubscriberRef


def subscriber_usage_lock_key(subscriber: SubscriberRef) -> str:
    """Serializes the cap check and append for one fixed-cap subscriber."""
    return f"token_usage:{subscriber.kind.value}:{subscriber.id}"


def stripe_customer_lock_key(customer_id: str) -> str:
    """Serializes subscription writes and cleanup for one Stripe customer."""
    return f"stripe_customer:{customer_id}"
