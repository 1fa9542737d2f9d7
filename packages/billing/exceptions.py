"""
Billing error taxonomy.

Entitlement errors are terminal for the request and carry the HTTP status and
short message shown to the caller. OwnerNotFoundError is retryable: webhook
processing surfaces it so Stripe redelivers the event.
"""

from typing import Optional

from fastapi import status

from common.core.exceptions import AppException, ProcessingError


class EntitlementError(AppException):
    """The subscriber is not entitled to what it asked for."""

    status_code: int = status.HTTP_403_FORBIDDEN
    default_message: str = "Not entitled"

    def __init__(self, message: str = "", context: Optional[dict] = None):
        super().__init__(message or self.default_message, context)


class SubscriptionRequiredError(EntitlementError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "No active subscription found"


class FeatureUnavailableError(EntitlementError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, feature: str, context: Optional[dict] = None):
        super().__init__(f"Feature '{feature}' not available on current plan", context)
        self.feature = feature


class TokensExhaustedError(EntitlementError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Token limit reached for this month"


class OwnerNotFoundError(ProcessingError):
    """No team or user is linked to a Stripe customer (yet)."""

    def __init__(self, customer_id: str, subscription_id: Optional[str] = None):
        super().__init__(
            "Customer not found - will retry",
            {"customer_id": customer_id, "subscription_id": subscription_id},
        )
        self.customer_id = customer_id
