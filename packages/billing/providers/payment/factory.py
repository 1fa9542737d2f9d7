"""
Factory for getting payment provider instance.
"""

from common.core.config import Settings
from packages.billing.providers.payment.interface import PaymentProviderInterface
from packages.billing.providers.payment.stripe_payment import StripePaymentProvider


def get_payment_provider(settings: Settings) -> PaymentProviderInterface:
    """
    Get payment provider instance based on configuration.

    Only Stripe is supported; the interface keeps callers testable.

    Returns:
        PaymentProviderInterface: Configured payment provider
    """
    return StripePaymentProvider(api_key=settings.stripe_secret_key)
