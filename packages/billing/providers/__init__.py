"""Billing providers - abstracted external platform integrations."""

from packages.billing.providers.metering.factory import get_meter_gateway
from packages.billing.providers.payment.factory import get_payment_provider

__all__ = [
    "get_meter_gateway",
    "get_payment_provider",
]
