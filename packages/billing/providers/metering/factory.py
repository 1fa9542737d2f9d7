"""
Factory for getting the meter gateway.
"""

from common.core.config import Settings
from packages.billing.providers.metering.interface import MeterGatewayInterface
from packages.billing.providers.metering.noop_metering import NoOpMeterGateway
from packages.billing.providers.metering.stripe_metering import StripeMeterGateway


def get_meter_gateway(settings: Settings) -> MeterGatewayInterface:
    """
    Stripe when a secret key is configured, otherwise the no-op gateway.

    Returns:
        MeterGatewayInterface: Configured meter gateway
    """
    if settings.stripe_secret_key:
        return StripeMeterGateway(api_key=settings.stripe_secret_key)
    return NoOpMeterGateway()
