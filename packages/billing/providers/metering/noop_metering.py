"""
No-op meter gateway.

Used when no Stripe key is configured (local development, tests). Usage is
still recorded locally by UsageService.
"""

from typing import Optional

from common.core.otel_axiom_exporter import get_logger
from packages.billing.providers.metering.interface import MeterGatewayInterface

logger = get_logger(__name__)


class NoOpMeterGateway(MeterGatewayInterface):
    """Meter gateway that reports nothing."""

    async def create_meter_event(
        self,
        event_name: str,
        customer_ref: str,
        value: int,
        idempotency_key: str,
    ) -> Optional[str]:
        logger.debug(
            f"Skipping meter event {event_name} for {customer_ref}: metering disabled",
            extra={"idempotency_key": idempotency_key, "value": value},
        )
        return None

    async def health_check(self) -> bool:
        """Always healthy since there's no external dependency."""
        return True
