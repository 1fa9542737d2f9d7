"""
Stripe Billing meter gateway.

Reports usage through the Meter Events API.
"""

from typing import Optional

import stripe

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.providers.metering.interface import MeterGatewayInterface

logger = get_logger(__name__)


class StripeMeterGateway(MeterGatewayInterface):
    """Meter gateway backed by stripe.billing.MeterEvent."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    @trace_span
    async def create_meter_event(
        self,
        event_name: str,
        customer_ref: str,
        value: int,
        idempotency_key: str,
    ) -> Optional[str]:
        # Errors propagate untouched; the caller classifies them for retry
        meter_event = stripe.billing.MeterEvent.create(
            event_name=event_name,
            payload={"stripe_customer_id": customer_ref, "value": str(value)},
            identifier=idempotency_key,
            api_key=self.api_key,
        )
        return meter_event.identifier

    @trace_span
    async def health_check(self) -> bool:
        try:
            stripe.Account.retrieve(api_key=self.api_key)
            return True
        except Exception as e:
            logger.error(f"Meter gateway health check failed: {e}")
            return False
