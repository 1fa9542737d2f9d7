"""
Service for reporting consumption to the external billing meter.

Reporting is best effort: the local ledger is the source of truth, so a
report that cannot be delivered is logged and skipped instead of failing the
consumption request.
"""

from typing import Optional

import stripe

from common.core.config import Settings
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.retry import exponential_delays, retry_async
from packages.billing.providers.metering.interface import MeterGatewayInterface

logger = get_logger(__name__)


def is_retryable_stripe_error(exc: BaseException) -> bool:
    """Rate limits, connection failures and 5xx responses are worth retrying."""
    if isinstance(exc, (stripe.error.RateLimitError, stripe.error.APIConnectionError)):
        return True
    if isinstance(exc, stripe.error.APIError):
        return (exc.http_status or 0) >= 500
    return False


def format_stripe_error(exc: BaseException) -> str:
    """Short user-facing message for a Stripe failure."""
    if isinstance(exc, stripe.error.CardError):
        return exc.user_message or "Your card was declined"
    if isinstance(exc, stripe.error.RateLimitError):
        return "Too many requests. Please try again later"
    if isinstance(exc, stripe.error.InvalidRequestError):
        return "Invalid request to the payment provider"
    if isinstance(exc, stripe.error.AuthenticationError):
        return "Payment provider authentication failed"
    if isinstance(exc, stripe.error.APIConnectionError):
        return "Could not reach the payment provider"
    if isinstance(exc, stripe.error.StripeError):
        return "The payment provider returned an error"
    return "An unexpected error occurred"


def meter_idempotency_key(user_id: int, epoch_millis: int) -> str:
    return f"token-{user_id}-{epoch_millis}"


class MeteringService:
    """Meter reporting with bounded exponential backoff."""

    def __init__(self, gateway: MeterGatewayInterface, settings: Settings):
        self.gateway = gateway
        self.delays = exponential_delays(
            settings.meter_report_max_attempts,
            settings.meter_report_initial_delay_seconds,
        )

    @trace_span
    async def report(
        self,
        event_name: str,
        customer_ref: str,
        value: int,
        idempotency_key: str,
    ) -> Optional[str]:
        """
        Report ``value`` for ``customer_ref``.

        Returns the meter event identifier, or None when the report could
        not be delivered.
        """

        async def _send() -> Optional[str]:
            return await self.gateway.create_meter_event(
                event_name=event_name,
                customer_ref=customer_ref,
                value=value,
                idempotency_key=idempotency_key,
            )

        try:
            meter_ref = await retry_async(
                _send,
                should_retry=is_retryable_stripe_error,
                delays=self.delays,
                operation_name="meter_report",
            )
        except Exception as e:
            logger.error(
                f"Meter report failed for customer {customer_ref}: {format_stripe_error(e)}",
                extra={
                    "operation": "meter_report",
                    "customer_id": customer_ref,
                    "idempotency_key": idempotency_key,
                    "max_attempts": len(self.delays) + 1,
                    "error_type": type(e).__name__,
                    "retryable": is_retryable_stripe_error(e),
                },
            )
            return None

        logger.info(
            f"Reported {value} to meter {event_name}",
            extra={
                "customer_id": customer_ref,
                "meter_event_id": meter_ref,
                "idempotency_key": idempotency_key,
            },
        )
        return meter_ref
