"""
Administrative cleanup of duplicate Stripe subscriptions.

A customer should have at most one active subscription. Double checkouts can
leave more; this keeps the newest and cancels the rest.
"""

from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.locks import acquire_xact_lock
from common.db.scoped import transaction
from packages.billing.lock_keys import stripe_customer_lock_key
from packages.billing.providers.payment.interface import PaymentProviderInterface

logger = get_logger(__name__)


class SubscriptionCleanupService:
    def __init__(self, payment_provider: PaymentProviderInterface):
        self.payment_provider = payment_provider

    @trace_span
    async def cleanup_duplicate_subscriptions(self, customer_id: str) -> list[str]:
        """
        Cancel all but the newest active subscription of a customer.

        Holds the customer's advisory lock so it never interleaves with
        webhook reconciliation for the same customer. Safe to run repeatedly.

        Returns:
            IDs of the subscriptions that were canceled
        """
        canceled: list[str] = []

        async with transaction() as session:
            await acquire_xact_lock(session, stripe_customer_lock_key(customer_id))

            subscriptions = await self.payment_provider.list_active_subscriptions(
                customer_id
            )
            if len(subscriptions) <= 1:
                return canceled

            newest_first = sorted(subscriptions, key=lambda sub: sub.created, reverse=True)
            keep = newest_first[0]
            for duplicate in newest_first[1:]:
                await self.payment_provider.cancel_subscription(duplicate.id)
                canceled.append(duplicate.id)

        logger.info(
            f"Canceled {len(canceled)} duplicate subscriptions for {customer_id}",
            extra={
                "customer_id": customer_id,
                "kept_subscription_id": keep.id,
                "canceled_subscription_ids": canceled,
            },
        )
        return canceled
