"""
Stripe implementation of payment provider.
"""

from typing import Optional
import stripe

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.subscription import (
    ProviderPrice,
    ProviderSubscription,
    ProviderSubscriptionItem,
)
from packages.billing.providers.payment.interface import PaymentProviderInterface

logger = get_logger(__name__)


class StripePaymentProvider(PaymentProviderInterface):
    """Stripe-based payment implementation."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    @trace_span
    async def get_product_name(self, product_id: str) -> Optional[str]:
        try:
            product = stripe.Product.retrieve(product_id, api_key=self.api_key)
            return product.get("name")
        except Exception as e:
            logger.error(
                f"Failed to retrieve Stripe product: {str(e)}",
                extra={"product_id": product_id, "error": str(e)},
            )
            raise

    @trace_span
    async def list_active_subscriptions(
        self, customer_id: str
    ) -> list[ProviderSubscription]:
        try:
            subscriptions = stripe.Subscription.list(
                customer=customer_id, status="active", limit=100, api_key=self.api_key
            )
            return [
                ProviderSubscription(
                    id=sub["id"],
                    customer_id=customer_id,
                    status=sub["status"],
                    created=sub["created"],
                )
                for sub in subscriptions.auto_paging_iter()
            ]
        except Exception as e:
            logger.error(
                f"Failed to list subscriptions: {str(e)}",
                extra={"customer_id": customer_id, "error": str(e)},
            )
            raise

    @trace_span
    async def cancel_subscription(self, subscription_id: str) -> None:
        """Cancel Stripe subscription."""
        try:
            stripe.Subscription.cancel(subscription_id, api_key=self.api_key)

            logger.info(
                "Cancelled Stripe subscription",
                extra={"subscription_id": subscription_id},
            )

        except Exception as e:
            logger.error(
                f"Failed to cancel subscription: {str(e)}",
                extra={"subscription_id": subscription_id, "error": str(e)},
            )
            raise

    @trace_span
    async def retrieve_subscription(
        self, subscription_id: str
    ) -> Optional[ProviderSubscription]:
        try:
            sub = stripe.Subscription.retrieve(subscription_id, api_key=self.api_key)
        except stripe.error.InvalidRequestError as e:
            if e.code == "resource_missing":
                return None
            raise

        items = [
            ProviderSubscriptionItem(
                id=item["id"],
                price_id=item["price"]["id"],
                quantity=item.get("quantity"),
                is_metered=_is_metered_price(item["price"]),
            )
            for item in sub["items"]["data"]
        ]
        # Newer API versions report the billing period per item
        period_end = sub.get("current_period_end")
        if period_end is None and sub["items"]["data"]:
            period_end = sub["items"]["data"][0].get("current_period_end")

        return ProviderSubscription(
            id=sub["id"],
            customer_id=sub["customer"],
            status=sub["status"],
            created=sub["created"],
            items=items,
            current_period_end=period_end,
            cancel_at_period_end=bool(sub.get("cancel_at_period_end")),
        )

    @trace_span
    async def get_price(self, price_id: str) -> ProviderPrice:
        price = stripe.Price.retrieve(price_id, api_key=self.api_key)
        return ProviderPrice(id=price["id"], is_metered=_is_metered_price(price))

    @trace_span
    async def create_checkout_session(
        self,
        price_id: str,
        client_reference_id: str,
        success_url: str,
        cancel_url: str,
        subscription_metadata: dict[str, str],
        customer_id: Optional[str] = None,
        quantity: Optional[int] = None,
        trial_period_days: Optional[int] = None,
    ) -> str:
        """
        Create Stripe checkout session.

        The webhook reconciler links the customer through
        client_reference_id and reads the plan from the subscription
        metadata, so both must be set.
        """
        try:
            line_item = {"price": price_id}
            if quantity is not None:
                line_item["quantity"] = quantity

            subscription_data = {"metadata": subscription_metadata}
            if trial_period_days:
                subscription_data["trial_period_days"] = trial_period_days

            params = {
                "payment_method_types": ["card"],
                "line_items": [line_item],
                "mode": "subscription",
                "success_url": success_url,
                "cancel_url": cancel_url,
                "client_reference_id": client_reference_id,
                "allow_promotion_codes": True,
                "subscription_data": subscription_data,
            }
            if customer_id:
                params["customer"] = customer_id

            session = stripe.checkout.Session.create(api_key=self.api_key, **params)

            logger.info(
                "Created Stripe checkout session",
                extra={
                    "user_id": client_reference_id,
                    "price_id": price_id,
                    "session_id": session.id,
                },
            )

            return session.url

        except Exception as e:
            logger.error(
                f"Failed to create checkout session: {str(e)}",
                extra={"user_id": client_reference_id, "error": str(e)},
            )
            raise

    @trace_span
    async def create_customer_portal_session(
        self,
        customer_id: str,
        return_url: str,
    ) -> str:
        """Create Stripe customer portal session."""
        try:
            session = stripe.billing_portal.Session.create(
                customer=customer_id,
                return_url=return_url,
                api_key=self.api_key,
            )

            logger.info(
                "Created Stripe portal session", extra={"customer_id": customer_id}
            )

            return session.url

        except Exception as e:
            logger.error(
                f"Failed to create portal session: {str(e)}",
                extra={"customer_id": customer_id, "error": str(e)},
            )
            raise

    @trace_span
    async def update_subscription_price(
        self,
        subscription_id: str,
        item_id: str,
        price_id: str,
        metadata: dict[str, str],
    ) -> None:
        try:
            stripe.Subscription.modify(
                subscription_id,
                items=[{"id": item_id, "price": price_id}],
                metadata=metadata,
                proration_behavior="create_prorations",
                api_key=self.api_key,
            )

            logger.info(
                f"Updated Stripe subscription to {price_id}",
                extra={"subscription_id": subscription_id, "price_id": price_id},
            )

        except Exception as e:
            logger.error(
                f"Failed to update subscription price: {str(e)}",
                extra={"subscription_id": subscription_id, "error": str(e)},
            )
            raise

    @trace_span
    async def cancel_subscription_at_period_end(self, subscription_id: str) -> None:
        try:
            stripe.Subscription.modify(
                subscription_id, cancel_at_period_end=True, api_key=self.api_key
            )

            logger.info(
                "Scheduled Stripe subscription cancellation at period end",
                extra={"subscription_id": subscription_id},
            )

        except Exception as e:
            logger.error(
                f"Failed to schedule subscription cancellation: {str(e)}",
                extra={"subscription_id": subscription_id, "error": str(e)},
            )
            raise

    @trace_span
    async def health_check(self) -> bool:
        """Check Stripe health."""
        try:
            # Try to retrieve account to verify API key works
            stripe.Account.retrieve(api_key=self.api_key)
            return True
        except Exception as e:
            logger.error(f"Payment health check failed: {e}")
            return False


def _is_metered_price(price) -> bool:
    recurring = price.get("recurring") or {}
    return recurring.get("usage_type") == "metered"
