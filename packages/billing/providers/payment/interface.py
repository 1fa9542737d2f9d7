"""
Interface for payment providers.

Access to the payment platform used by webhook reconciliation, subscription
maintenance and the checkout, portal and plan-switch endpoints.
"""

from abc import ABC, abstractmethod
from typing import Optional

from packages.billing.models.domain.subscription import ProviderPrice, ProviderSubscription


class PaymentProviderInterface(ABC):
    """Abstract interface for payment providers."""

    @abstractmethod
    async def get_product_name(self, product_id: str) -> Optional[str]:
        """
        Display name of a product.

        Args:
            product_id: Payment provider product ID

        Returns:
            The product name, or None if the product has none
        """
        pass

    @abstractmethod
    async def list_active_subscriptions(
        self, customer_id: str
    ) -> list[ProviderSubscription]:
        """
        Active subscriptions of a customer.

        Args:
            customer_id: Payment provider customer ID
        """
        pass

    @abstractmethod
    async def cancel_subscription(self, subscription_id: str) -> None:
        """
        Cancel a subscription immediately.

        Args:
            subscription_id: Payment provider subscription ID
        """
        pass

    @abstractmethod
    async def retrieve_subscription(
        self, subscription_id: str
    ) -> Optional[ProviderSubscription]:
        """
        A subscription with its items and billing period.

        Returns:
            The subscription, or None if the provider no longer has it
        """
        pass

    @abstractmethod
    async def get_price(self, price_id: str) -> ProviderPrice:
        """
        A price, including whether it bills by metered usage.

        Args:
            price_id: Payment provider price ID
        """
        pass

    @abstractmethod
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
        Create a hosted checkout session for a new subscription.

        Args:
            price_id: Price to subscribe to
            client_reference_id: Internal user ID, echoed back on
                checkout.session.completed
            success_url: Redirect URL on success
            cancel_url: Redirect URL on cancel
            subscription_metadata: Copied onto the created subscription
            customer_id: Existing customer to attach the subscription to
            quantity: Seats; omitted for metered prices
            trial_period_days: Optional trial period

        Returns:
            The checkout URL
        """
        pass

    @abstractmethod
    async def create_customer_portal_session(
        self, customer_id: str, return_url: str
    ) -> str:
        """
        Create a self-service billing portal session.

        Returns:
            The portal URL
        """
        pass

    @abstractmethod
    async def update_subscription_price(
        self,
        subscription_id: str,
        item_id: str,
        price_id: str,
        metadata: dict[str, str],
    ) -> None:
        """
        Move a subscription item to another price, prorating the change.

        Args:
            subscription_id: Subscription to modify
            item_id: The item whose price is replaced
            price_id: New price
            metadata: Replaces the subscription metadata
        """
        pass

    @abstractmethod
    async def cancel_subscription_at_period_end(self, subscription_id: str) -> None:
        """
        Schedule cancellation once the paid period ends.

        Args:
            subscription_id: Payment provider subscription ID
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the payment provider is available and healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass
