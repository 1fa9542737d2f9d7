import pytest
from unittest.mock import AsyncMock

from packages.billing.models.domain.subscription import ProviderPrice
from packages.billing.providers.metering.interface import MeterGatewayInterface
from packages.billing.providers.payment.interface import PaymentProviderInterface


@pytest.fixture
def mock_payment_provider():
    """Create a mock payment provider instance for testing."""
    provider = AsyncMock(spec=PaymentProviderInterface)
    provider.get_product_name = AsyncMock(return_value=None)
    provider.list_active_subscriptions = AsyncMock(return_value=[])
    provider.cancel_subscription = AsyncMock(return_value=None)
    provider.retrieve_subscription = AsyncMock(return_value=None)
    provider.get_price = AsyncMock(
        side_effect=lambda price_id: ProviderPrice(id=price_id, is_metered=False)
    )
    provider.create_checkout_session = AsyncMock(
        return_value="https://checkout.stripe.test/c/cs_123"
    )
    provider.create_customer_portal_session = AsyncMock(
        return_value="https://billing.stripe.test/p/session_123"
    )
    provider.update_subscription_price = AsyncMock(return_value=None)
    provider.cancel_subscription_at_period_end = AsyncMock(return_value=None)
    provider.health_check = AsyncMock(return_value=True)
    return provider


@pytest.fixture
def mock_meter_gateway():
    """Create a mock meter gateway instance for testing."""
    gateway = AsyncMock(spec=MeterGatewayInterface)
    gateway.create_meter_event = AsyncMock(return_value="mev_123")
    return gateway
