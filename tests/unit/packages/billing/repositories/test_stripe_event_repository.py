import pytest

from packages.billing.repositories.stripe_event_repository import StripeEventRepository


@pytest.mark.asyncio
class TestStripeEventRepository:
    async def test_record_if_new_is_idempotent(self, test_db):
        repo = StripeEventRepository()

        assert await repo.record_if_new("evt_1", "invoice.paid", {"id": "evt_1"}) is True
        assert await repo.record_if_new("evt_1", "invoice.paid", {"id": "evt_1"}) is False

    async def test_exists(self, test_db):
        repo = StripeEventRepository()

        assert await repo.exists("evt_2") is False
        await repo.record_if_new("evt_2", "customer.subscription.updated")
        assert await repo.exists("evt_2") is True
