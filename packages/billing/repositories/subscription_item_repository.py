from typing import Sequence
from sqlalchemy import delete, select

from common.core.otel_axiom_exporter import trace_span
from common.repositories.base import BaseRepository
from packages.billing.models.database.subscription_item import SubscriptionItemEntity
from packages.billing.models.domain.subscription import (
    SubscriptionItem,
    SubscriptionItemCreateModel,
)


class SubscriptionItemRepository(
    BaseRepository[SubscriptionItemEntity, SubscriptionItem]
):
    def __init__(self):
        super().__init__(SubscriptionItemEntity, SubscriptionItem)

    @trace_span
    async def get_by_subscription(self, subscription_id: str) -> list[SubscriptionItem]:
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionItemEntity)
                .where(SubscriptionItemEntity.stripe_subscription_id == subscription_id)
                .order_by(SubscriptionItemEntity.id)
            )
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def delete_by_subscription(self, subscription_id: str) -> int:
        async with self._get_session() as session:
            result = await session.execute(
                delete(SubscriptionItemEntity).where(
                    SubscriptionItemEntity.stripe_subscription_id == subscription_id
                )
            )
            return result.rowcount or 0

    @trace_span
    async def replace_for_subscription(
        self, subscription_id: str, items: Sequence[SubscriptionItemCreateModel]
    ) -> list[SubscriptionItem]:
        """Delete every row of the subscription, then insert ``items``."""
        await self.delete_by_subscription(subscription_id)
        entities = [
            SubscriptionItemEntity(**item.model_dump(exclude_none=True)) for item in items
        ]
        return await self.bulk_create(entities)
