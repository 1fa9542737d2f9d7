from typing import Any, Optional
from sqlalchemy import select

from common.core.otel_axiom_exporter import trace_span
from common.db.upsert import insert_ignoring_conflict
from common.repositories.base import BaseRepository
from packages.billing.models.database.stripe_event import StripeEventEntity
from packages.billing.models.domain.stripe_webhooks import StripeEventRecord


class StripeEventRepository(BaseRepository[StripeEventEntity, StripeEventRecord]):
    def __init__(self):
        super().__init__(StripeEventEntity, StripeEventRecord)

    @trace_span
    async def record_if_new(
        self, event_id: str, event_type: str, payload: Optional[dict[str, Any]] = None
    ) -> bool:
        """
        Insert the idempotency row for a Stripe event.

        Returns False when the event id was already recorded (duplicate
        delivery).
        """
        async with self._get_session() as session:
            row_id = await insert_ignoring_conflict(
                session,
                StripeEventEntity,
                {"event_id": event_id, "event_type": event_type, "payload": payload},
                index_elements=("event_id",),
            )
        return row_id is not None

    @trace_span
    async def exists(self, event_id: str) -> bool:
        async with self._get_session() as session:
            result = await session.execute(
                select(StripeEventEntity.id).where(StripeEventEntity.event_id == event_id)
            )
            return result.scalar_one_or_none() is not None
