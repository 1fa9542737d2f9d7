"""
Repository for the token usage ledger.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import select, func

from common.core.constants import SubscriberKind
from common.core.otel_axiom_exporter import trace_span
from common.db.locks import acquire_xact_lock
from common.repositories.base import BaseRepository
from packages.billing.lock_keys import subscriber_usage_lock_key
from packages.billing.models.database.usage import UsageEventEntity
from packages.billing.models.domain.entitlements import SubscriberRef
from packages.billing.models.domain.usage import UsageEvent


def _subscriber_filter(subscriber: SubscriberRef):
    if subscriber.kind == SubscriberKind.TEAM:
        return UsageEventEntity.team_id == subscriber.id
    return UsageEventEntity.user_id == subscriber.id


class UsageEventRepository(BaseRepository[UsageEventEntity, UsageEvent]):
    """Append-only access to token_usage rows."""

    def __init__(self):
        super().__init__(UsageEventEntity, UsageEvent)

    @trace_span
    async def sum_tokens_since(self, subscriber: SubscriberRef, since: datetime) -> int:
        """Sum of tokens recorded for a subscriber at or after ``since``."""
        async with self._get_session() as session:
            result = await session.execute(
                select(func.coalesce(func.sum(UsageEventEntity.tokens), 0)).where(
                    _subscriber_filter(subscriber),
                    UsageEventEntity.created_at >= since,
                )
            )
            return int(result.scalar_one() or 0)

    @trace_span
    async def get_recent(
        self,
        subscriber: SubscriberRef,
        limit: int,
        before: Optional[datetime] = None,
    ) -> list[UsageEvent]:
        """Newest first; pass the last created_at seen as ``before`` to page."""
        query = select(UsageEventEntity).where(_subscriber_filter(subscriber))
        if before is not None:
            query = query.where(UsageEventEntity.created_at < before)
        query = query.order_by(
            UsageEventEntity.created_at.desc(), UsageEventEntity.id.desc()
        ).limit(limit)

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def acquire_subscriber_lock(self, subscriber: SubscriberRef) -> None:
        """
        Serialize cap check + append for one subscriber.

        Transaction-scoped; released on commit or rollback.
        """
        async with self._get_session() as session:
            await acquire_xact_lock(session, subscriber_usage_lock_key(subscriber))
