"""
Service for the token usage ledger.

Recording does not enforce limits; callers check entitlement first.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.repositories.usage_repository import UsageEventRepository
from packages.billing.models.domain.entitlements import SubscriberRef
from packages.billing.models.domain.usage import (
    UsageEvent,
    UsageEventCreateModel,
    check_token_quantity,
    month_start,
)

logger = get_logger(__name__)


class UsageService:
    """Service for token usage tracking."""

    def __init__(self):
        self.usage_repo = UsageEventRepository()

    @trace_span
    async def record(
        self,
        user_id: int,
        team_id: Optional[int],
        tokens: int,
        action: str,
        meter_ref: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        created_at: Optional[datetime] = None,
    ) -> UsageEvent:
        """
        Append one usage event.

        Args:
            user_id: Acting user
            team_id: Team of the acting user, if any
            tokens: Token quantity, 1 to MAX_TOKENS_PER_EVENT
            action: Caller-supplied action label
            meter_ref: Stripe meter event id when the usage was reported
            metadata: Opaque context stored with the event
            created_at: Override for backfills; the database stamps it otherwise
        """
        check_token_quantity(tokens)

        event = await self.usage_repo.create(
            UsageEventCreateModel(
                user_id=user_id,
                team_id=team_id,
                tokens=tokens,
                action=action,
                stripe_meter_event_id=meter_ref,
                event_metadata=metadata,
                created_at=created_at,
            )
        )

        logger.info(
            f"Recorded {tokens} tokens for user {user_id}",
            extra={
                "event_id": event.id,
                "user_id": user_id,
                "team_id": team_id,
                "tokens": tokens,
                "action": action,
                "metered": meter_ref is not None,
            },
        )
        return event

    @trace_span
    async def monthly_total(
        self, subscriber: SubscriberRef, as_of: Optional[datetime] = None
    ) -> int:
        """Tokens recorded since the first day of ``as_of``'s calendar month."""
        as_of = as_of or datetime.now(timezone.utc)
        return await self.usage_repo.sum_tokens_since(subscriber, month_start(as_of))

    @trace_span
    async def recent_history(
        self,
        subscriber: SubscriberRef,
        limit: int,
        before: Optional[datetime] = None,
    ) -> list[UsageEvent]:
        return await self.usage_repo.get_recent(subscriber, limit, before=before)

    @trace_span
    async def lock_subscriber(self, subscriber: SubscriberRef) -> None:
        """Hold the subscriber's usage lock until the current transaction ends."""
        await self.usage_repo.acquire_subscriber_lock(subscriber)
