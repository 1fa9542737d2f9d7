"""
Unit tests for UsageEventRepository.

Tests database operations for the token ledger without mocking the database.
"""

import pytest
from datetime import datetime, timezone

from packages.billing.repositories.usage_repository import UsageEventRepository
from packages.billing.models.domain.entitlements import SubscriberRef
from packages.billing.models.domain.usage import UsageEventCreateModel


OCT_1 = datetime(2026, 10, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
class TestUsageEventRepository:
    """Tests for UsageEventRepository."""

    async def test_create_usage_event(self, test_db, sample_user_entity):
        repo = UsageEventRepository()

        event = await repo.create(
            UsageEventCreateModel(
                user_id=sample_user_entity.id,
                tokens=3,
                action="summarize",
                event_metadata={"document_id": 100},
            )
        )

        assert event.id is not None
        assert event.user_id == sample_user_entity.id
        assert event.team_id is None
        assert event.tokens == 3
        assert event.event_metadata["document_id"] == 100
        assert event.created_at is not None

    async def test_sum_tokens_since_filters_by_month(
        self, test_db, sample_user_entity
    ):
        repo = UsageEventRepository()
        for tokens, created_at in [
            (5, datetime(2026, 9, 30, 23, 59, tzinfo=timezone.utc)),
            (7, datetime(2026, 10, 1, 0, 0, tzinfo=timezone.utc)),
            (11, datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)),
        ]:
            await repo.create(
                UsageEventCreateModel(
                    user_id=sample_user_entity.id,
                    tokens=tokens,
                    action="chat",
                    created_at=created_at,
                )
            )

        total = await repo.sum_tokens_since(
            SubscriberRef.for_user(sample_user_entity.id), OCT_1
        )

        assert total == 18

    async def test_sum_tokens_since_is_zero_without_events(self, test_db):
        repo = UsageEventRepository()

        total = await repo.sum_tokens_since(SubscriberRef.for_team(999), OCT_1)

        assert total == 0

    async def test_team_scope_counts_all_members(
        self, test_db, sample_user_entity, other_user_entity, sample_team_entity
    ):
        repo = UsageEventRepository()
        at = datetime(2026, 10, 2, tzinfo=timezone.utc)
        await repo.create(
            UsageEventCreateModel(
                user_id=sample_user_entity.id,
                team_id=sample_team_entity.id,
                tokens=4,
                action="chat",
                created_at=at,
            )
        )
        await repo.create(
            UsageEventCreateModel(
                user_id=other_user_entity.id,
                team_id=sample_team_entity.id,
                tokens=6,
                action="chat",
                created_at=at,
            )
        )
        # Personal usage outside the team
        await repo.create(
            UsageEventCreateModel(
                user_id=other_user_entity.id, tokens=50, action="chat", created_at=at
            )
        )

        team_total = await repo.sum_tokens_since(
            SubscriberRef.for_team(sample_team_entity.id), OCT_1
        )
        user_total = await repo.sum_tokens_since(
            SubscriberRef.for_user(other_user_entity.id), OCT_1
        )

        assert team_total == 10
        assert user_total == 56

    async def test_get_recent_newest_first_with_limit(
        self, test_db, sample_user_entity
    ):
        repo = UsageEventRepository()
        for day in (3, 1, 2):
            await repo.create(
                UsageEventCreateModel(
                    user_id=sample_user_entity.id,
                    tokens=day,
                    action=f"day-{day}",
                    created_at=datetime(2026, 10, day, tzinfo=timezone.utc),
                )
            )

        recent = await repo.get_recent(
            SubscriberRef.for_user(sample_user_entity.id), limit=2
        )

        assert [e.action for e in recent] == ["day-3", "day-2"]

    async def test_get_recent_pages_with_before(self, test_db, sample_user_entity):
        repo = UsageEventRepository()
        for day in (1, 2, 3):
            await repo.create(
                UsageEventCreateModel(
                    user_id=sample_user_entity.id,
                    tokens=1,
                    action=f"day-{day}",
                    created_at=datetime(2026, 10, day, tzinfo=timezone.utc),
                )
            )

        older = await repo.get_recent(
            SubscriberRef.for_user(sample_user_entity.id),
            limit=10,
            before=datetime(2026, 10, 3, tzinfo=timezone.utc),
        )

        assert [e.action for e in older] == ["day-2", "day-1"]

    async def test_equal_timestamps_break_ties_by_id(
        self, test_db, sample_user_entity
    ):
        repo = UsageEventRepository()
        at = datetime(2026, 10, 5, tzinfo=timezone.utc)
        first = await repo.create(
            UsageEventCreateModel(
                user_id=sample_user_entity.id, tokens=1, action="a", created_at=at
            )
        )
        second = await repo.create(
            UsageEventCreateModel(
                user_id=sample_user_entity.id, tokens=1, action="b", created_at=at
            )
        )

        recent = await repo.get_recent(
            SubscriberRef.for_user(sample_user_entity.id), limit=5
        )

        assert [e.id for e in recent] == [second.id, first.id]
