"""
Unit tests for UsageAlertRepository.
"""

import pytest
from datetime import datetime, timezone

from packages.billing.models.domain.alerts import UsageAlertCreateModel
from packages.billing.models.domain.enums import AlertType
from packages.billing.repositories.alert_repository import UsageAlertRepository


NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _alert(team_id: int, alert_type: AlertType, month: str = "2026-10", pct: int = 80):
    return UsageAlertCreateModel(
        team_id=team_id,
        alert_type=alert_type,
        period_month=month,
        usage_percentage=pct,
        tokens_used=pct,
        tokens_limit=100,
        notification_sent=NOW,
        created_at=NOW,
    )


@pytest.mark.asyncio
class TestUsageAlertRepository:
    async def test_create_if_absent_inserts_once(self, test_db, sample_team_entity):
        repo = UsageAlertRepository()

        first = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.WARNING_80)
        )
        second = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.WARNING_80)
        )

        assert first is not None
        assert first.alert_type == AlertType.WARNING_80
        assert first.period_month == "2026-10"
        assert second is None

    async def test_same_threshold_allowed_in_next_month(
        self, test_db, sample_team_entity
    ):
        repo = UsageAlertRepository()

        october = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.INFO_50, month="2026-10")
        )
        november = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.INFO_50, month="2026-11")
        )

        assert october is not None
        assert november is not None
        assert october.id != november.id

    async def test_get_unacknowledged_filters_month_and_ack(
        self, test_db, sample_team_entity
    ):
        repo = UsageAlertRepository()
        info = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.INFO_50, pct=50)
        )
        warning = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.WARNING_80)
        )
        await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.URGENT_95, month="2026-09", pct=95)
        )
        await repo.mark_acknowledged(info.id, NOW)

        alerts = await repo.get_unacknowledged(sample_team_entity.id, "2026-10")

        assert [a.id for a in alerts] == [warning.id]

    async def test_mark_acknowledged_keeps_first_stamp(
        self, test_db, sample_team_entity
    ):
        repo = UsageAlertRepository()
        alert = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.WARNING_80)
        )
        first_ack = datetime(2026, 10, 18, tzinfo=timezone.utc)

        await repo.mark_acknowledged(alert.id, first_ack)
        await repo.mark_acknowledged(alert.id, datetime(2026, 10, 19, tzinfo=timezone.utc))

        stored = await repo.get(alert.id)
        assert stored.acknowledged.replace(tzinfo=None) == first_ack.replace(tzinfo=None)

    async def test_get_for_team_rejects_foreign_team(
        self, test_db, sample_team_entity
    ):
        repo = UsageAlertRepository()
        alert = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.WARNING_80)
        )

        assert await repo.get_for_team(alert.id, sample_team_entity.id) is not None
        assert await repo.get_for_team(alert.id, sample_team_entity.id + 1) is None

    async def test_mark_email_sent(self, test_db, sample_team_entity):
        repo = UsageAlertRepository()
        alert = await repo.create_if_absent(
            _alert(sample_team_entity.id, AlertType.WARNING_80)
        )

        await repo.mark_email_sent(alert.id, NOW)

        stored = await repo.get(alert.id)
        assert stored.email_sent is not None
