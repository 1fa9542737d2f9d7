import pytest
import pytest_asyncio
from datetime import datetime, timezone

from packages.billing.models.domain.alerts import UsageAlertCreateModel, period_month
from packages.billing.models.domain.enums import AlertType
from packages.billing.repositories.alert_repository import UsageAlertRepository
from packages.teams.models.database.team import TeamEntity


ALERTS_URL = "/api/v1/alerts"
ACK_URL = "/api/v1/alerts/acknowledge"


async def _create_alert(team_id: int, alert_type: AlertType = AlertType.WARNING_80):
    now = datetime.now(timezone.utc)
    return await UsageAlertRepository().create_if_absent(
        UsageAlertCreateModel(
            team_id=team_id,
            alert_type=alert_type,
            period_month=period_month(now),
            usage_percentage=80,
            tokens_used=80,
            tokens_limit=100,
            notification_sent=now,
        )
    )


@pytest_asyncio.fixture
async def other_team_entity(test_db, other_user_entity):
    team = TeamEntity(name="Other Team", owner_id=other_user_entity.id, seat_count=1)
    test_db.add(team)
    await test_db.commit()
    await test_db.refresh(team)
    return team


@pytest.mark.asyncio
class TestGetAlerts:
    async def test_requires_team(self, client):
        response = await client.get(ALERTS_URL)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    async def test_lists_unacknowledged_alerts(self, client, sample_team_entity):
        alert = await _create_alert(sample_team_entity.id)

        response = await client.get(ALERTS_URL)

        assert response.status_code == 200
        alerts = response.json()["alerts"]
        assert len(alerts) == 1
        assert alerts[0]["id"] == alert.id
        assert alerts[0]["alertType"] == "warning_80"
        assert alerts[0]["usagePercentage"] == 80
        assert alerts[0]["acknowledged"] is None

    async def test_excludes_other_teams(
        self, client, sample_team_entity, other_team_entity
    ):
        await _create_alert(other_team_entity.id)

        response = await client.get(ALERTS_URL)

        assert response.json() == {"alerts": []}


@pytest.mark.asyncio
class TestAcknowledgeAlert:
    async def test_requires_alert_id(self, client, sample_team_entity):
        response = await client.post(ACK_URL, json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Alert ID required"}

    async def test_foreign_alert_is_not_found(
        self, client, sample_team_entity, other_team_entity
    ):
        foreign = await _create_alert(other_team_entity.id)

        response = await client.post(ACK_URL, json={"alertId": foreign.id})

        assert response.status_code == 404

    async def test_acknowledged_alert_leaves_active_list(
        self, client, sample_team_entity
    ):
        alert = await _create_alert(sample_team_entity.id)

        response = await client.post(ACK_URL, json={"alertId": alert.id})
        listed = await client.get(ALERTS_URL)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert listed.json() == {"alerts": []}
