"""
Service for threshold-based usage alerts.

Each team has a ladder of thresholds per calendar month. A threshold fires
the first time usage reaches it in a month and never again that month; the
unique (team, type, month) key enforces this even when evaluations race.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

from common.core.exceptions import NotFoundError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.catalog import PlanCatalog
from packages.billing.models.domain.alerts import (
    ALERT_THRESHOLDS,
    FiredAlert,
    UsageAlert,
    UsageAlertCreateModel,
    period_month,
)
from packages.billing.models.domain.entitlements import SubscriberRef
from packages.billing.providers.notifications import (
    AlertNotifierInterface,
    LoggingAlertNotifier,
)
from packages.billing.repositories.alert_repository import UsageAlertRepository
from packages.billing.services.usage_service import UsageService

logger = get_logger(__name__)


def usage_percentage(used: int, limit: int) -> int:
    """floor(100 * used / limit); 0 when there is no cap."""
    if limit <= 0:
        return 0
    return (100 * used) // limit


class AlertService:
    def __init__(
        self,
        catalog: PlanCatalog,
        usage_service: Optional[UsageService] = None,
        notifier: Optional[AlertNotifierInterface] = None,
    ):
        self.catalog = catalog
        self.usage_service = usage_service or UsageService()
        self.notifier = notifier or LoggingAlertNotifier()
        self.alert_repo = UsageAlertRepository()

    @trace_span
    async def evaluate(
        self, team_id: int, plan_type: Optional[str], as_of: Optional[datetime] = None
    ) -> list[FiredAlert]:
        """
        Record every threshold the team's monthly usage has reached.

        Usage is the team's current-month total, including any event recorded
        just before this call. Returns only thresholds whose alert row was
        inserted by this call; already-fired thresholds are skipped.
        """
        limit = self.catalog.token_limit(plan_type)
        if limit <= 0:
            return []

        as_of = as_of or datetime.now(timezone.utc)
        used = await self.usage_service.monthly_total(
            SubscriberRef.for_team(team_id), as_of
        )
        percentage = usage_percentage(used, limit)
        month = period_month(as_of)

        fired: list[FiredAlert] = []
        for threshold in ALERT_THRESHOLDS:
            if percentage < threshold.percentage:
                break

            alert = await self.alert_repo.create_if_absent(
                UsageAlertCreateModel(
                    team_id=team_id,
                    alert_type=threshold.type,
                    period_month=month,
                    usage_percentage=percentage,
                    tokens_used=used,
                    tokens_limit=limit,
                    notification_sent=as_of,
                    created_at=as_of,
                )
            )
            if alert is None:
                continue

            logger.info(
                f"Usage alert {threshold.type.value} fired for team {team_id}",
                extra={
                    "team_id": team_id,
                    "alert_type": threshold.type.value,
                    "period_month": month,
                    "usage_percentage": percentage,
                    "tokens_used": used,
                    "tokens_limit": limit,
                },
            )
            fired.append(FiredAlert(alert=alert, threshold=threshold))

        return fired

    @trace_span
    async def active_alerts(
        self, team_id: int, as_of: Optional[datetime] = None
    ) -> list[UsageAlert]:
        """Unacknowledged alerts from the current month, newest first."""
        as_of = as_of or datetime.now(timezone.utc)
        return await self.alert_repo.get_unacknowledged(team_id, period_month(as_of))

    async def current_alert(
        self, team_id: int, as_of: Optional[datetime] = None
    ) -> Optional[UsageAlert]:
        """The most severe active alert, if any."""
        alerts = await self.active_alerts(team_id, as_of)
        if not alerts:
            return None
        return max(alerts, key=lambda alert: alert.usage_percentage)

    @trace_span
    async def acknowledge(
        self, alert_id: int, team_id: int, at: Optional[datetime] = None
    ) -> UsageAlert:
        """Stamp the alert as acknowledged; repeat calls keep the first stamp."""
        alert = await self.alert_repo.get_for_team(alert_id, team_id)
        if alert is None:
            raise NotFoundError(
                f"Alert {alert_id} not found", {"alert_id": alert_id, "team_id": team_id}
            )
        if alert.acknowledged is not None:
            return alert

        await self.alert_repo.mark_acknowledged(
            alert_id, at or datetime.now(timezone.utc)
        )
        return await self.alert_repo.get(alert_id)

    async def mark_email_sent(self, alert_id: int, at: Optional[datetime] = None) -> None:
        await self.alert_repo.mark_email_sent(alert_id, at or datetime.now(timezone.utc))

    async def dispatch_alert_emails(
        self, team_id: int, fired: Sequence[FiredAlert]
    ) -> int:
        """
        Send emails for newly fired alerts that want one.

        Runs after the consumption response; a failed delivery is logged and
        leaves email_sent unset. Returns the number of emails sent.
        """
        sent = 0
        for item in fired:
            if not item.threshold.send_email:
                continue
            try:
                await self.notifier.send_usage_alert(team_id, item.alert, item.threshold)
                await self.mark_email_sent(item.alert.id)
                sent += 1
            except Exception as e:
                logger.error(
                    f"Failed to send usage alert email: {str(e)}",
                    extra={
                        "team_id": team_id,
                        "alert_id": item.alert.id,
                        "alert_type": item.alert.alert_type.value,
                        "error": str(e),
                    },
                )
        return sent
