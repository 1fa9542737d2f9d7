from common.core.otel_axiom_exporter import get_logger
from packages.billing.models.domain.alerts import AlertThreshold, UsageAlert
from packages.billing.providers.notifications.interface import AlertNotifierInterface

logger = get_logger(__name__)


class LoggingAlertNotifier(AlertNotifierInterface):
    """Writes the alert email to the log instead of sending it."""

    async def send_usage_alert(
        self, team_id: int, alert: UsageAlert, threshold: AlertThreshold
    ) -> None:
        logger.info(
            f"Usage alert email for team {team_id}: {threshold.title}",
            extra={
                "team_id": team_id,
                "alert_id": alert.id,
                "alert_type": alert.alert_type.value,
                "severity": threshold.severity.value,
                "usage_percentage": alert.usage_percentage,
                "tokens_used": alert.tokens_used,
                "tokens_limit": alert.tokens_limit,
            },
        )
