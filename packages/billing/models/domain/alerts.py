"""
Domain models for usage alerts.

Alerts fire once per (team, threshold, calendar month) when monthly usage
crosses a rung of the ladder below.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from packages.billing.models.domain.enums import AlertSeverity, AlertType


class AlertThreshold(BaseModel):
    """One rung of the alert ladder."""

    model_config = ConfigDict(frozen=True)

    type: AlertType
    percentage: int
    title: str
    message: str
    severity: AlertSeverity
    send_email: bool


# Ascending; evaluation walks this in order
ALERT_THRESHOLDS: tuple[AlertThreshold, ...] = (
    AlertThreshold(
        type=AlertType.INFO_50,
        percentage=50,
        title="Halfway There",
        message="You have used 50% of your monthly tokens. You are on track!",
        severity=AlertSeverity.INFO,
        send_email=False,
    ),
    AlertThreshold(
        type=AlertType.WARNING_80,
        percentage=80,
        title="Token Usage Warning",
        message="You have used 80% of your monthly tokens. Consider upgrading or monitoring your usage.",
        severity=AlertSeverity.WARNING,
        send_email=True,
    ),
    AlertThreshold(
        type=AlertType.URGENT_95,
        percentage=95,
        title="Token Limit Almost Reached",
        message="You have used 95% of your monthly tokens. You are approaching your limit!",
        severity=AlertSeverity.URGENT,
        send_email=True,
    ),
    AlertThreshold(
        type=AlertType.BLOCKED_100,
        percentage=100,
        title="Token Limit Reached",
        message="You have reached your monthly token limit. Upgrade your plan to continue using tokens.",
        severity=AlertSeverity.CRITICAL,
        send_email=True,
    ),
)

THRESHOLDS_BY_TYPE: dict[AlertType, AlertThreshold] = {
    threshold.type: threshold for threshold in ALERT_THRESHOLDS
}


def period_month(moment: datetime) -> str:
    """Calendar-month bucket an alert belongs to, e.g. '2026-10'."""
    return f"{moment.year:04d}-{moment.month:02d}"


class UsageAlert(BaseModel):
    id: int
    team_id: int
    alert_type: AlertType
    period_month: str
    usage_percentage: int
    tokens_used: int
    tokens_limit: int
    notification_sent: Optional[datetime] = None
    email_sent: Optional[datetime] = None
    acknowledged: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @property
    def threshold(self) -> AlertThreshold:
        return THRESHOLDS_BY_TYPE[self.alert_type]


class UsageAlertCreateModel(BaseModel):
    team_id: int
    alert_type: AlertType
    period_month: str
    usage_percentage: int
    tokens_used: int
    tokens_limit: int
    notification_sent: datetime
    created_at: Optional[datetime] = None


class FiredAlert(BaseModel):
    """A threshold that was newly crossed, with the alert row recorded for it."""

    alert: UsageAlert
    threshold: AlertThreshold
