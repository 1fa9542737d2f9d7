"""
API schemas for usage alerts.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from packages.billing.models.domain.alerts import UsageAlert
from packages.billing.models.domain.enums import AlertSeverity, AlertType


class UsageAlertResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    team_id: int
    alert_type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    period_month: str
    usage_percentage: int
    tokens_used: int
    tokens_limit: int
    notification_sent: Optional[datetime] = None
    email_sent: Optional[datetime] = None
    acknowledged: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, alert: UsageAlert) -> "UsageAlertResponse":
        threshold = alert.threshold
        return cls(
            id=alert.id,
            team_id=alert.team_id,
            alert_type=alert.alert_type,
            severity=threshold.severity,
            title=threshold.title,
            message=threshold.message,
            period_month=alert.period_month,
            usage_percentage=alert.usage_percentage,
            tokens_used=alert.tokens_used,
            tokens_limit=alert.tokens_limit,
            notification_sent=alert.notification_sent,
            email_sent=alert.email_sent,
            acknowledged=alert.acknowledged,
            created_at=alert.created_at,
        )


class AlertsResponse(BaseModel):
    alerts: list[UsageAlertResponse]


class AcknowledgeAlertRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Optional so a missing id is answered with 400 rather than 422
    alert_id: Optional[int] = None


class SuccessResponse(BaseModel):
    success: bool = True
