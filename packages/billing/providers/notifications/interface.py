"""
Interface for alert notification delivery.

Email rendering and transport belong to the implementation; the alert
service only decides which alerts need an email.
"""

from abc import ABC, abstractmethod

from packages.billing.models.domain.alerts import AlertThreshold, UsageAlert


class AlertNotifierInterface(ABC):
    @abstractmethod
    async def send_usage_alert(
        self, team_id: int, alert: UsageAlert, threshold: AlertThreshold
    ) -> None:
        """
        Deliver one usage alert to the team.

        Args:
            team_id: Team the alert belongs to
            alert: The stored alert row
            threshold: Threshold definition with title, message and severity

        Raises:
            Any delivery error; the caller logs it and leaves email_sent unset.
        """
        pass
