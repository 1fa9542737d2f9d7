"""Alert notifiers - deliver usage alert emails."""

from packages.billing.providers.notifications.interface import AlertNotifierInterface
from packages.billing.providers.notifications.logging_notifier import (
    LoggingAlertNotifier,
)

__all__ = [
    "AlertNotifierInterface",
    "LoggingAlertNotifier",
]
