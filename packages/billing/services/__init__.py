"""Billing services."""

from packages.billing.services.alert_service import AlertService
from packages.billing.services.consumption_service import ConsumptionService
from packages.billing.services.entitlement_service import EntitlementService
from packages.billing.services.metering_service import MeteringService
from packages.billing.services.usage_service import UsageService

__all__ = [
    "AlertService",
    "ConsumptionService",
    "EntitlementService",
    "MeteringService",
    "UsageService",
]
