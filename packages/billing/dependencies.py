"""FastAPI dependencies for billing services."""

from fastapi import Depends, Request

from common.core.config import Settings
from common.core.dependencies import get_settings
from packages.billing.catalog import PlanCatalog
from packages.billing.providers.metering.factory import get_meter_gateway
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.providers.payment.interface import PaymentProviderInterface
from packages.billing.services.alert_service import AlertService
from packages.billing.services.consumption_service import ConsumptionService
from packages.billing.services.entitlement_service import EntitlementService
from packages.billing.services.metering_service import MeteringService
from packages.billing.services.subscription_management_service import (
    SubscriptionManagementService,
)
from packages.billing.services.usage_service import UsageService


def get_plan_catalog(request: Request) -> PlanCatalog:
    return request.app.state.plan_catalog


def get_usage_service() -> UsageService:
    return UsageService()


def get_entitlement_service(
    catalog: PlanCatalog = Depends(get_plan_catalog),
    usage_service: UsageService = Depends(get_usage_service),
) -> EntitlementService:
    return EntitlementService(catalog, usage_service=usage_service)


def get_alert_service(
    catalog: PlanCatalog = Depends(get_plan_catalog),
    usage_service: UsageService = Depends(get_usage_service),
) -> AlertService:
    return AlertService(catalog, usage_service=usage_service)


def get_metering_service(settings: Settings = Depends(get_settings)) -> MeteringService:
    return MeteringService(get_meter_gateway(settings), settings)


def get_consumption_service(
    settings: Settings = Depends(get_settings),
    catalog: PlanCatalog = Depends(get_plan_catalog),
    metering_service: MeteringService = Depends(get_metering_service),
    usage_service: UsageService = Depends(get_usage_service),
    alert_service: AlertService = Depends(get_alert_service),
) -> ConsumptionService:
    return ConsumptionService(
        settings,
        catalog,
        metering_service,
        usage_service=usage_service,
        alert_service=alert_service,
    )


def get_payment_provider_dependency(
    settings: Settings = Depends(get_settings),
) -> PaymentProviderInterface:
    return get_payment_provider(settings)


def get_subscription_management_service(
    settings: Settings = Depends(get_settings),
    catalog: PlanCatalog = Depends(get_plan_catalog),
    payment_provider: PaymentProviderInterface = Depends(get_payment_provider_dependency),
) -> SubscriptionManagementService:
    return SubscriptionManagementService(settings, catalog, payment_provider)
