"""
Webhook endpoints for billing events.

Public endpoints (no auth required) for Stripe webhooks.
"""

from fastapi import APIRouter, Depends, Request

from common.core.config import Settings
from common.core.dependencies import get_settings
from packages.billing.catalog import PlanCatalog
from packages.billing.dependencies import get_plan_catalog
from packages.billing.webhooks.stripe_webhook import handle_stripe_webhook

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    catalog: PlanCatalog = Depends(get_plan_catalog),
) -> dict[str, bool]:
    """
    Receive webhook events from Stripe payment platform.

    No authentication required - webhook signature validated internally.
    """
    return await handle_stripe_webhook(request, settings, catalog)
