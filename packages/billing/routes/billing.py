"""
Billing API routes.

Access information for the authenticated subscriber, the public plan list,
and self-service subscription management (checkout, portal, switch, cancel).
"""

from fastapi import APIRouter, Depends, HTTPException, status

from common.core.exceptions import ValidationError
from common.core.otel_axiom_exporter import get_logger
from packages.auth.dependencies import get_subscriber_context
from packages.billing.catalog import PlanCatalog
from packages.billing.dependencies import (
    get_entitlement_service,
    get_plan_catalog,
    get_subscription_management_service,
)
from packages.billing.exceptions import EntitlementError
from packages.billing.models.domain.entitlements import SubscriberContext
from packages.billing.models.domain.subscription import SwitchOutcome
from packages.billing.models.schemas.billing import (
    AccessInfoResponse,
    CancelSubscriptionResponse,
    CheckoutRequest,
    HostedPageResponse,
    PlanResponse,
    PlansResponse,
    SubscriptionSummaryResponse,
    SwitchPlanRequest,
    SwitchPlanResponse,
    TeamSubscriptionResponse,
)
from packages.billing.services.entitlement_service import EntitlementService
from packages.billing.services.subscription_management_service import (
    SubscriptionManagementService,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get("/access", response_model=AccessInfoResponse, response_model_by_alias=True)
async def get_access_info(
    ctx: SubscriberContext = Depends(get_subscriber_context),
    entitlement_service: EntitlementService = Depends(get_entitlement_service),
):
    """
    Subscription status, plan, features and token usage for the caller.

    The guard flags tell clients when to prompt an upgrade or show usage
    warnings.
    """
    try:
        info = await entitlement_service.access_info(ctx)
    except Exception as e:
        logger.error(
            f"Failed to resolve access info: {str(e)}",
            extra={"user_id": ctx.user.id, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to resolve access info",
        )
    return AccessInfoResponse.model_validate(info.model_dump())


@router.get("/plans", response_model=PlansResponse, response_model_by_alias=True)
async def get_plans(catalog: PlanCatalog = Depends(get_plan_catalog)):
    """
    Enabled plans with pricing, limits and feature descriptions.

    Public (no auth required) for pricing pages.
    """
    return PlansResponse(
        individual=[PlanResponse.from_domain(p) for p in catalog.individual_plans()],
        team=[PlanResponse.from_domain(p) for p in catalog.team_plans()],
    )


def _management_error(e: Exception, ctx: SubscriberContext, failure: str) -> HTTPException:
    if isinstance(e, EntitlementError):
        return HTTPException(status_code=e.status_code, detail=e.message)
    if isinstance(e, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    logger.error(
        f"{failure}: {str(e)}",
        extra={"user_id": ctx.user.id, "error": str(e)},
    )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure)


@router.post("/checkout", response_model=HostedPageResponse)
async def create_checkout(
    request: CheckoutRequest,
    ctx: SubscriberContext = Depends(get_subscriber_context),
    management: SubscriptionManagementService = Depends(get_subscription_management_service),
):
    """
    Start a Stripe checkout for a plan.

    The session carries the caller's user id and the plan type, which the
    webhook reconciler uses to link the customer and activate the plan.
    """
    try:
        url = await management.create_checkout(ctx, request.plan_type, request.quantity)
    except Exception as e:
        raise _management_error(e, ctx, "Failed to create checkout session")
    return HostedPageResponse(url=url)


@router.post("/portal", response_model=HostedPageResponse)
async def create_portal(
    ctx: SubscriberContext = Depends(get_subscriber_context),
    management: SubscriptionManagementService = Depends(get_subscription_management_service),
):
    """Stripe billing portal for the team's or the user's customer."""
    try:
        url = await management.create_portal(ctx)
    except Exception as e:
        raise _management_error(e, ctx, "Failed to create portal session")
    return HostedPageResponse(url=url)


@router.post("/switch", response_model=SwitchPlanResponse, response_model_by_alias=True)
async def switch_plan(
    request: SwitchPlanRequest,
    ctx: SubscriberContext = Depends(get_subscriber_context),
    management: SubscriptionManagementService = Depends(get_subscription_management_service),
):
    """
    Switch the caller's individual subscription to another plan.

    When the price cannot be swapped in place the response says so and the
    client should start a checkout for the new plan.
    """
    try:
        result = await management.switch_plan(ctx, request.plan_type)
    except Exception as e:
        raise _management_error(e, ctx, "Failed to switch plan")
    return SwitchPlanResponse(
        outcome=result.outcome,
        plan_type=result.plan_type,
        checkout_required=result.outcome == SwitchOutcome.CHECKOUT_REQUIRED,
    )


@router.post("/cancel", response_model=CancelSubscriptionResponse, response_model_by_alias=True)
async def cancel_subscription(
    ctx: SubscriberContext = Depends(get_subscriber_context),
    management: SubscriptionManagementService = Depends(get_subscription_management_service),
):
    """Cancel the caller's subscription at the end of the paid period."""
    try:
        subscription_id = await management.cancel(ctx)
    except Exception as e:
        raise _management_error(e, ctx, "Failed to cancel subscription")
    return CancelSubscriptionResponse(subscription_id=subscription_id)


@router.get(
    "/subscription", response_model=TeamSubscriptionResponse, response_model_by_alias=True
)
async def get_team_subscription(
    ctx: SubscriberContext = Depends(get_subscriber_context),
    management: SubscriptionManagementService = Depends(get_subscription_management_service),
):
    """Seat count and status of the team subscription, or null without one."""
    summary = await management.team_subscription(ctx)
    if summary is None:
        return TeamSubscriptionResponse(subscription=None)
    return TeamSubscriptionResponse(
        subscription=SubscriptionSummaryResponse.model_validate(summary.model_dump())
    )
