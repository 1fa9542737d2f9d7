"""
Token API routes.

Consumption and usage history for the authenticated subscriber.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from common.core.config import Settings
from common.core.dependencies import get_settings
from common.core.exceptions import ValidationError
from common.core.otel_axiom_exporter import get_logger
from packages.auth.dependencies import get_subscriber_context
from packages.billing.catalog import PlanCatalog
from packages.billing.dependencies import (
    get_alert_service,
    get_consumption_service,
    get_plan_catalog,
    get_usage_service,
)
from packages.billing.exceptions import EntitlementError
from packages.billing.models.domain.entitlements import (
    SubscriberContext,
    resolve_plan_source,
)
from packages.billing.models.schemas.tokens import (
    ConsumeTokensRequest,
    ConsumeTokensResponse,
    TokenUsageResponse,
    UsageEventResponse,
)
from packages.billing.services.alert_service import AlertService
from packages.billing.services.consumption_service import ConsumptionService
from packages.billing.services.usage_service import UsageService

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/consume",
    response_model=ConsumeTokensResponse,
    response_model_exclude_none=True,
    response_model_by_alias=True,
)
async def consume_tokens(
    request: ConsumeTokensRequest,
    background_tasks: BackgroundTasks,
    ctx: SubscriberContext = Depends(get_subscriber_context),
    consumption_service: ConsumptionService = Depends(get_consumption_service),
    alert_service: AlertService = Depends(get_alert_service),
):
    """
    Consume tokens for an action.

    Returns 403 without a plan and 429 when a capped plan is used up.
    Alert emails for newly crossed thresholds go out after the response.
    """
    try:
        result = await consumption_service.consume(
            ctx, request.action, tokens=request.tokens, metadata=request.metadata
        )
    except EntitlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except Exception as e:
        logger.error(
            f"Token consumption failed: {str(e)}",
            extra={"user_id": ctx.user.id, "action": request.action, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to consume tokens",
        )

    if result.triggered_alerts and ctx.team is not None:
        background_tasks.add_task(
            alert_service.dispatch_alert_emails, ctx.team.id, result.triggered_alerts
        )

    return ConsumeTokensResponse(
        success=True,
        tokens=result.tokens,
        action=result.action,
        unlimited=True if result.unlimited else None,
    )


@router.get("/usage", response_model=TokenUsageResponse, response_model_by_alias=True)
async def get_token_usage(
    ctx: SubscriberContext = Depends(get_subscriber_context),
    catalog: PlanCatalog = Depends(get_plan_catalog),
    usage_service: UsageService = Depends(get_usage_service),
    settings: Settings = Depends(get_settings),
):
    """
    Current-month total and the most recent usage events.

    Scoped to the team when the user belongs to one, otherwise to the user.
    """
    scope = ctx.usage_scope
    plan_type = resolve_plan_source(ctx).plan_type

    try:
        monthly_total = await usage_service.monthly_total(scope)
        recent = await usage_service.recent_history(scope, settings.recent_usage_limit)
    except Exception as e:
        logger.error(
            f"Failed to load token usage: {str(e)}",
            extra={"user_id": ctx.user.id, "scope_kind": scope.kind.value, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load token usage",
        )

    return TokenUsageResponse(
        monthly_total=monthly_total,
        token_limit=catalog.token_limit(plan_type),
        plan_type=plan_type,
        recent_usage=[UsageEventResponse.from_domain(event) for event in recent],
    )
