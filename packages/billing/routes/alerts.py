"""
Usage alert routes.

Alerts are tracked per team, so both endpoints require team membership.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from common.core.exceptions import NotFoundError
from common.core.otel_axiom_exporter import get_logger
from packages.auth.dependencies import get_subscriber_context
from packages.billing.dependencies import get_alert_service
from packages.billing.models.domain.entitlements import SubscriberContext
from packages.billing.models.schemas.alerts import (
    AcknowledgeAlertRequest,
    AlertsResponse,
    SuccessResponse,
    UsageAlertResponse,
)
from packages.billing.services.alert_service import AlertService

logger = get_logger(__name__)

router = APIRouter()


def _require_team_id(ctx: SubscriberContext) -> int:
    if ctx.team is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )
    return ctx.team.id


@router.get("", response_model=AlertsResponse, response_model_by_alias=True)
async def get_alerts(
    ctx: SubscriberContext = Depends(get_subscriber_context),
    alert_service: AlertService = Depends(get_alert_service),
):
    """Unacknowledged alerts from the current month, newest first."""
    team_id = _require_team_id(ctx)

    try:
        alerts = await alert_service.active_alerts(team_id)
    except Exception as e:
        logger.error(
            f"Failed to fetch alerts: {str(e)}",
            extra={"team_id": team_id, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch alerts",
        )

    return AlertsResponse(alerts=[UsageAlertResponse.from_domain(a) for a in alerts])


@router.post("/acknowledge", response_model=SuccessResponse)
async def acknowledge_alert(
    request: AcknowledgeAlertRequest,
    ctx: SubscriberContext = Depends(get_subscriber_context),
    alert_service: AlertService = Depends(get_alert_service),
):
    team_id = _require_team_id(ctx)
    if request.alert_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Alert ID required"
        )

    try:
        await alert_service.acknowledge(request.alert_id, team_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error(
            f"Failed to acknowledge alert: {str(e)}",
            extra={"team_id": team_id, "alert_id": request.alert_id, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to acknowledge alert",
        )

    return SuccessResponse(success=True)
