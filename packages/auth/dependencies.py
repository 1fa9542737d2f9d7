from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status, Header

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.auth.services.api_key_service import ApiKeyService
from packages.billing.models.domain.entitlements import SubscriberContext
from packages.teams.repositories.team_repository import TeamRepository
from packages.users.models.domain.user import User

logger = get_logger(__name__)


def get_api_key_service() -> ApiKeyService:
    """Get ApiKeyService instance."""
    return ApiKeyService()


@trace_span
async def get_current_user(
    x_api_key: Annotated[Optional[str], Header()] = None,
    api_key_service: ApiKeyService = Depends(get_api_key_service),
) -> User:
    """Get current authenticated user from the x-api-key header."""
    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    user = await api_key_service.authenticate_api_key(x_api_key)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user


@trace_span
async def get_subscriber_context(
    current_user: User = Depends(get_current_user),
) -> SubscriberContext:
    """The authenticated user together with the team it belongs to."""
    team = await TeamRepository().get_for_user(current_user.id)
    return SubscriberContext(user=current_user, team=team)
