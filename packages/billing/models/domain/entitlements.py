"""
Domain models for entitlement resolution.

A plan can be assigned to the acting user or to the user's team. Every place
that needs "which assignment applies" goes through resolve_plan_source().
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

from common.core.constants import SubscriberKind
from packages.billing.models.domain.enums import SubscriptionStatus
from packages.teams.models.domain.team import Team
from packages.users.models.domain.user import User


class SubscriberRef(BaseModel):
    """Tagged reference to whoever owns a plan assignment or a usage total."""

    model_config = ConfigDict(frozen=True)

    kind: SubscriberKind
    id: int

    @classmethod
    def for_user(cls, user_id: int) -> "SubscriberRef":
        return cls(kind=SubscriberKind.USER, id=user_id)

    @classmethod
    def for_team(cls, team_id: int) -> "SubscriberRef":
        return cls(kind=SubscriberKind.TEAM, id=team_id)


class PlanAssignment(BaseModel):
    """A plan type and status together with the subscriber they came from."""

    model_config = ConfigDict(frozen=True)

    source: SubscriberRef
    plan_type: Optional[str] = None
    status: Optional[SubscriptionStatus] = None


class SubscriberContext(BaseModel):
    """The authenticated actor plus the team it belongs to, if any."""

    user: User
    team: Optional[Team] = None

    @property
    def user_ref(self) -> SubscriberRef:
        return SubscriberRef.for_user(self.user.id)

    @property
    def team_ref(self) -> Optional[SubscriberRef]:
        return SubscriberRef.for_team(self.team.id) if self.team else None

    @property
    def usage_scope(self) -> SubscriberRef:
        """Scope for usage history: the team when there is one."""
        return self.team_ref or self.user_ref


def _first_present(*candidates):
    for ref, value in candidates:
        if value is not None:
            return ref, value
    return None, None


def resolve_plan_source(ctx: SubscriberContext) -> PlanAssignment:
    """
    User-level assignment takes priority over team-level.

    Plan type and status are resolved independently, in the same order, so
    a user with a status but no plan still reports its own status.
    """
    team = ctx.team
    plan_ref, plan_type = _first_present(
        (ctx.user_ref, ctx.user.plan_type),
        (ctx.team_ref, team.plan_type if team else None),
    )
    _, status = _first_present(
        (ctx.user_ref, ctx.user.subscription_status),
        (ctx.team_ref, team.subscription_status if team else None),
    )
    return PlanAssignment(
        source=plan_ref or ctx.user_ref, plan_type=plan_type, status=status
    )


class AccessCheck(BaseModel):
    """Non-throwing result of an entitlement check."""

    allowed: bool
    reason: Optional[str] = None
    remaining: Optional[int] = None


class TokenInfo(BaseModel):
    limit: int
    remaining: int
    used: int
    percentage: float


class AccessInfo(BaseModel):
    """Everything a client needs to gate UI and show usage warnings."""

    has_access: bool
    status: SubscriptionStatus
    plan_type: Optional[str] = None
    plan_name: Optional[str] = None
    features: list[str] = []
    tokens: TokenInfo
    needs_upgrade: bool
    show_usage_warning: bool
    show_usage_critical: bool
    is_blocked: bool
