"""
Service for entitlement resolution and enforcement.

Answers "which plan applies to this actor, is it active, and how many tokens
are left this month". Plan and status come from resolve_plan_source(); usage
is measured against whichever subscriber owns the effective plan.
"""

import sys
from datetime import datetime, timezone
from typing import Optional

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.catalog import PlanCatalog
from packages.billing.exceptions import (
    FeatureUnavailableError,
    SubscriptionRequiredError,
    TokensExhaustedError,
)
from packages.billing.models.domain.entitlements import (
    AccessCheck,
    AccessInfo,
    PlanAssignment,
    SubscriberContext,
    TokenInfo,
    resolve_plan_source,
)
from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.models.domain.plans import PlanDefinition
from packages.billing.services.usage_service import UsageService

logger = get_logger(__name__)

# Remaining tokens reported for plans without a monthly cap
UNBOUNDED = sys.maxsize

USAGE_WARNING_PERCENTAGE = 80
USAGE_CRITICAL_PERCENTAGE = 95


class EntitlementService:
    """Plan, status and quota checks for an authenticated actor."""

    def __init__(self, catalog: PlanCatalog, usage_service: Optional[UsageService] = None):
        self.catalog = catalog
        self.usage_service = usage_service or UsageService()

    def assignment(self, ctx: SubscriberContext) -> PlanAssignment:
        return resolve_plan_source(ctx)

    def effective_plan(self, ctx: SubscriberContext) -> Optional[str]:
        return resolve_plan_source(ctx).plan_type

    def effective_plan_definition(
        self, ctx: SubscriberContext
    ) -> Optional[PlanDefinition]:
        return self.catalog.resolve(self.effective_plan(ctx))

    def subscription_status(self, ctx: SubscriberContext) -> SubscriptionStatus:
        return resolve_plan_source(ctx).status or SubscriptionStatus.NONE

    def has_active_access(self, ctx: SubscriberContext) -> bool:
        return self.subscription_status(ctx).has_access()

    def has_feature_access(self, ctx: SubscriberContext, feature: str) -> bool:
        plan_type = self.effective_plan(ctx)
        if not plan_type or not self.has_active_access(ctx):
            return False
        return self.catalog.has_feature(plan_type, feature)

    async def _monthly_used(
        self, assignment: PlanAssignment, as_of: Optional[datetime]
    ) -> int:
        return await self.usage_service.monthly_total(assignment.source, as_of)

    @trace_span
    async def remaining_tokens(
        self, ctx: SubscriberContext, as_of: Optional[datetime] = None
    ) -> int:
        """
        Tokens left this month.

        Unlimited and metered plans report UNBOUNDED. No plan (or a plan the
        catalog does not know) reports 0.
        """
        assignment = resolve_plan_source(ctx)
        plan = self.catalog.resolve(assignment.plan_type)
        if plan is None:
            return 0
        if not plan.has_fixed_cap:
            return UNBOUNDED

        used = await self._monthly_used(assignment, as_of)
        return max(0, plan.token_limit - used)

    @trace_span
    async def usage_percentage(
        self, ctx: SubscriberContext, as_of: Optional[datetime] = None
    ) -> float:
        """Share of the monthly cap used, in [0, 100]. 0 without a cap."""
        assignment = resolve_plan_source(ctx)
        plan = self.catalog.resolve(assignment.plan_type)
        if plan is None or not plan.has_fixed_cap:
            return 0.0

        used = await self._monthly_used(assignment, as_of)
        return min(100.0, used * 100.0 / plan.token_limit)

    # Assertion-style checks for enforcement points

    def require_access(self, ctx: SubscriberContext) -> None:
        if not self.has_active_access(ctx):
            raise SubscriptionRequiredError(
                context={"user_id": ctx.user.id, "status": self.subscription_status(ctx).value}
            )

    def require_feature(self, ctx: SubscriberContext, feature: str) -> None:
        if not self.has_feature_access(ctx, feature):
            raise FeatureUnavailableError(feature, {"user_id": ctx.user.id})

    async def require_tokens(
        self, ctx: SubscriberContext, as_of: Optional[datetime] = None
    ) -> int:
        """Raise TokensExhaustedError when nothing is left; return what is."""
        remaining = await self.remaining_tokens(ctx, as_of)
        if remaining <= 0:
            raise TokensExhaustedError(context={"user_id": ctx.user.id})
        return remaining

    # Non-throwing counterparts for handlers that build their own responses

    def check_subscription(self, ctx: SubscriberContext) -> AccessCheck:
        if not self.has_active_access(ctx):
            return AccessCheck(allowed=False, reason="Active subscription required")
        return AccessCheck(allowed=True)

    async def check_tokens(
        self, ctx: SubscriberContext, as_of: Optional[datetime] = None
    ) -> AccessCheck:
        remaining = await self.remaining_tokens(ctx, as_of)
        if remaining <= 0:
            return AccessCheck(allowed=False, reason="No tokens remaining", remaining=0)
        return AccessCheck(allowed=True, remaining=remaining)

    @trace_span
    async def access_info(
        self, ctx: SubscriberContext, as_of: Optional[datetime] = None
    ) -> AccessInfo:
        """Status, plan, features and token usage plus the UI guard flags."""
        as_of = as_of or datetime.now(timezone.utc)
        assignment = resolve_plan_source(ctx)
        plan = self.catalog.resolve(assignment.plan_type)
        status = assignment.status or SubscriptionStatus.NONE
        has_access = status.has_access()

        limit = plan.token_limit if plan else 0
        if plan is None:
            used, remaining, percentage = 0, 0, 0.0
        elif plan.has_fixed_cap:
            used = await self._monthly_used(assignment, as_of)
            remaining = max(0, limit - used)
            percentage = min(100.0, used * 100.0 / limit)
        else:
            used, remaining, percentage = 0, UNBOUNDED, 0.0

        return AccessInfo(
            has_access=has_access,
            status=status,
            plan_type=assignment.plan_type,
            plan_name=plan.name if plan else None,
            features=list(plan.features) if plan else [],
            tokens=TokenInfo(
                limit=limit, remaining=remaining, used=used, percentage=percentage
            ),
            needs_upgrade=not has_access,
            show_usage_warning=percentage >= USAGE_WARNING_PERCENTAGE,
            show_usage_critical=percentage >= USAGE_CRITICAL_PERCENTAGE,
            is_blocked=remaining == 0,
        )
