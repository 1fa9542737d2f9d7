"""
Service for token consumption.

Ties entitlement, metering, the ledger and alerts together for one
consumption request:

    quantity check -> plan lookup -> append -> alert evaluation

Metered plans report to the meter before the append. Capped plans are never
metered.

Fixed-cap plans take a per-subscriber lock around the cap check and the
append, so two concurrent requests cannot both pass the check on the last
remaining token.
"""

import time
from datetime import datetime, timezone
from typing import Any, Optional

from common.core.config import Settings
from common.core.constants import SubscriberKind
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.scoped import transaction
from packages.billing.catalog import PlanCatalog
from packages.billing.exceptions import SubscriptionRequiredError, TokensExhaustedError
from packages.billing.models.domain.alerts import FiredAlert
from packages.billing.models.domain.entitlements import (
    PlanAssignment,
    SubscriberContext,
    resolve_plan_source,
)
from packages.billing.models.domain.plans import PlanDefinition
from packages.billing.models.domain.usage import ConsumptionResult, check_token_quantity
from packages.billing.services.alert_service import AlertService
from packages.billing.services.metering_service import (
    MeteringService,
    meter_idempotency_key,
)
from packages.billing.services.usage_service import UsageService

logger = get_logger(__name__)


class ConsumptionService:
    def __init__(
        self,
        settings: Settings,
        catalog: PlanCatalog,
        metering_service: MeteringService,
        usage_service: Optional[UsageService] = None,
        alert_service: Optional[AlertService] = None,
    ):
        self.settings = settings
        self.catalog = catalog
        self.metering_service = metering_service
        self.usage_service = usage_service or UsageService()
        self.alert_service = alert_service or AlertService(
            catalog, usage_service=self.usage_service
        )

    @staticmethod
    def _customer_ref(ctx: SubscriberContext, assignment: PlanAssignment) -> Optional[str]:
        """Stripe customer of whoever owns the effective plan."""
        if assignment.source.kind == SubscriberKind.TEAM and ctx.team is not None:
            return ctx.team.stripe_customer_id
        return ctx.user.stripe_customer_id

    async def _report_metered(
        self, ctx: SubscriberContext, assignment: PlanAssignment, tokens: int
    ) -> Optional[str]:
        customer_ref = self._customer_ref(ctx, assignment)
        if not customer_ref:
            return None
        return await self.metering_service.report(
            event_name=self.settings.stripe_meter_event_name,
            customer_ref=customer_ref,
            value=tokens,
            idempotency_key=meter_idempotency_key(
                ctx.user.id, int(time.time() * 1000)
            ),
        )

    @trace_span
    async def consume(
        self,
        ctx: SubscriberContext,
        action: str,
        tokens: int = 1,
        metadata: Optional[dict[str, Any]] = None,
        as_of: Optional[datetime] = None,
    ) -> ConsumptionResult:
        """
        Consume ``tokens`` for the actor.

        Raises:
            ValidationError: tokens is outside 1..MAX_TOKENS_PER_EVENT
            SubscriptionRequiredError: no plan is assigned to the user or team
            TokensExhaustedError: a fixed-cap plan has no tokens left this month
        """
        check_token_quantity(tokens)
        as_of = as_of or datetime.now(timezone.utc)
        assignment = resolve_plan_source(ctx)
        plan = self.catalog.resolve(assignment.plan_type)
        if plan is None:
            raise SubscriptionRequiredError(
                context={"user_id": ctx.user.id, "plan_type": assignment.plan_type}
            )

        team_id = ctx.team.id if ctx.team else None

        if plan.is_unlimited:
            event = await self.usage_service.record(
                ctx.user.id, team_id, tokens, action, metadata=metadata
            )
            return ConsumptionResult(
                tokens=tokens, action=action, unlimited=True, event=event
            )

        if not plan.has_fixed_cap:
            meter_ref = None
            if plan.is_metered:
                meter_ref = await self._report_metered(ctx, assignment, tokens)
            event = await self.usage_service.record(
                ctx.user.id, team_id, tokens, action, meter_ref=meter_ref, metadata=metadata
            )
            return ConsumptionResult(tokens=tokens, action=action, event=event)

        return await self._consume_capped(
            ctx, assignment, plan, action, tokens, metadata, as_of
        )

    async def _consume_capped(
        self,
        ctx: SubscriberContext,
        assignment: PlanAssignment,
        plan: PlanDefinition,
        action: str,
        tokens: int,
        metadata: Optional[dict[str, Any]],
        as_of: datetime,
    ) -> ConsumptionResult:
        team_id = ctx.team.id if ctx.team else None

        async with transaction():
            await self.usage_service.lock_subscriber(assignment.source)
            used = await self.usage_service.monthly_total(assignment.source, as_of)

            if used >= plan.token_limit:
                logger.info(
                    f"Token limit reached for {assignment.source.kind.value} {assignment.source.id}",
                    extra={
                        "user_id": ctx.user.id,
                        "team_id": team_id,
                        "plan_type": plan.id,
                        "tokens_used": used,
                        "tokens_limit": plan.token_limit,
                    },
                )
                raise TokensExhaustedError(
                    context={"user_id": ctx.user.id, "tokens_used": used}
                )

            event = await self.usage_service.record(
                ctx.user.id, team_id, tokens, action, metadata=metadata
            )

        fired: list[FiredAlert] = []
        if team_id is not None:
            try:
                fired = await self.alert_service.evaluate(team_id, plan.id, as_of)
            except Exception as e:
                logger.error(
                    f"Failed to evaluate usage alerts: {str(e)}",
                    extra={"team_id": team_id, "plan_type": plan.id, "error": str(e)},
                )

        return ConsumptionResult(
            tokens=tokens,
            action=action,
            event=event,
            monthly_total=used + tokens,
            triggered_alerts=fired,
        )
