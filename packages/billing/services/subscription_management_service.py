"""
Self-service subscription management: checkout, portal, plan switch, cancel.

Nothing here writes billing state. Stripe is asked to change the
subscription and the resulting webhook events update users and teams
through the reconciler.
"""

from typing import Optional

from common.core.config import Settings
from common.core.exceptions import ProcessingError, ValidationError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.catalog import PlanCatalog
from packages.billing.exceptions import SubscriptionRequiredError
from packages.billing.models.domain.entitlements import SubscriberContext
from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.models.domain.plans import PlanDefinition
from packages.billing.models.domain.subscription import (
    PlanSwitchResult,
    SubscriptionSummary,
    SwitchOutcome,
)
from packages.billing.providers.payment.interface import PaymentProviderInterface

logger = get_logger(__name__)


class SubscriptionManagementService:
    def __init__(
        self,
        settings: Settings,
        catalog: PlanCatalog,
        payment_provider: PaymentProviderInterface,
    ):
        self.settings = settings
        self.catalog = catalog
        self.payment_provider = payment_provider

    def _purchasable_plan(self, plan_type: str) -> PlanDefinition:
        plan = self.catalog.resolve(plan_type)
        if plan is None:
            raise ValidationError(f"Invalid plan type: {plan_type}", {"plan_type": plan_type})
        if not plan.stripe_price_id:
            raise ValidationError(
                f"Plan {plan.id} cannot be purchased", {"plan_type": plan.id}
            )
        return plan

    @trace_span
    async def create_checkout(
        self, ctx: SubscriberContext, plan_type: str, quantity: int = 1
    ) -> str:
        """
        Start a hosted checkout for ``plan_type``.

        Team plans are bought for the caller's team and reuse its Stripe
        customer; individual plans reuse the user's.

        Returns:
            The checkout URL

        Raises:
            ValidationError: unknown or unpurchasable plan, or a team plan
                for a user without a team
        """
        plan = self._purchasable_plan(plan_type)
        is_team_plan = self.catalog.is_team_plan(plan.id)
        if is_team_plan and ctx.team is None:
            raise ValidationError(
                "Team plans require a team", {"user_id": ctx.user.id, "plan_type": plan.id}
            )

        price = await self.payment_provider.get_price(plan.stripe_price_id)
        customer_id = ctx.team.stripe_customer_id if is_team_plan else ctx.user.stripe_customer_id
        base_url = self.settings.app_base_url.rstrip("/")

        url = await self.payment_provider.create_checkout_session(
            price_id=plan.stripe_price_id,
            client_reference_id=str(ctx.user.id),
            success_url=f"{base_url}/billing/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/pricing",
            subscription_metadata={
                "planType": plan.id,
                "userId": str(ctx.user.id),
                "teamId": str(ctx.team.id) if is_team_plan else "",
            },
            customer_id=customer_id,
            # Seat quantity does not apply to metered prices
            quantity=None if price.is_metered else quantity,
            trial_period_days=self.settings.checkout_trial_period_days or None,
        )

        logger.info(
            f"Checkout started for plan {plan.id}",
            extra={
                "user_id": ctx.user.id,
                "team_id": ctx.team.id if is_team_plan else None,
                "plan_type": plan.id,
                "customer_id": customer_id,
            },
        )
        return url

    @trace_span
    async def create_portal(self, ctx: SubscriberContext) -> str:
        """
        Open the billing portal for whoever pays: the team if it has a Stripe
        customer, otherwise the user.

        Raises:
            SubscriptionRequiredError: neither has a Stripe customer
        """
        customer_id = None
        if ctx.team is not None and ctx.team.stripe_customer_id:
            customer_id = ctx.team.stripe_customer_id
        elif ctx.user.stripe_customer_id:
            customer_id = ctx.user.stripe_customer_id

        if customer_id is None:
            raise SubscriptionRequiredError(context={"user_id": ctx.user.id})

        return await self.payment_provider.create_customer_portal_session(
            customer_id, return_url=f"{self.settings.app_base_url.rstrip('/')}/dashboard"
        )

    @trace_span
    async def switch_plan(self, ctx: SubscriberContext, new_plan_type: str) -> PlanSwitchResult:
        """
        Move the user's individual subscription to ``new_plan_type``.

        The price is swapped in place when old and new bill the same way.
        Otherwise a new checkout is needed:
        - moving to a team plan cancels the individual subscription now;
        - switching between metered and licensed billing cancels at period end;
        - a user without a live subscription just goes to checkout.
        """
        plan = self._purchasable_plan(new_plan_type)
        subscription_id = ctx.user.stripe_subscription_id
        log_extra = {
            "user_id": ctx.user.id,
            "subscription_id": subscription_id,
            "new_plan_type": plan.id,
        }

        if not subscription_id:
            return PlanSwitchResult(outcome=SwitchOutcome.CHECKOUT_REQUIRED, plan_type=plan.id)

        current = await self.payment_provider.retrieve_subscription(subscription_id)

        if self.catalog.is_team_plan(plan.id):
            if current is not None and current.status != SubscriptionStatus.CANCELED.value:
                await self.payment_provider.cancel_subscription(subscription_id)
                logger.info("Canceled individual subscription for team plan", extra=log_extra)
            return PlanSwitchResult(
                outcome=SwitchOutcome.CHECKOUT_REQUIRED,
                plan_type=plan.id,
                subscription_id=subscription_id,
            )

        if current is None:
            return PlanSwitchResult(outcome=SwitchOutcome.CHECKOUT_REQUIRED, plan_type=plan.id)

        item = current.primary_item
        if item is None:
            raise ProcessingError("No subscription items found", log_extra)

        new_price = await self.payment_provider.get_price(plan.stripe_price_id)
        if item.is_metered != new_price.is_metered:
            await self.payment_provider.cancel_subscription_at_period_end(subscription_id)
            logger.info(
                "Billing mode changes; current subscription ends at period end",
                extra=log_extra,
            )
            return PlanSwitchResult(
                outcome=SwitchOutcome.CHECKOUT_REQUIRED,
                plan_type=plan.id,
                subscription_id=subscription_id,
            )

        await self.payment_provider.update_subscription_price(
            subscription_id,
            item.id,
            plan.stripe_price_id,
            metadata={"planType": plan.id, "userId": str(ctx.user.id)},
        )
        logger.info(f"Switched subscription to {plan.id}", extra=log_extra)
        return PlanSwitchResult(
            outcome=SwitchOutcome.UPDATED, plan_type=plan.id, subscription_id=subscription_id
        )

    @trace_span
    async def cancel(self, ctx: SubscriberContext) -> str:
        """
        Cancel the user's subscription at the end of the paid period.

        Returns:
            The subscription ID

        Raises:
            SubscriptionRequiredError: the user has no subscription
        """
        subscription_id = ctx.user.stripe_subscription_id
        if not subscription_id:
            raise SubscriptionRequiredError(context={"user_id": ctx.user.id})

        await self.payment_provider.cancel_subscription_at_period_end(subscription_id)
        return subscription_id

    @trace_span
    async def team_subscription(self, ctx: SubscriberContext) -> Optional[SubscriptionSummary]:
        """
        Seat count and status of the team's live subscription.

        None when the caller has no team subscription or the provider
        cannot be reached.
        """
        if ctx.team is None or not ctx.team.stripe_subscription_id:
            return None

        try:
            subscription = await self.payment_provider.retrieve_subscription(
                ctx.team.stripe_subscription_id
            )
        except Exception as e:
            logger.error(
                f"Failed to fetch team subscription: {str(e)}",
                extra={
                    "team_id": ctx.team.id,
                    "subscription_id": ctx.team.stripe_subscription_id,
                    "error": str(e),
                },
            )
            return None

        if subscription is None:
            return None

        item = subscription.primary_item
        return SubscriptionSummary(
            quantity=(item.quantity if item and item.quantity else 1),
            status=subscription.status,
            current_period_end=subscription.current_period_end,
            cancel_at_period_end=subscription.cancel_at_period_end,
        )
