"""
Service that mirrors Stripe subscription state onto users and teams.

Work for one webhook event happens in two phases. ``prepare`` does the slow
part (owner lookup with its retry delay, product lookup on Stripe) without a
database transaction open. ``apply`` performs the writes and is called inside
the transaction that also records the event id, so a failed apply leaves the
event unrecorded and Stripe's redelivery processes it again.
"""

from typing import Optional

from pydantic import BaseModel

from common.core.config import Settings
from common.core.exceptions import ProcessingError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.retry import fixed_delays, retry_async
from common.db.context import get_current_session
from common.db.locks import acquire_xact_lock
from packages.billing.catalog import PlanCatalog
from packages.billing.exceptions import OwnerNotFoundError
from packages.billing.lock_keys import stripe_customer_lock_key
from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.models.domain.stripe_webhooks import (
    CheckoutCompleted,
    ObservedOnly,
    StripeSubscriptionData,
    SubscriptionChanged,
    Unhandled,
    WebhookEvent,
)
from packages.billing.models.domain.subscription import SubscriptionItemCreateModel
from packages.billing.providers.payment.interface import PaymentProviderInterface
from packages.billing.repositories.subscription_item_repository import (
    SubscriptionItemRepository,
)
from packages.teams.models.domain.team import Team, TeamBillingUpdateModel
from packages.teams.repositories.team_repository import TeamRepository
from packages.users.models.domain.user import User, UserBillingUpdateModel
from packages.users.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class _OwnerNotLinkedYet(Exception):
    """Neither a team nor a user carries the customer id (yet)."""


class SubscriptionOwner(BaseModel):
    team: Optional[Team] = None
    user: Optional[User] = None


class PreparedSubscriptionChange(BaseModel):
    """Everything ``apply`` needs for a subscription event, resolved up front."""

    event: SubscriptionChanged
    owner: SubscriptionOwner
    plan_type: Optional[str] = None

    @property
    def subscription(self) -> StripeSubscriptionData:
        return self.event.subscription


class SubscriptionSyncService:
    def __init__(
        self,
        settings: Settings,
        catalog: PlanCatalog,
        payment_provider: PaymentProviderInterface,
    ):
        self.settings = settings
        self.catalog = catalog
        self.payment_provider = payment_provider
        self.user_repo = UserRepository()
        self.team_repo = TeamRepository()
        self.item_repo = SubscriptionItemRepository()

    # Phase 1: resolution, outside any transaction

    @trace_span
    async def find_owner(
        self, customer_id: str, subscription_id: Optional[str] = None
    ) -> SubscriptionOwner:
        """
        Team, else user, linked to the Stripe customer.

        The subscription event can arrive before checkout.session.completed
        has linked the customer, so a miss is retried once after a short delay.

        Raises:
            OwnerNotFoundError: still unlinked after the retry
        """

        async def _lookup() -> SubscriptionOwner:
            team = await self.team_repo.get_by_stripe_customer_id(customer_id)
            user = await self.user_repo.get_by_stripe_customer_id(customer_id)
            if team is None and user is None:
                raise _OwnerNotLinkedYet(customer_id)
            return SubscriptionOwner(team=team, user=user)

        try:
            return await retry_async(
                _lookup,
                should_retry=lambda exc: isinstance(exc, _OwnerNotLinkedYet),
                delays=fixed_delays(1, self.settings.webhook_owner_retry_delay_seconds),
                operation_name="webhook_owner_lookup",
            )
        except _OwnerNotLinkedYet:
            logger.error(
                f"Neither team nor user found for Stripe customer {customer_id}",
                extra={
                    "operation": "webhook_owner_lookup",
                    "customer_id": customer_id,
                    "subscription_id": subscription_id,
                    "error_type": "owner_not_found",
                },
            )
            raise OwnerNotFoundError(customer_id, subscription_id)

    @trace_span
    async def infer_plan_type(self, subscription: StripeSubscriptionData) -> Optional[str]:
        """planType metadata first, then the primary item's product name."""
        if subscription.plan_type_hint:
            return subscription.plan_type_hint

        item = subscription.primary_item
        if item is None:
            return None

        product_name = await self.payment_provider.get_product_name(item.price.product)
        plan_type = self.catalog.plan_for_product_name(product_name)
        logger.info(
            f"Inferred plan type {plan_type} from product {product_name}",
            extra={
                "subscription_id": subscription.id,
                "product_id": item.price.product,
                "plan_type": plan_type,
            },
        )
        return plan_type

    async def prepare(self, event: WebhookEvent) -> Optional[PreparedSubscriptionChange]:
        if not isinstance(event, SubscriptionChanged):
            return None

        subscription = event.subscription
        owner = await self.find_owner(subscription.customer, subscription.id)
        plan_type = await self.infer_plan_type(subscription)
        return PreparedSubscriptionChange(event=event, owner=owner, plan_type=plan_type)

    # Phase 2: writes, inside the event's transaction

    @trace_span
    async def apply(
        self,
        event: WebhookEvent,
        prepared: Optional[PreparedSubscriptionChange] = None,
    ) -> None:
        if isinstance(event, CheckoutCompleted):
            await self._link_checkout_customer(event)
        elif isinstance(event, SubscriptionChanged):
            if prepared is None:
                prepared = await self.prepare(event)
            await self._apply_subscription_change(prepared)
        elif isinstance(event, ObservedOnly):
            logger.info(
                f"Observed Stripe event {event.event_type}",
                extra={
                    "event_id": event.event_id,
                    "event_type": event.event_type,
                    "object_id": event.object_id,
                },
            )
        elif isinstance(event, Unhandled):
            logger.info(
                f"Unhandled Stripe event type: {event.event_type}",
                extra={"event_id": event.event_id, "event_type": event.event_type},
            )
        else:
            raise ProcessingError(f"Unknown webhook variant {type(event).__name__}")

    async def _link_checkout_customer(self, event: CheckoutCompleted) -> None:
        session = event.session
        reference = session.client_reference_id
        if not reference or not reference.isdigit():
            logger.error(
                "No usable client_reference_id in checkout session",
                extra={"session_id": session.id, "client_reference_id": reference},
            )
            return

        user_id = int(reference)
        # Activation arrives with the subscription event; until then the
        # customer is linked but has no plan.
        user = await self.user_repo.update(
            user_id,
            UserBillingUpdateModel(
                stripe_customer_id=session.customer,
                stripe_subscription_id=None,
                stripe_product_id=None,
                plan_type=None,
                subscription_status=SubscriptionStatus.INCOMPLETE,
            ),
        )
        if user is None:
            logger.warning(
                f"Checkout completed for unknown user {user_id}",
                extra={"session_id": session.id, "user_id": user_id},
            )
            return

        logger.info(
            f"Linked Stripe customer {session.customer} to user {user_id}",
            extra={"customer_id": session.customer, "user_id": user_id},
        )

    async def _apply_subscription_change(
        self, prepared: PreparedSubscriptionChange
    ) -> None:
        subscription = prepared.subscription
        owner = prepared.owner
        plan_type = prepared.plan_type
        team_scoped = self.catalog.is_team_plan(plan_type) and owner.team is not None

        session = get_current_session()
        if session is not None:
            await acquire_xact_lock(session, stripe_customer_lock_key(subscription.customer))

        log_extra = {
            "event_id": prepared.event.event_id,
            "subscription_id": subscription.id,
            "customer_id": subscription.customer,
            "stripe_status": subscription.status,
            "plan_type": plan_type,
            "team_id": owner.team.id if owner.team else None,
            "user_id": owner.user.id if owner.user else None,
            "team_scoped": team_scoped,
        }

        if subscription.status in (
            SubscriptionStatus.ACTIVE.value,
            SubscriptionStatus.TRIALING.value,
        ):
            item = subscription.primary_item
            product_id = item.price.product if item else None
            status = SubscriptionStatus(subscription.status)

            if team_scoped:
                await self.team_repo.update(
                    owner.team.id,
                    TeamBillingUpdateModel(
                        stripe_subscription_id=subscription.id,
                        stripe_product_id=product_id,
                        plan_type=plan_type,
                        subscription_status=status,
                    ),
                )
                await self.item_repo.replace_for_subscription(
                    subscription.id,
                    [
                        SubscriptionItemCreateModel(
                            team_id=owner.team.id,
                            stripe_subscription_id=subscription.id,
                            stripe_subscription_item_id=line.id,
                            stripe_product_id=line.price.product,
                            stripe_price_id=line.price.id,
                            quantity=line.quantity,
                            is_metered=line.price.is_metered,
                        )
                        for line in subscription.items.data
                    ],
                )
            elif owner.user is not None:
                await self.user_repo.update(
                    owner.user.id,
                    UserBillingUpdateModel(
                        stripe_subscription_id=subscription.id,
                        stripe_product_id=product_id,
                        plan_type=plan_type,
                        subscription_status=status,
                    ),
                )
            else:
                logger.warning(
                    "Individual plan for a customer linked only to a team", extra=log_extra
                )
                return
            logger.info(f"Activated subscription {subscription.id}", extra=log_extra)

        elif subscription.status in (
            SubscriptionStatus.CANCELED.value,
            SubscriptionStatus.UNPAID.value,
        ):
            status = SubscriptionStatus(subscription.status)

            if team_scoped:
                await self.item_repo.delete_by_subscription(subscription.id)
                await self.team_repo.update(
                    owner.team.id,
                    TeamBillingUpdateModel(
                        stripe_subscription_id=None,
                        stripe_product_id=None,
                        plan_type=None,
                        subscription_status=status,
                    ),
                )
            elif owner.user is not None:
                await self.user_repo.update(
                    owner.user.id,
                    UserBillingUpdateModel(
                        stripe_subscription_id=None,
                        stripe_product_id=None,
                        plan_type=None,
                        subscription_status=status,
                    ),
                )
            else:
                logger.warning(
                    "Individual plan for a customer linked only to a team", extra=log_extra
                )
                return
            logger.info(f"Cleared subscription {subscription.id}", extra=log_extra)

        else:
            logger.info(
                f"Subscription {subscription.id} is {subscription.status}; no state change",
                extra=log_extra,
            )
