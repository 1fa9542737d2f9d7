"""
API schemas for plans and access information.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from packages.billing.catalog import FEATURE_DESCRIPTIONS
from packages.billing.models.domain.enums import (
    BillingPeriod,
    PlanClass,
    SubscriptionStatus,
)
from packages.billing.models.domain.plans import PlanDefinition
from packages.billing.models.domain.subscription import SwitchOutcome


class PlanFeatureResponse(BaseModel):
    name: str
    description: Optional[str] = None


class PlanResponse(BaseModel):
    """A plan as shown on the pricing page."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    description: str
    price: float
    price_formatted: str
    billing_period: BillingPeriod
    plan_class: PlanClass
    token_limit: int
    is_metered: bool
    min_seats: Optional[int] = None
    max_seats: Optional[int] = None
    popular: bool
    enterprise: bool
    stripe_price_id: Optional[str] = None
    features: list[PlanFeatureResponse]

    @classmethod
    def from_domain(cls, plan: PlanDefinition) -> "PlanResponse":
        return cls(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            price=plan.price,
            price_formatted=plan.price_formatted,
            billing_period=plan.billing_period,
            plan_class=plan.plan_class,
            token_limit=plan.token_limit,
            is_metered=plan.is_metered,
            min_seats=plan.min_seats,
            max_seats=plan.max_seats,
            popular=plan.popular,
            enterprise=plan.enterprise,
            stripe_price_id=plan.stripe_price_id,
            features=[
                PlanFeatureResponse(name=f, description=FEATURE_DESCRIPTIONS.get(f))
                for f in plan.features
            ],
        )


class PlansResponse(BaseModel):
    individual: list[PlanResponse]
    team: list[PlanResponse]


class TokenInfoResponse(BaseModel):
    limit: int
    remaining: int
    used: int
    percentage: float


class AccessInfoResponse(BaseModel):
    """Entitlement summary plus the flags the UI uses to gate and warn."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_access: bool
    status: SubscriptionStatus
    plan_type: Optional[str] = None
    plan_name: Optional[str] = None
    features: list[str]
    tokens: TokenInfoResponse
    needs_upgrade: bool
    show_usage_warning: bool
    show_usage_critical: bool
    is_blocked: bool


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    plan_type: str = Field(..., min_length=1, max_length=50)
    # Seats for team plans; ignored for metered prices
    quantity: int = Field(default=1, ge=1, le=1000)


class SwitchPlanRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    plan_type: str = Field(..., min_length=1, max_length=50)


class HostedPageResponse(BaseModel):
    """A hosted Stripe page the client should navigate to."""

    url: str


class SwitchPlanResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    outcome: SwitchOutcome
    plan_type: str
    # True when the client must send the user through checkout next
    checkout_required: bool


class CancelSubscriptionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    subscription_id: str
    cancel_at_period_end: bool = True


class SubscriptionSummaryResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    quantity: int
    status: str
    current_period_end: Optional[int] = None
    cancel_at_period_end: bool = False


class TeamSubscriptionResponse(BaseModel):
    subscription: Optional[SubscriptionSummaryResponse] = None
