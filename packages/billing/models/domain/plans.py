"""Domain models for billing plans."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, model_validator

from packages.billing.models.domain.enums import BillingPeriod, PlanClass


class PlanDefinition(BaseModel):
    """
    Immutable catalog entry for a plan.

    token_limit: -1 = unlimited, 0 = metered (pay per use), > 0 = fixed monthly cap.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    stripe_price_id: Optional[str] = None
    price: float  # dollars; per token for metered plans, per seat for team plans
    billing_period: BillingPeriod
    token_limit: int
    is_metered: bool = False
    min_seats: Optional[int] = None
    max_seats: Optional[int] = None
    popular: bool = False
    enterprise: bool = False
    features: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_token_limit(self) -> "PlanDefinition":
        if self.token_limit < -1:
            raise ValueError("token_limit must be -1 (unlimited), 0 (metered) or positive")
        # A capped plan is enforced locally; metering it would bill past the cap
        if self.token_limit > 0 and self.is_metered:
            raise ValueError("a plan with a fixed token cap cannot be metered")
        return self

    @property
    def plan_class(self) -> PlanClass:
        return PlanClass.from_token_limit(self.token_limit)

    @property
    def is_unlimited(self) -> bool:
        return self.token_limit == -1

    @property
    def has_fixed_cap(self) -> bool:
        return self.token_limit > 0

    @property
    def price_formatted(self) -> str:
        if self.price == 0:
            return "Custom" if self.enterprise else "$0"
        if self.price == int(self.price):
            return f"${int(self.price)}"
        return f"${self.price:.2f}"
