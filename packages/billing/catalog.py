"""
Plan catalog - static registry of plans, limits, pricing and features.

The catalog is built once from settings at startup and handed to the services
that need it; nothing here reads configuration on its own.
"""

from typing import Iterable, Optional

from common.core.config import Settings
from packages.billing.models.domain.enums import BillingPeriod, PlanType
from packages.billing.models.domain.plans import PlanDefinition


# Historical Stripe product names that now map to a current plan
LEGACY_PLAN_MAPPING: dict[str, str] = {
    "Transformertokens": PlanType.PAY_AS_YOU_GO.value,
    "TransformerTokens": PlanType.PAY_AS_YOU_GO.value,
    "transformertokens": PlanType.PAY_AS_YOU_GO.value,
}

# Stripe product display name -> plan, used when subscription metadata has no planType
PRODUCT_NAME_PLAN_MAPPING: dict[str, str] = {
    "Transformertokens": PlanType.PAY_AS_YOU_GO.value,
    "Pro Unlimited": PlanType.PRO_UNLIMITED.value,
    "Plus": PlanType.PRO_UNLIMITED.value,
    "Team": PlanType.TEAM.value,
    "Enterprise": PlanType.ENTERPRISE.value,
}

TEAM_PLAN_IDS = frozenset({PlanType.TEAM.value, PlanType.ENTERPRISE.value})

FEATURE_DESCRIPTIONS: dict[str, str] = {
    "Pay only for what you use": "No monthly commitment, charged per token",
    "No monthly commitment": "Cancel anytime, no long-term contracts",
    "$0.50 per token": "Simple, transparent pricing",
    "Basic support": "Email support (48h response)",
    "API access": "Full REST API access",
    "Unlimited tokens": "No usage limits or metering",
    "All premium features": "Access to all platform features",
    "Advanced analytics": "Detailed usage and performance analytics",
    "Priority support": "Priority email support (24h response)",
    "Export capabilities": "Export your data anytime",
    "Everything in Pro": "All features from Pro plan",
    "Shared workspace": "Collaborate with your team in shared spaces",
    "Team collaboration": "Real-time collaboration tools",
    "Admin controls": "Manage team members and permissions",
    "Usage analytics per member": "Track individual team member usage",
    "Everything in Team": "All features from Team plan",
    "Custom integrations": "Build custom integrations with our API",
    "Dedicated account manager": "Personal support from our team",
    "SLA guarantee": "99.9% uptime guarantee",
    "Advanced security": "SSO, SAML, advanced security features",
    "Custom contracts": "Flexible contract terms",
    "Volume discounts": "Discounted pricing for high volume",
    "On-premise options": "Self-hosted deployment available",
}

DEFAULT_PLANS: tuple[PlanDefinition, ...] = (
    PlanDefinition(
        id=PlanType.PAY_AS_YOU_GO.value,
        name="Pay as You Go",
        description="Perfect for occasional use. Pay only for what you consume.",
        price=0.50,
        billing_period=BillingPeriod.USAGE,
        token_limit=0,
        is_metered=True,
        features=(
            "Pay only for what you use",
            "No monthly commitment",
            "$0.50 per token",
            "Basic support",
            "API access",
        ),
    ),
    PlanDefinition(
        id=PlanType.PRO_UNLIMITED.value,
        name="Pro Unlimited",
        description="Best for power users. Unlimited tokens at a flat monthly rate.",
        price=29,
        billing_period=BillingPeriod.MONTH,
        token_limit=-1,
        popular=True,
        features=(
            "Unlimited tokens",
            "All premium features",
            "Advanced analytics",
            "Priority support",
            "API access",
            "Export capabilities",
        ),
    ),
    PlanDefinition(
        id=PlanType.TEAM.value,
        name="Team",
        description="Collaborate with your team. Unlimited tokens per seat.",
        price=19,
        billing_period=BillingPeriod.MONTH,
        token_limit=-1,
        min_seats=2,
        max_seats=50,
        features=(
            "Everything in Pro",
            "Unlimited tokens per seat",
            "Shared workspace",
            "Team collaboration",
            "Admin controls",
            "Usage analytics per member",
            "Priority support",
        ),
    ),
    PlanDefinition(
        id=PlanType.ENTERPRISE.value,
        name="Enterprise",
        description="Custom solutions for large organizations.",
        price=0,
        billing_period=BillingPeriod.CUSTOM,
        token_limit=-1,
        enterprise=True,
        features=(
            "Everything in Team",
            "Custom integrations",
            "Dedicated account manager",
            "SLA guarantee",
            "Advanced security",
            "Custom contracts",
            "Volume discounts",
            "On-premise options",
        ),
    ),
)


class PlanCatalog:
    """Pure lookup over plan definitions. No I/O, no failure beyond "not found"."""

    def __init__(
        self,
        plans: Iterable[PlanDefinition] = DEFAULT_PLANS,
        individual_plan_ids: Optional[Iterable[str]] = None,
        team_plan_ids: Optional[Iterable[str]] = None,
    ):
        self._plans: dict[str, PlanDefinition] = {plan.id: plan for plan in plans}
        self._individual_ids = list(
            individual_plan_ids
            if individual_plan_ids is not None
            else [pid for pid in self._plans if pid not in TEAM_PLAN_IDS]
        )
        self._team_ids = list(
            team_plan_ids
            if team_plan_ids is not None
            else [pid for pid in self._plans if pid in TEAM_PLAN_IDS]
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlanCatalog":
        """Default plans with configured Stripe price IDs and enabled plan lists."""
        price_ids = settings.stripe_price_ids
        plans = [
            plan.model_copy(update={"stripe_price_id": price_ids.get(plan.id)})
            for plan in DEFAULT_PLANS
        ]
        return cls(
            plans,
            individual_plan_ids=settings.enabled_individual_plans,
            team_plan_ids=settings.enabled_team_plans,
        )

    @staticmethod
    def canonical_id(plan_id: Optional[str]) -> Optional[str]:
        """Apply the legacy alias table."""
        if not plan_id:
            return None
        return LEGACY_PLAN_MAPPING.get(plan_id, plan_id)

    def resolve(self, plan_id: Optional[str]) -> Optional[PlanDefinition]:
        canonical = self.canonical_id(plan_id)
        if canonical is None:
            return None
        return self._plans.get(canonical)

    def token_limit(self, plan_id: Optional[str]) -> int:
        """Token limit for a plan; unknown plans report 0."""
        plan = self.resolve(plan_id)
        return plan.token_limit if plan else 0

    def is_unlimited(self, plan_id: Optional[str]) -> bool:
        plan = self.resolve(plan_id)
        return plan is not None and plan.is_unlimited

    def is_metered(self, plan_id: Optional[str]) -> bool:
        plan = self.resolve(plan_id)
        return plan is not None and plan.is_metered

    def has_fixed_cap(self, plan_id: Optional[str]) -> bool:
        plan = self.resolve(plan_id)
        return plan is not None and plan.has_fixed_cap

    def has_feature(self, plan_id: Optional[str], feature: str) -> bool:
        plan = self.resolve(plan_id)
        return plan is not None and feature in plan.features

    @staticmethod
    def is_team_plan(plan_id: Optional[str]) -> bool:
        return plan_id in TEAM_PLAN_IDS

    @staticmethod
    def plan_for_product_name(product_name: Optional[str]) -> Optional[str]:
        if not product_name:
            return None
        return PRODUCT_NAME_PLAN_MAPPING.get(product_name)

    def individual_plans(self) -> list[PlanDefinition]:
        return [self._plans[pid] for pid in self._individual_ids if pid in self._plans]

    def team_plans(self) -> list[PlanDefinition]:
        return [self._plans[pid] for pid in self._team_ids if pid in self._plans]

    def all_plans(self) -> list[PlanDefinition]:
        """Enabled plans, individual first."""
        return self.individual_plans() + self.team_plans()

    def all_features(self) -> list[str]:
        seen: dict[str, None] = {}
        for plan in self._plans.values():
            for feature in plan.features:
                seen.setdefault(feature, None)
        return list(seen)
