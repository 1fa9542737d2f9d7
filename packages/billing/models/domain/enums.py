"""
Billing enums - strongly typed enumerations for plans, subscription and alert states.
"""

from enum import Enum


class SubscriptionStatus(str, Enum):
    """
    Subscription status as mirrored from Stripe.

    NONE is never stored; it is what a subscriber without any status resolves to.
    """

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"
    NONE = "none"

    def has_access(self) -> bool:
        """Check if this status allows product access."""
        return self in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)

    def is_terminal(self) -> bool:
        """Canceled and unpaid subscriptions lose their plan assignment."""
        return self in (SubscriptionStatus.CANCELED, SubscriptionStatus.UNPAID)


class PlanType(str, Enum):
    """Plan identifiers offered in the catalog."""

    PAY_AS_YOU_GO = "pay_as_you_go"
    PRO_UNLIMITED = "pro_unlimited"
    TEAM = "team"
    ENTERPRISE = "enterprise"


class BillingPeriod(str, Enum):
    MONTH = "month"
    USAGE = "usage"
    CUSTOM = "custom"


class PlanClass(str, Enum):
    """
    How a plan limits tokens, derived only from its token limit.

    -1 is unlimited, 0 is metered (no cap, billed per unit), N > 0 is a
    fixed monthly cap.
    """

    UNLIMITED = "unlimited"
    METERED = "metered"
    FIXED_CAP = "fixed_cap"

    @classmethod
    def from_token_limit(cls, token_limit: int) -> "PlanClass":
        if token_limit == -1:
            return cls.UNLIMITED
        if token_limit > 0:
            return cls.FIXED_CAP
        return cls.METERED


class AlertType(str, Enum):
    """Usage alert thresholds, in ascending order."""

    INFO_50 = "info_50"
    WARNING_80 = "warning_80"
    URGENT_95 = "urgent_95"
    BLOCKED_100 = "blocked_100"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    URGENT = "urgent"
    CRITICAL = "critical"
