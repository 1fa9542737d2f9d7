"""
Domain models for Stripe webhook payloads.

Only the fields reconciliation reads are modelled; Stripe sends many more and
they are ignored. Each verified event is classified into exactly one of the
WebhookEvent variants below, and the handler dispatches on the variant rather
than on the raw type string.
"""

from datetime import datetime
from typing import Any, Literal, Optional, Union
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class StripeWebhookType(str, Enum):
    """Stripe webhook event types we know about."""

    # Checkout
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"

    # Subscription
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    SUBSCRIPTION_TRIAL_WILL_END = "customer.subscription.trial_will_end"

    # Invoice
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
    INVOICE_FINALIZED = "invoice.finalized"
    INVOICE_UPCOMING = "invoice.upcoming"

    # Customer / payment method
    CUSTOMER_UPDATED = "customer.updated"
    PAYMENT_METHOD_ATTACHED = "payment_method.attached"
    PAYMENT_METHOD_DETACHED = "payment_method.detached"

    # Metering
    METER_ERROR_REPORT_TRIGGERED = "billing.meter.error_report_triggered"


SUBSCRIPTION_CHANGE_TYPES = frozenset(
    {
        StripeWebhookType.SUBSCRIPTION_CREATED.value,
        StripeWebhookType.SUBSCRIPTION_UPDATED.value,
        StripeWebhookType.SUBSCRIPTION_DELETED.value,
    }
)

# Logged only; notification dispatch for these lives outside this service
OBSERVED_ONLY_TYPES = frozenset(
    {
        StripeWebhookType.SUBSCRIPTION_TRIAL_WILL_END.value,
        StripeWebhookType.INVOICE_PAYMENT_SUCCEEDED.value,
        StripeWebhookType.INVOICE_PAYMENT_FAILED.value,
        StripeWebhookType.INVOICE_FINALIZED.value,
        StripeWebhookType.INVOICE_UPCOMING.value,
        StripeWebhookType.CUSTOMER_UPDATED.value,
        StripeWebhookType.PAYMENT_METHOD_ATTACHED.value,
        StripeWebhookType.PAYMENT_METHOD_DETACHED.value,
        StripeWebhookType.METER_ERROR_REPORT_TRIGGERED.value,
    }
)


class StripeEventData(BaseModel):
    """Stripe event data wrapper."""

    object: dict[str, Any]


class StripeEvent(BaseModel):
    """
    Verified Stripe event envelope.

    ``type`` stays a plain string so unknown event types still parse and
    end up as Unhandled instead of failing validation.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    data: StripeEventData
    created: Optional[int] = None
    livemode: bool = False


class StripeCheckoutSessionData(BaseModel):
    """Stripe checkout session object."""

    model_config = ConfigDict(extra="ignore")

    id: str
    customer: Optional[str] = None
    client_reference_id: Optional[str] = None
    subscription: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)


class StripeRecurring(BaseModel):
    model_config = ConfigDict(extra="ignore")

    usage_type: Optional[str] = None


class StripePrice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    product: str
    recurring: Optional[StripeRecurring] = None

    @property
    def is_metered(self) -> bool:
        return self.recurring is not None and self.recurring.usage_type == "metered"


class StripeSubscriptionItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    price: StripePrice
    quantity: Optional[int] = None


class StripeSubscriptionItems(BaseModel):
    data: list[StripeSubscriptionItem] = Field(default_factory=list)


class StripeSubscriptionData(BaseModel):
    """Stripe subscription object."""

    model_config = ConfigDict(extra="ignore")

    id: str
    customer: str
    status: str
    created: Optional[int] = None
    metadata: dict[str, str] = Field(default_factory=dict)
    items: StripeSubscriptionItems = Field(default_factory=StripeSubscriptionItems)

    @property
    def primary_item(self) -> Optional[StripeSubscriptionItem]:
        return self.items.data[0] if self.items.data else None

    @property
    def plan_type_hint(self) -> Optional[str]:
        """Plan type set on the subscription at checkout, if any."""
        return self.metadata.get("planType") or None


# Closed set of webhook variants


class CheckoutCompleted(BaseModel):
    kind: Literal["checkout_completed"] = "checkout_completed"
    event_id: str
    session: StripeCheckoutSessionData


class SubscriptionChanged(BaseModel):
    kind: Literal["subscription_changed"] = "subscription_changed"
    event_id: str
    event_type: str
    subscription: StripeSubscriptionData


class ObservedOnly(BaseModel):
    kind: Literal["observed_only"] = "observed_only"
    event_id: str
    event_type: str
    object_id: Optional[str] = None


class Unhandled(BaseModel):
    kind: Literal["unhandled"] = "unhandled"
    event_id: str
    event_type: str


WebhookEvent = Union[CheckoutCompleted, SubscriptionChanged, ObservedOnly, Unhandled]


def classify_event(event: StripeEvent) -> WebhookEvent:
    """
    Map a verified event onto its variant.

    Raises pydantic.ValidationError when a known event type carries an object
    that does not have the fields reconciliation needs.
    """
    obj = event.data.object

    if event.type == StripeWebhookType.CHECKOUT_SESSION_COMPLETED.value:
        return CheckoutCompleted(
            event_id=event.id,
            session=StripeCheckoutSessionData.model_validate(obj),
        )
    elif event.type in SUBSCRIPTION_CHANGE_TYPES:
        return SubscriptionChanged(
            event_id=event.id,
            event_type=event.type,
            subscription=StripeSubscriptionData.model_validate(obj),
        )
    elif event.type in OBSERVED_ONLY_TYPES:
        return ObservedOnly(
            event_id=event.id, event_type=event.type, object_id=obj.get("id")
        )
    return Unhandled(event_id=event.id, event_type=event.type)


class StripeEventRecord(BaseModel):
    """Stored idempotency row for a processed event."""

    id: int
    event_id: str
    event_type: str
    payload: Optional[dict[str, Any]] = None
    processed: datetime

    class Config:
        from_attributes = True
