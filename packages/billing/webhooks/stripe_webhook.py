"""
Stripe webhook handler.

Processing order for one delivery:
1. Verify the signature; nothing is read or written before this succeeds.
2. Parse and classify the event.
3. Resolve the subscription owner and plan (may wait out the owner retry).
4. In one transaction: record the event id, then apply the state change.
   A replayed event id short-circuits as a duplicate; a failure rolls back
   the record too, so Stripe's redelivery is processed again.
"""

import json
from typing import Optional

import stripe
from fastapi import Request, HTTPException, status
from pydantic import ValidationError

from common.core.config import Settings
from common.core.otel_axiom_exporter import get_logger
from common.db.scoped import transaction
from packages.billing.catalog import PlanCatalog
from packages.billing.exceptions import OwnerNotFoundError
from packages.billing.models.domain.stripe_webhooks import StripeEvent, classify_event
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.providers.payment.interface import PaymentProviderInterface
from packages.billing.repositories.stripe_event_repository import StripeEventRepository
from packages.billing.services.subscription_sync_service import SubscriptionSyncService

logger = get_logger(__name__)


async def handle_stripe_webhook(
    request: Request,
    settings: Settings,
    catalog: PlanCatalog,
    payment_provider: Optional[PaymentProviderInterface] = None,
) -> dict[str, bool]:
    """
    Handle incoming webhook from Stripe.

    Returns {"received": True} or {"received": True, "duplicate": True}.
    Raises HTTPException 400 for signature or payload problems and 500 when
    processing fails (Stripe retries those).
    """
    payload_bytes = await request.body()
    sig_header = request.headers.get("stripe-signature")

    if not sig_header:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing stripe-signature header",
        )

    try:
        stripe.Webhook.construct_event(
            payload_bytes, sig_header, settings.stripe_webhook_secret
        )
    except (stripe.error.SignatureVerificationError, ValueError) as e:
        logger.error(f"Stripe webhook signature verification failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook signature verification failed.",
        )

    try:
        raw_event = json.loads(payload_bytes)
        event = StripeEvent.model_validate(raw_event)
        webhook_event = classify_event(event)
    except (ValidationError, ValueError) as e:
        logger.error(
            "Invalid Stripe webhook payload", extra={"validation_error": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload"
        )

    logger.info(
        f"Received Stripe webhook: {event.type}",
        extra={
            "event_id": event.id,
            "event_type": event.type,
            "event_kind": webhook_event.kind,
            "livemode": event.livemode,
        },
    )

    event_repo = StripeEventRepository()
    sync_service = SubscriptionSyncService(
        settings, catalog, payment_provider or get_payment_provider(settings)
    )

    try:
        # Cheap pre-check so replays skip the owner lookup and Stripe calls
        if await event_repo.exists(event.id):
            logger.info(f"Duplicate webhook event: {event.id}")
            return {"received": True, "duplicate": True}

        prepared = await sync_service.prepare(webhook_event)

        async with transaction():
            if not await event_repo.record_if_new(event.id, event.type, raw_event):
                logger.info(f"Duplicate webhook event: {event.id}")
                return {"received": True, "duplicate": True}
            await sync_service.apply(webhook_event, prepared)

    except OwnerNotFoundError as e:
        logger.error(
            f"Webhook owner not found, leaving {event.id} for redelivery",
            extra={
                "event_id": event.id,
                "event_type": event.type,
                "error_type": "owner_not_found",
                **e.context,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        )
    except Exception as e:
        logger.error(
            f"Failed to process Stripe webhook: {str(e)}",
            extra={
                "event_id": event.id,
                "event_type": event.type,
                "error_type": type(e).__name__,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        )

    return {"received": True}
