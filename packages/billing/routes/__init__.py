"""Billing API routes."""

from packages.billing.routes import alerts, billing, tokens, webhooks

__all__ = ["alerts", "billing", "tokens", "webhooks"]
