"""
Billing package - plans, entitlements, token usage, alerts and Stripe sync.

This package integrates with:
- Stripe: subscriptions (via webhooks) and usage metering for pay-as-you-go
"""
