from fastapi import APIRouter

from api.v1.routes import health
from packages.billing.routes import alerts, billing, tokens, webhooks

api_router = APIRouter()

# Health check (no auth required)
api_router.include_router(health.router, prefix="/health", tags=["health"])

# Webhooks (no auth - signature verified internally)
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])

# Billing: /plans is public, /access authenticates via its own dependency
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])

# Token metering and alerts (x-api-key enforced per endpoint)
api_router.include_router(tokens.router, prefix="/tokens", tags=["tokens"])
api_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
