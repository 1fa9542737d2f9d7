"""Rate limiter construction for SlowAPI."""

import hashlib

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from common.core.config import Settings


def api_key_or_remote_address(request: Request) -> str:
    """Limit per API key when one is presented, else per client address."""
    api_key = request.headers.get("x-api-key")
    if api_key:
        return "key:" + hashlib.sha256(api_key.encode()).hexdigest()[:16]
    return get_remote_address(request)


def build_limiter(settings: Settings) -> Limiter:
    # Multiple limits: all must be satisfied (whichever is hit first applies).
    # Use a shared storage_uri (redis://...) when running more than one pod.
    return Limiter(
        key_func=api_key_or_remote_address,
        default_limits=settings.rate_limit_defaults,
        storage_uri=settings.rate_limit_storage_uri,
    )
