"""Request-scoped access to process configuration stored on app.state."""

from fastapi import Request

from common.core.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
