import secrets
import hashlib
from typing import Optional

from packages.users.models.domain.user import User
from packages.users.repositories.user_repository import UserRepository
from common.core.otel_axiom_exporter import trace_span, get_logger

logger = get_logger(__name__)

API_KEY_PREFIX = "tm_"


class ApiKeyService:
    """Issues and verifies the API keys callers present in x-api-key."""

    def __init__(self):
        self.user_repo = UserRepository()

    @staticmethod
    def generate_api_key() -> str:
        """Generate a secure random API key."""
        # Format: tm_<32 random bytes as hex>
        return f"{API_KEY_PREFIX}{secrets.token_hex(32)}"

    @staticmethod
    def hash_api_key(api_key: str) -> str:
        """Hash an API key for storage."""
        return hashlib.sha256(api_key.encode()).hexdigest()

    @trace_span
    async def authenticate_api_key(self, api_key: str) -> Optional[User]:
        """Return the user owning the key, or None."""
        if not api_key:
            return None

        user = await self.user_repo.get_by_api_key_hash(self.hash_api_key(api_key))
        if not user:
            logger.info("API key authentication failed")
            return None
        return user
