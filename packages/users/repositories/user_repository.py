from typing import Optional
from sqlalchemy import select

from common.repositories.base import BaseRepository
from packages.users.models.database.user import UserEntity
from packages.users.models.domain.user import User
from common.core.otel_axiom_exporter import trace_span


class UserRepository(BaseRepository[UserEntity, User]):
    def __init__(self):
        super().__init__(UserEntity, User)

    @trace_span
    async def get_by_api_key_hash(self, api_key_hash: str) -> Optional[User]:
        """Get user by hashed API key."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UserEntity).where(
                    UserEntity.api_key_hash == api_key_hash,
                    UserEntity.deleted == False,  # noqa
                )
            )
            db_user = result.scalar_one_or_none()
            return self._entity_to_domain(db_user) if db_user else None

    @trace_span
    async def get_by_stripe_customer_id(self, customer_id: str) -> Optional[User]:
        """Get user linked to a Stripe customer."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UserEntity).where(
                    UserEntity.stripe_customer_id == customer_id,
                    UserEntity.deleted == False,  # noqa
                )
            )
            db_user = result.scalar_one_or_none()
            return self._entity_to_domain(db_user) if db_user else None
