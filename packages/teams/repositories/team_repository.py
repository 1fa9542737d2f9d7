from typing import Optional
from sqlalchemy import select

from common.repositories.base import BaseRepository
from packages.teams.models.database.team import TeamEntity, TeamMemberEntity
from packages.teams.models.domain.team import Team
from common.core.otel_axiom_exporter import trace_span


class TeamRepository(BaseRepository[TeamEntity, Team]):
    def __init__(self):
        super().__init__(TeamEntity, Team)

    @trace_span
    async def get_for_user(self, user_id: int) -> Optional[Team]:
        """Get the team a user is a member of, if any."""
        async with self._get_session() as session:
            result = await session.execute(
                select(TeamEntity)
                .join(TeamMemberEntity, TeamMemberEntity.team_id == TeamEntity.id)
                .where(
                    TeamMemberEntity.user_id == user_id,
                    TeamEntity.deleted == False,  # noqa
                )
                .limit(1)
            )
            db_team = result.scalar_one_or_none()
            return self._entity_to_domain(db_team) if db_team else None

    @trace_span
    async def get_by_stripe_customer_id(self, customer_id: str) -> Optional[Team]:
        """Get team linked to a Stripe customer."""
        async with self._get_session() as session:
            result = await session.execute(
                select(TeamEntity).where(
                    TeamEntity.stripe_customer_id == customer_id,
                    TeamEntity.deleted == False,  # noqa
                )
            )
            db_team = result.scalar_one_or_none()
            return self._entity_to_domain(db_team) if db_team else None
