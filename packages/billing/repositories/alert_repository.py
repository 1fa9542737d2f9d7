"""
Repository for usage alerts.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import select, update

from common.core.otel_axiom_exporter import trace_span
from common.db.upsert import insert_ignoring_conflict
from common.repositories.base import BaseRepository
from packages.billing.models.database.alerts import UsageAlertEntity
from packages.billing.models.domain.alerts import UsageAlert, UsageAlertCreateModel


class UsageAlertRepository(BaseRepository[UsageAlertEntity, UsageAlert]):
    def __init__(self):
        super().__init__(UsageAlertEntity, UsageAlert)

    @trace_span
    async def create_if_absent(
        self, create_model: UsageAlertCreateModel
    ) -> Optional[UsageAlert]:
        """
        Insert the alert unless one exists for the same team, type and month.

        Returns the inserted alert, or None when it was already recorded.
        """
        values = create_model.model_dump(exclude_none=True)
        values["alert_type"] = create_model.alert_type.value

        async with self._get_session() as session:
            alert_id = await insert_ignoring_conflict(
                session,
                UsageAlertEntity,
                values,
                index_elements=("team_id", "alert_type", "period_month"),
            )
        if alert_id is None:
            return None
        return await self.get(alert_id)

    @trace_span
    async def get_unacknowledged(
        self, team_id: int, period_month: str
    ) -> list[UsageAlert]:
        """Unacknowledged alerts of one month, newest first."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UsageAlertEntity)
                .where(
                    UsageAlertEntity.team_id == team_id,
                    UsageAlertEntity.period_month == period_month,
                    UsageAlertEntity.acknowledged.is_(None),
                )
                .order_by(
                    UsageAlertEntity.created_at.desc(), UsageAlertEntity.id.desc()
                )
            )
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def get_for_team(self, alert_id: int, team_id: int) -> Optional[UsageAlert]:
        async with self._get_session() as session:
            result = await session.execute(
                select(UsageAlertEntity).where(
                    UsageAlertEntity.id == alert_id,
                    UsageAlertEntity.team_id == team_id,
                )
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def mark_acknowledged(self, alert_id: int, at: datetime) -> None:
        """Stamp acknowledged only if it is still unset."""
        async with self._get_session() as session:
            await session.execute(
                update(UsageAlertEntity)
                .where(
                    UsageAlertEntity.id == alert_id,
                    UsageAlertEntity.acknowledged.is_(None),
                )
                .values(acknowledged=at)
            )

    @trace_span
    async def mark_email_sent(self, alert_id: int, at: datetime) -> None:
        async with self._get_session() as session:
            await session.execute(
                update(UsageAlertEntity)
                .where(UsageAlertEntity.id == alert_id)
                .values(email_sent=at)
            )
