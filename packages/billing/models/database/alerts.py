"""
Database entity for usage alerts.
"""

from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class UsageAlertEntity(Base):
    """
    One row per (team, threshold, calendar month).

    The unique constraint is what makes concurrent evaluation safe: inserts
    race on it and the loser's insert is ignored.
    """

    __tablename__ = "usage_alerts"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    team_id = Column(
        BigIntegerType,
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    alert_type = Column(String(20), nullable=False)
    # YYYY-MM of the month the threshold was crossed in
    period_month = Column(String(7), nullable=False)

    # Snapshot at the time the threshold was crossed
    usage_percentage = Column(Integer, nullable=False)
    tokens_used = Column(Integer, nullable=False)
    tokens_limit = Column(Integer, nullable=False)

    notification_sent = Column(DateTime(timezone=True), nullable=False)
    email_sent = Column(DateTime(timezone=True), nullable=True)
    acknowledged = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "team_id", "alert_type", "period_month", name="uq_usage_alerts_team_type_month"
        ),
        Index("idx_usage_alerts_team_month", "team_id", "period_month"),
    )
