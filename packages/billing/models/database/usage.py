"""
Database entity for the token usage ledger.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Integer
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, JSONType


class UsageEventEntity(Base):
    """
    Token consumption record.

    Append-only: rows are never updated or deleted. Monthly totals are summed
    over created_at, so the (subscriber, created_at) indexes carry every read.
    """

    __tablename__ = "token_usage"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        BigIntegerType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Set when the actor belonged to a team at consumption time
    team_id = Column(
        BigIntegerType,
        ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True,
    )

    tokens = Column(Integer, nullable=False)
    action = Column(String(100), nullable=False)

    # Stripe meter event identifier, only for metered plans that reported
    stripe_meter_event_id = Column(String(255), nullable=True)

    # Opaque caller-supplied context
    event_metadata = Column("metadata", JSONType, nullable=True)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_token_usage_user_date", "user_id", "created_at"),
        Index("idx_token_usage_team_date", "team_id", "created_at"),
    )
