from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    Boolean,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class TeamEntity(Base):
    __tablename__ = "teams"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    owner_id = Column(
        BigIntegerType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    seat_count = Column(Integer, nullable=False, default=1, server_default="1")

    # Team billing state - stored on team since the Stripe customer is the team
    stripe_customer_id = Column(String(255), nullable=True, unique=True, index=True)
    stripe_subscription_id = Column(String(255), nullable=True, unique=True)
    stripe_product_id = Column(String(255), nullable=True)
    plan_type = Column(String(50), nullable=True)
    subscription_status = Column(String(20), nullable=True)

    deleted = Column(
        Boolean, nullable=False, default=False, server_default="false", index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TeamMemberEntity(Base):
    __tablename__ = "team_members"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    team_id = Column(
        BigIntegerType,
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        BigIntegerType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = Column(String(50), nullable=False, default="member", server_default="member")
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    # A user belongs to at most one team
    __table_args__ = (UniqueConstraint("user_id", name="uq_team_members_user"),)
