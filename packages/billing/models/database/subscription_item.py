from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class SubscriptionItemEntity(Base):
    """
    Mirror of one line item of a team's Stripe subscription.

    Rows for a subscription are replaced wholesale on every reconciliation.
    """

    __tablename__ = "subscription_items"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    team_id = Column(
        BigIntegerType,
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stripe_subscription_id = Column(String(255), nullable=False, index=True)
    stripe_subscription_item_id = Column(String(255), nullable=False, unique=True)
    stripe_product_id = Column(String(255), nullable=False)
    stripe_price_id = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=True)
    is_metered = Column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
