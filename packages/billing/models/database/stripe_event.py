from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, JSONType


class StripeEventEntity(Base):
    """Idempotency and audit record for processed Stripe webhook events."""

    __tablename__ = "stripe_events"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    event_id = Column(String(255), nullable=False, unique=True, index=True)
    event_type = Column(String(100), nullable=False)
    payload = Column(JSONType, nullable=True)
    processed = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
