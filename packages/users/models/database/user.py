from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class UserEntity(Base):
    __tablename__ = "users"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=True)
    # sha256 of the API key presented in x-api-key
    api_key_hash = Column(String(64), nullable=True, unique=True, index=True)

    # Individual billing state, mirrored from Stripe by the webhook reconciler
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
