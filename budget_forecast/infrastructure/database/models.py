"""SQLAlchemy ORM models for budget data"""

import uuid
from sqlalchemy import Column, String, Boolean, Float, DateTime, Date, Integer, Text, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class TransactionRecord(Base):
    """Historical ledger entry"""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_user_merchant", "user_id", "merchant"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(Text, nullable=False, default="")
    merchant = Column(Text, nullable=False, default="")
    account = Column(Text, nullable=False, default="")
    note = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class RecurringItemRecord(Base):
    """Day-of-month recurring template"""

    __tablename__ = "recurring_items"
    __table_args__ = (Index("ix_recurring_items_user_active", "user_id", "is_active"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(Text, nullable=False, default="")
    merchant = Column(Text, nullable=False, default="")
    account = Column(Text, nullable=False, default="")
    note = Column(Text, nullable=False, default="")
    day_of_month = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SubscriptionRecord(Base):
    """Confirmed subscription or bill"""

    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "merchant_key", name="uq_subscriptions_user_merchant_key"),
        Index("ix_subscriptions_user_active", "user_id", "is_active"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False)
    merchant_key = Column(Text, nullable=False)
    display_name = Column(Text, nullable=False)
    cadence = Column(Text, nullable=False)
    expected_amount = Column(Float, nullable=True)
    amount_min = Column(Float, nullable=True)
    amount_max = Column(Float, nullable=True)
    last_date = Column(Date, nullable=True)
    next_date = Column(Date, nullable=True)
    confidence = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    kind = Column(Text, nullable=False, default="subscription")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class SubscriptionIgnoreRecord(Base):
    """Merchant key the user dismissed from candidate detection"""

    __tablename__ = "subscription_ignores"
    __table_args__ = (UniqueConstraint("user_id", "merchant_key", name="uq_subscription_ignores_user_merchant_key"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False)
    merchant_key = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class UserSettingsRecord(Base):
    """Per-user settings; current_balance anchors day 0 of the forecast"""

    __tablename__ = "user_settings"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, unique=True)
    current_balance = Column(Float, nullable=False, default=0.0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
