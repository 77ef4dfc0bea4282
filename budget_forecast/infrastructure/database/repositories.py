"""Data access layer for budget entities"""

from datetime import date
from typing import List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from budget_forecast.infrastructure.database.models import (
    RecurringItemRecord,
    SubscriptionIgnoreRecord,
    SubscriptionRecord,
    TransactionRecord,
    UserSettingsRecord,
)
from budget_forecast.domain.models import RecurringItem, Subscription, Transaction, UserSettings
from budget_forecast.domain.exceptions import DuplicateSubscriptionError, NotFoundError, StorageError
from budget_forecast.domain.recurrence import clamp_day_of_month


def to_subscription(record: SubscriptionRecord) -> Subscription:
    return Subscription(
        id=record.id,
        user_id=record.user_id,
        merchant_key=record.merchant_key,
        display_name=record.display_name,
        cadence=record.cadence,
        expected_amount=record.expected_amount,
        amount_min=record.amount_min,
        amount_max=record.amount_max,
        last_date=record.last_date,
        next_date=record.next_date,
        confidence=record.confidence,
        is_active=record.is_active,
        kind=record.kind,
    )


class TransactionRepository:
    """Repository for historical transactions"""

    def __init__(self, db: Session):
        self.db = db

    def list_between(self, user_id: str, start: date, end: date) -> List[Transaction]:
        """Transactions dated in [start, end], oldest first"""
        records = (
            self.db.query(TransactionRecord)
            .filter(
                TransactionRecord.user_id == user_id,
                TransactionRecord.date >= start,
                TransactionRecord.date <= end,
            )
            .order_by(TransactionRecord.date.asc())
            .all()
        )
        return [
            Transaction(
                id=r.id,
                user_id=r.user_id,
                date=r.date,
                amount=r.amount,
                category=r.category,
                merchant=r.merchant,
                account=r.account,
                note=r.note,
            )
            for r in records
        ]


class RecurringRepository:
    """Repository for day-of-month recurring items"""

    def __init__(self, db: Session):
        self.db = db

    def list_active(self, user_id: str) -> List[RecurringItem]:
        records = (
            self.db.query(RecurringItemRecord)
            .filter(RecurringItemRecord.user_id == user_id, RecurringItemRecord.is_active.is_(True))
            .order_by(RecurringItemRecord.created_at.asc())
            .all()
        )
        return [
            RecurringItem(
                id=r.id,
                user_id=r.user_id,
                name=r.name,
                amount=r.amount,
                day_of_month=clamp_day_of_month(r.day_of_month),
                category=r.category,
                merchant=r.merchant,
                account=r.account,
                note=r.note,
                is_active=r.is_active,
            )
            for r in records
        ]


class SubscriptionRepository:
    """Repository for confirmed subscriptions and bills"""

    def __init__(self, db: Session):
        self.db = db

    def list_by_user(self, user_id: str, active_only: bool = False) -> List[SubscriptionRecord]:
        query = self.db.query(SubscriptionRecord).filter(SubscriptionRecord.user_id == user_id)
        if active_only:
            query = query.filter(SubscriptionRecord.is_active.is_(True))
        return query.order_by(SubscriptionRecord.display_name.asc()).all()

    def get(self, user_id: str, subscription_id: str) -> SubscriptionRecord:
        record = (
            self.db.query(SubscriptionRecord)
            .filter(SubscriptionRecord.id == subscription_id, SubscriptionRecord.user_id == user_id)
            .first()
        )
        if record is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        return record

    def create(self, user_id: str, subscription: Subscription) -> SubscriptionRecord:
        """Persist a confirmed subscription; merchant keys are unique per user"""
        existing = (
            self.db.query(SubscriptionRecord)
            .filter(
                SubscriptionRecord.user_id == user_id,
                SubscriptionRecord.merchant_key == subscription.merchant_key,
            )
            .first()
        )
        if existing is not None:
            raise DuplicateSubscriptionError(f"'{subscription.merchant_key}' is already tracked")

        record = SubscriptionRecord(
            user_id=user_id,
            merchant_key=subscription.merchant_key,
            display_name=subscription.display_name,
            cadence=subscription.cadence,
            expected_amount=subscription.expected_amount,
            amount_min=subscription.amount_min,
            amount_max=subscription.amount_max,
            last_date=subscription.last_date,
            next_date=subscription.next_date,
            confidence=subscription.confidence,
            is_active=subscription.is_active,
            kind=subscription.kind,
        )
        self.db.add(record)
        try:
            self.db.flush()  # Get ID without committing
        except IntegrityError as e:
            raise DuplicateSubscriptionError(f"'{subscription.merchant_key}' is already tracked") from e
        return record

    def update(
        self,
        user_id: str,
        subscription_id: str,
        is_active: Optional[bool] = None,
        kind: Optional[str] = None,
        cadence: Optional[str] = None,
        next_date: Optional[date] = None,
        clear_next_date: bool = False,
    ) -> SubscriptionRecord:
        """Apply the given changes; None leaves a field unchanged, clear_next_date stops projection"""
        record = self.get(user_id, subscription_id)
        if is_active is not None:
            record.is_active = is_active
        if kind is not None:
            record.kind = kind
        if cadence is not None:
            record.cadence = cadence
        if next_date is not None:
            record.next_date = next_date
        elif clear_next_date:
            record.next_date = None
        self.db.flush()
        return record

    def delete(self, user_id: str, subscription_id: str) -> None:
        self.db.delete(self.get(user_id, subscription_id))
        self.db.flush()


class IgnoredMerchantRepository:
    """Repository for merchant keys suppressed from candidate detection"""

    def __init__(self, db: Session):
        self.db = db

    def list_keys(self, user_id: str) -> List[str]:
        rows = (
            self.db.query(SubscriptionIgnoreRecord.merchant_key)
            .filter(SubscriptionIgnoreRecord.user_id == user_id)
            .all()
        )
        return [row[0] for row in rows]

    def add(self, user_id: str, merchant_key: str) -> SubscriptionIgnoreRecord:
        """Idempotent: returns the existing row when the key is already ignored"""
        existing = (
            self.db.query(SubscriptionIgnoreRecord)
            .filter(
                SubscriptionIgnoreRecord.user_id == user_id,
                SubscriptionIgnoreRecord.merchant_key == merchant_key,
            )
            .first()
        )
        if existing is not None:
            return existing

        record = SubscriptionIgnoreRecord(user_id=user_id, merchant_key=merchant_key)
        self.db.add(record)
        self.db.flush()
        return record


class SettingsRepository:
    """Repository for the single settings row per user"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> UserSettings:
        record = self.db.query(UserSettingsRecord).filter(UserSettingsRecord.user_id == user_id).first()
        if record is None:
            return UserSettings(user_id=user_id, current_balance=0.0)
        return UserSettings(user_id=user_id, current_balance=record.current_balance)

    def set_current_balance(self, user_id: str, current_balance: float) -> UserSettings:
        record = self.db.query(UserSettingsRecord).filter(UserSettingsRecord.user_id == user_id).first()
        if record is None:
            record = UserSettingsRecord(user_id=user_id, current_balance=current_balance)
            self.db.add(record)
        else:
            record.current_balance = current_balance
        self.db.flush()
        return UserSettings(user_id=user_id, current_balance=record.current_balance)


class DatabaseForecastStore:
    """ForecastStore backed by a SQLAlchemy session; wraps driver errors in StorageError"""

    def __init__(self, db: Session):
        self.transactions = TransactionRepository(db)
        self.recurring = RecurringRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.ignored = IgnoredMerchantRepository(db)
        self.settings = SettingsRepository(db)

    def get_user_settings(self, user_id: str) -> UserSettings:
        try:
            return self.settings.get(user_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read settings: {e}") from e

    def list_active_recurring(self, user_id: str) -> List[RecurringItem]:
        try:
            return self.recurring.list_active(user_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read recurring items: {e}") from e

    def list_active_subscriptions(self, user_id: str) -> List[Subscription]:
        try:
            return [to_subscription(r) for r in self.subscriptions.list_by_user(user_id, active_only=True)]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read subscriptions: {e}") from e

    def list_subscriptions(self, user_id: str) -> List[Subscription]:
        try:
            return [to_subscription(r) for r in self.subscriptions.list_by_user(user_id)]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read subscriptions: {e}") from e

    def list_transactions(self, user_id: str, start: date, end: date) -> List[Transaction]:
        try:
            return self.transactions.list_between(user_id, start, end)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read transactions: {e}") from e

    def list_ignored_merchant_keys(self, user_id: str) -> List[str]:
        try:
            return self.ignored.list_keys(user_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read ignored merchants: {e}") from e
