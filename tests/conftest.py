"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from budget_forecast.api.main import create_app
from budget_forecast.infrastructure.database.models import Base
from budget_forecast.infrastructure.database.session import get_db
from budget_forecast.domain.models import RecurringItem, Subscription, Transaction, UserSettings


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def app(db: Session):
    """FastAPI app wired to the test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Create FastAPI test client with test database"""
    return TestClient(app)


class FakeStore:
    """In-memory ForecastStore that records the transaction ranges it was asked for"""

    def __init__(
        self,
        balance: float = 0.0,
        recurring: List[RecurringItem] | None = None,
        subscriptions: List[Subscription] | None = None,
        transactions: List[Transaction] | None = None,
        ignored: List[str] | None = None,
    ):
        self.balance = balance
        self.recurring = recurring or []
        self.subscriptions = subscriptions or []
        self.transactions = transactions or []
        self.ignored = ignored or []
        self.transaction_ranges = []

    def get_user_settings(self, user_id: str) -> UserSettings:
        return UserSettings(user_id=user_id, current_balance=self.balance)

    def list_active_recurring(self, user_id: str) -> List[RecurringItem]:
        return [r for r in self.recurring if r.is_active]

    def list_active_subscriptions(self, user_id: str) -> List[Subscription]:
        return [s for s in self.subscriptions if s.is_active]

    def list_subscriptions(self, user_id: str) -> List[Subscription]:
        return list(self.subscriptions)

    def list_transactions(self, user_id: str, start: date, end: date) -> List[Transaction]:
        self.transaction_ranges.append((start, end))
        return [t for t in self.transactions if start <= t.date <= end]

    def list_ignored_merchant_keys(self, user_id: str) -> List[str]:
        return list(self.ignored)


def make_transaction(day: date, amount: float, merchant: str = "", txn_id: str | None = None) -> Transaction:
    return Transaction(
        id=txn_id or f"{merchant}_{day.isoformat()}_{amount}",
        user_id="user_1",
        date=day,
        amount=amount,
        merchant=merchant,
    )


def series_of(merchant: str, first: date, gap_days: int, amounts: List[float]) -> List[Transaction]:
    """Transactions at one merchant, `gap_days` apart"""
    return [
        make_transaction(first + timedelta(days=i * gap_days), amount, merchant)
        for i, amount in enumerate(amounts)
    ]

