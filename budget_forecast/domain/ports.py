"""Storage collaborator consumed by the forecast and detection queries"""

from datetime import date
from typing import List, Protocol
from budget_forecast.domain.models import RecurringItem, Subscription, Transaction, UserSettings


class ForecastStore(Protocol):
    """Read-only view of a user's budget data. Implementations raise StorageError on failure."""

    def get_user_settings(self, user_id: str) -> UserSettings: ...

    def list_active_recurring(self, user_id: str) -> List[RecurringItem]: ...

    def list_active_subscriptions(self, user_id: str) -> List[Subscription]: ...

    def list_subscriptions(self, user_id: str) -> List[Subscription]: ...

    def list_transactions(self, user_id: str, start: date, end: date) -> List[Transaction]: ...

    def list_ignored_merchant_keys(self, user_id: str) -> List[str]: ...
