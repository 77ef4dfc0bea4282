"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass
class Transaction:
    """Historical ledger entry (amount is signed: income > 0, spend < 0)"""

    id: str
    user_id: str
    date: date
    amount: float
    category: str = ""
    merchant: str = ""
    account: str = ""
    note: str = ""


@dataclass
class RecurringItem:
    """User-declared template that repeats on a fixed day of every month"""

    id: str
    user_id: str
    name: str
    amount: float
    day_of_month: int
    category: str = ""
    merchant: str = ""
    account: str = ""
    note: str = ""
    is_active: bool = True


@dataclass
class Subscription:
    """Confirmed recurring charge (subscription or bill) anchored on next_date"""

    id: str
    user_id: str
    merchant_key: str
    display_name: str
    cadence: str  # weekly | biweekly | monthly | quarterly | yearly | unknown
    expected_amount: Optional[float] = None
    amount_min: Optional[float] = None
    amount_max: Optional[float] = None
    last_date: Optional[date] = None
    next_date: Optional[date] = None
    confidence: int = 0
    is_active: bool = True
    kind: str = "subscription"  # subscription | bill


@dataclass
class SubscriptionCandidate:
    """Recurring charge inferred from transaction history, pending confirmation"""

    merchant_key: str
    display_name: str
    cadence: str
    expected_amount: float
    amount_min: float
    amount_max: float
    last_date: date
    confidence: int
    observations: int
    median_gap_days: float
    next_date: Optional[date] = None


@dataclass
class UserSettings:
    user_id: str
    current_balance: float = 0.0


@dataclass
class LowestPoint:
    date: date
    balance: float


@dataclass
class DayBreakdown:
    recurring: float
    variable: float


@dataclass
class ForecastDay:
    """Single day in the balance projection"""

    date: date
    delta: float
    balance: float
    breakdown: DayBreakdown


@dataclass
class ForecastResult:
    """Output of the day-by-day balance simulation"""

    days: int
    start: date
    end: date
    start_balance: float
    estimated_daily_variable: float
    lowest: LowestPoint
    series: List[ForecastDay]


@dataclass
class TimelineEvent:
    """Dated cash event produced by expanding a recurring template"""

    kind: str  # recurring | subscription
    recurring_id: str
    date: date
    amount: float
    description: str


@dataclass
class TimelineDay:
    date: date
    delta: float
    balance: float
    events: List[TimelineEvent] = field(default_factory=list)


@dataclass
class Timeline:
    end: date
    days: List[TimelineDay]
    lowest_balance: float
    lowest_date: date


@dataclass
class ForecastSummary:
    """Runway until the next income event; fields are None when no income is projected"""

    start_balance: float
    next_income_date: Optional[date]
    balance_until_next_income: Optional[float]
    safe_to_spend_per_day: Optional[float]


@dataclass
class TimelineForecast:
    start: date
    end: date
    opening_balance: float
    lowest_balance: float
    lowest_date: date
    timeline: List[TimelineDay]
    summary: ForecastSummary
