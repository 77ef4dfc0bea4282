"""Cash-flow forecasting engine - balance projection over a window of days"""

import math
from datetime import date, timedelta
from typing import Dict, Iterable, List
from budget_forecast.domain.models import (
    DayBreakdown,
    ForecastDay,
    ForecastResult,
    ForecastSummary,
    LowestPoint,
    RecurringItem,
    Subscription,
    Timeline,
    TimelineDay,
    TimelineEvent,
    Transaction,
)
from budget_forecast.domain.recurrence import expand_cadence, expand_day_of_month, resolve_subscription_amount
from budget_forecast.utils.date_utils import generate_date_range

VARIABLE_LOOKBACK_DAYS = 90


def clamp_days(value, default: int, minimum: int, maximum: int) -> int:
    """Clamp a caller-supplied day count; unusable input falls back to `default`"""
    try:
        days = int(value)
    except (TypeError, ValueError):
        days = default
    except OverflowError:
        # +/-inf
        days = maximum if value > 0 else minimum
    return max(minimum, min(maximum, days))


def _finite(amount) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def estimate_daily_variable(
    transactions: Iterable[Transaction],
    today: date,
    lookback_days: int = VARIABLE_LOOKBACK_DAYS,
) -> float:
    """
    Average daily net cash flow over the trailing window before `today`.

    Only transactions dated in [today - lookback_days, today - 1] count.
    The result is clamped to <= 0: the estimate models unplanned spending,
    while income is expected to come from explicit recurring items.
    """
    window_start = today - timedelta(days=lookback_days)
    net = sum(
        _finite(t.amount)
        for t in transactions
        if window_start <= t.date < today
    )
    avg_daily_net = net / lookback_days if lookback_days > 0 else 0.0
    return min(0.0, avg_daily_net)


def simulate_balance(
    start_balance: float,
    today: date,
    days: int,
    recurring_items: Iterable[RecurringItem] = (),
    subscriptions: Iterable[Subscription] = (),
    estimated_daily_variable: float = 0.0,
) -> ForecastResult:
    """
    Project the balance day by day over [today, today + days].

    Day 0 reports the opening balance as-is. From day 1 on, each day's
    delta (recurring occurrences, subscription occurrences, flat variable
    spend) is added to the running balance. The lowest point only moves on
    a strictly lower balance, so ties keep the earliest date.
    """
    start_balance = _finite(start_balance)
    end = today + timedelta(days=days)

    recurring_by_day = [0.0] * (days + 1)
    for item in recurring_items:
        if not item.is_active:
            continue
        for occurrence in expand_day_of_month(item.day_of_month, today, end):
            recurring_by_day[(occurrence - today).days] += _finite(item.amount)

    for sub in subscriptions:
        if not sub.is_active or sub.next_date is None:
            continue
        amount = _finite(resolve_subscription_amount(sub))
        for occurrence in expand_cadence(sub.next_date, sub.cadence, today, end):
            recurring_by_day[(occurrence - today).days] += amount

    balance = start_balance
    lowest = LowestPoint(date=today, balance=start_balance)
    series = []

    for index, day in enumerate(generate_date_range(today, end)):
        variable = estimated_daily_variable if index > 0 else 0.0
        delta = recurring_by_day[index] + variable

        if index > 0:
            balance += delta
            if balance < lowest.balance:
                lowest = LowestPoint(date=day, balance=balance)

        series.append(
            ForecastDay(
                date=day,
                delta=delta,
                balance=balance,
                breakdown=DayBreakdown(recurring=recurring_by_day[index], variable=variable),
            )
        )

    return ForecastResult(
        days=days,
        start=today,
        end=end,
        start_balance=start_balance,
        estimated_daily_variable=estimated_daily_variable,
        lowest=lowest,
        series=series,
    )


def group_events_by_date(events: Iterable[TimelineEvent]) -> Dict[date, List[TimelineEvent]]:
    """Bucket events per day, higher amounts (income) first within a day"""
    grouped: Dict[date, List[TimelineEvent]] = {}
    for event in events:
        grouped.setdefault(event.date, []).append(event)

    for bucket in grouped.values():
        bucket.sort(key=lambda e: _finite(e.amount), reverse=True)

    return grouped


def build_timeline(start: date, days: int, opening_balance: float, events: Iterable[TimelineEvent]) -> Timeline:
    """
    Walk `days` days from `start`, applying every pre-expanded event.

    Unlike simulate_balance, events dated on the start day are applied to it.
    """
    opening_balance = _finite(opening_balance)
    by_date = group_events_by_date(events)

    balance = opening_balance
    lowest_balance = opening_balance
    lowest_date = start
    timeline = []

    for offset in range(max(days, 0)):
        day = start + timedelta(days=offset)
        todays = by_date.get(day, [])
        delta = sum(_finite(e.amount) for e in todays)
        balance += delta

        if balance < lowest_balance:
            lowest_balance = balance
            lowest_date = day

        timeline.append(TimelineDay(date=day, delta=delta, balance=balance, events=todays))

    return Timeline(
        end=start + timedelta(days=max(days, 1) - 1),
        days=timeline,
        lowest_balance=lowest_balance,
        lowest_date=lowest_date,
    )


def summarize_timeline(timeline: List[TimelineDay]) -> ForecastSummary:
    """
    Runway until the next income day and a naive even daily allowance.

    The next income date is the first day carrying any positive event. The
    runway is the pre-delta opening balance plus every delta strictly before
    that day, split evenly over max(days before income, 1). Without any
    projected income all three derived fields are None.
    """
    start_balance = timeline[0].balance - timeline[0].delta if timeline else 0.0

    income_index = next(
        (i for i, day in enumerate(timeline) if any(_finite(e.amount) > 0 for e in day.events)),
        None,
    )
    if income_index is None:
        return ForecastSummary(
            start_balance=start_balance,
            next_income_date=None,
            balance_until_next_income=None,
            safe_to_spend_per_day=None,
        )

    before_income = timeline[:income_index]
    balance_until_next_income = start_balance + sum(day.delta for day in before_income)
    days_count = max(len(before_income), 1)

    return ForecastSummary(
        start_balance=start_balance,
        next_income_date=timeline[income_index].date,
        balance_until_next_income=balance_until_next_income,
        safe_to_spend_per_day=balance_until_next_income / days_count,
    )
