"""Read-then-compute query operations over a user's stored budget data"""

from datetime import date, timedelta
from typing import List, Optional
from budget_forecast.domain.forecasting import (
    VARIABLE_LOOKBACK_DAYS,
    build_timeline,
    clamp_days,
    estimate_daily_variable,
    simulate_balance,
    summarize_timeline,
)
from budget_forecast.domain.models import ForecastResult, SubscriptionCandidate, TimelineForecast
from budget_forecast.domain.ports import ForecastStore
from budget_forecast.domain.recurrence import recurring_item_events, subscription_events
from budget_forecast.domain.subscriptions import detect_subscription_candidates

FORECAST_DEFAULT_DAYS = 30
FORECAST_MIN_DAYS = 7
FORECAST_MAX_DAYS = 180

CANDIDATE_DEFAULT_LOOKBACK_DAYS = 180
CANDIDATE_MIN_LOOKBACK_DAYS = 30
CANDIDATE_MAX_LOOKBACK_DAYS = 365


def compute_forecast(
    store: ForecastStore,
    user_id: str,
    window_days=FORECAST_DEFAULT_DAYS,
    today: Optional[date] = None,
    variable_lookback_days: int = VARIABLE_LOOKBACK_DAYS,
    min_days: int = FORECAST_MIN_DAYS,
    max_days: int = FORECAST_MAX_DAYS,
) -> ForecastResult:
    """
    Primary forecast: settings balance + recurring items + subscriptions + variable spend.

    Storage errors propagate unchanged.
    """
    today = today or date.today()
    days = clamp_days(window_days, FORECAST_DEFAULT_DAYS, min_days, max_days)

    settings = store.get_user_settings(user_id)
    recurring = store.list_active_recurring(user_id)
    subscriptions = store.list_active_subscriptions(user_id)
    history = store.list_transactions(
        user_id,
        today - timedelta(days=variable_lookback_days),
        today - timedelta(days=1),
    )

    return simulate_balance(
        start_balance=settings.current_balance,
        today=today,
        days=days,
        recurring_items=recurring,
        subscriptions=subscriptions,
        estimated_daily_variable=estimate_daily_variable(history, today, variable_lookback_days),
    )


def compute_timeline_forecast(
    store: ForecastStore,
    user_id: str,
    days=FORECAST_DEFAULT_DAYS,
    today: Optional[date] = None,
    min_days: int = FORECAST_MIN_DAYS,
    max_days: int = FORECAST_MAX_DAYS,
) -> TimelineForecast:
    """
    Alternate forecast: event timeline grouped by date with a safe-to-spend summary.

    No variable spend is blended in; events falling on the start day are applied.
    """
    today = today or date.today()
    days = clamp_days(days, FORECAST_DEFAULT_DAYS, min_days, max_days)
    window_end = today + timedelta(days=days - 1)

    settings = store.get_user_settings(user_id)
    events = recurring_item_events(store.list_active_recurring(user_id), today, window_end)
    events += subscription_events(store.list_active_subscriptions(user_id), today, window_end)

    timeline = build_timeline(today, days, settings.current_balance, events)

    return TimelineForecast(
        start=today,
        end=timeline.end,
        opening_balance=settings.current_balance,
        lowest_balance=timeline.lowest_balance,
        lowest_date=timeline.lowest_date,
        timeline=timeline.days,
        summary=summarize_timeline(timeline.days),
    )


def compute_subscription_candidates(
    store: ForecastStore,
    user_id: str,
    lookback_days=CANDIDATE_DEFAULT_LOOKBACK_DAYS,
    today: Optional[date] = None,
    min_lookback: int = CANDIDATE_MIN_LOOKBACK_DAYS,
    max_lookback: int = CANDIDATE_MAX_LOOKBACK_DAYS,
) -> List[SubscriptionCandidate]:
    """Ranked recurring-charge suggestions, excluding ignored and already confirmed merchants"""
    today = today or date.today()
    lookback = clamp_days(lookback_days, CANDIDATE_DEFAULT_LOOKBACK_DAYS, min_lookback, max_lookback)

    transactions = store.list_transactions(user_id, today - timedelta(days=lookback), today)
    excluded = set(store.list_ignored_merchant_keys(user_id))
    excluded.update(sub.merchant_key for sub in store.list_subscriptions(user_id))

    return detect_subscription_candidates(transactions, excluded_keys=excluded)
