"""Unit tests for balance simulation, variable spend and the runway summary"""

import pytest
from datetime import date, timedelta
from budget_forecast.domain.forecasting import (
    build_timeline,
    clamp_days,
    estimate_daily_variable,
    group_events_by_date,
    simulate_balance,
    summarize_timeline,
)
from budget_forecast.domain.models import RecurringItem, Subscription, TimelineEvent
from conftest import make_transaction


def _rent(day_of_month: int = 1, amount: float = -1200.0, item_id: str = "rent") -> RecurringItem:
    return RecurringItem(id=item_id, user_id="user_1", name="Rent", amount=amount, day_of_month=day_of_month)


def _event(day: date, amount: float, description: str = "Event") -> TimelineEvent:
    return TimelineEvent(kind="recurring", recurring_id=description, date=day, amount=amount, description=description)


# --- variable spend -------------------------------------------------------


def test_estimate_daily_variable_averages_trailing_window():
    today = date(2024, 6, 1)
    transactions = [
        make_transaction(today - timedelta(days=1), -450.0),
        make_transaction(today - timedelta(days=90), -450.0),
        make_transaction(today, -1000.0),  # today is not history yet
        make_transaction(today - timedelta(days=91), -1000.0),  # outside the window
    ]
    assert estimate_daily_variable(transactions, today) == pytest.approx(-10.0)


def test_estimate_daily_variable_never_positive():
    """+500/day of income still projects zero, not a tailwind"""
    today = date(2024, 6, 1)
    transactions = [make_transaction(today - timedelta(days=i), 500.0) for i in range(1, 91)]
    assert estimate_daily_variable(transactions, today) == 0.0


def test_estimate_daily_variable_no_history():
    assert estimate_daily_variable([], date(2024, 6, 1)) == 0.0


def test_estimate_daily_variable_ignores_non_finite_amounts():
    today = date(2024, 6, 1)
    transactions = [
        make_transaction(today - timedelta(days=2), float("nan")),
        make_transaction(today - timedelta(days=3), -90.0),
    ]
    assert estimate_daily_variable(transactions, today) == pytest.approx(-1.0)


# --- primary simulator ----------------------------------------------------


def test_rent_drop_recorded_as_lowest_point():
    """$1000 start, -$1200 rent on the 1st, forecast starting 5 days earlier"""
    today = date(2024, 1, 27)
    result = simulate_balance(1000.0, today, 30, recurring_items=[_rent()])

    assert len(result.series) == 31
    assert result.series[0].balance == 1000.0
    assert result.series[5].date == date(2024, 2, 1)
    assert result.series[4].balance - result.series[5].balance == pytest.approx(1200.0)
    assert result.series[5].balance == pytest.approx(-200.0)
    assert result.lowest.date == date(2024, 2, 1)
    assert result.lowest.balance == pytest.approx(-200.0)
    assert result.estimated_daily_variable == 0.0


def test_longer_window_picks_up_second_occurrence():
    result = simulate_balance(1000.0, date(2024, 1, 27), 60, recurring_items=[_rent()])

    assert result.end == date(2024, 3, 27)
    assert result.lowest.date == date(2024, 3, 1)
    assert result.lowest.balance == pytest.approx(-1400.0)


def test_balance_conservation():
    today = date(2024, 3, 1)
    result = simulate_balance(
        500.0,
        today,
        45,
        recurring_items=[_rent(day_of_month=15, amount=-300.0), _rent(day_of_month=20, amount=900.0, item_id="pay")],
        estimated_daily_variable=-12.5,
    )

    running = result.start_balance
    for index, day in enumerate(result.series):
        if index > 0:
            running += day.delta
        assert day.balance == pytest.approx(running)

    balances = [day.balance for day in result.series]
    assert result.lowest.balance == pytest.approx(min(balances))
    assert result.lowest.date == result.series[balances.index(min(balances))].date


def test_lowest_point_ties_keep_earliest_date():
    today = date(2024, 3, 1)
    items = [
        _rent(day_of_month=4, amount=-50.0, item_id="a"),
        _rent(day_of_month=5, amount=50.0, item_id="b"),
        _rent(day_of_month=6, amount=-50.0, item_id="c"),
    ]
    result = simulate_balance(100.0, today, 10, recurring_items=items)

    assert result.series[3].balance == result.series[5].balance == 50.0
    assert result.lowest.date == date(2024, 3, 4)


def test_day_zero_reports_opening_balance():
    today = date(2024, 3, 10)
    result = simulate_balance(
        400.0, today, 10, recurring_items=[_rent(day_of_month=10, amount=-300.0)], estimated_daily_variable=-5.0
    )

    first = result.series[0]
    assert first.balance == 400.0
    assert first.breakdown.recurring == -300.0
    assert first.breakdown.variable == 0.0
    assert result.series[1].breakdown.variable == -5.0
    assert result.series[1].balance == pytest.approx(395.0)


def test_subscriptions_project_from_next_date():
    today = date(2024, 3, 1)
    subs = [
        Subscription(
            id="gym",
            user_id="user_1",
            merchant_key="gym",
            display_name="Gym",
            cadence="weekly",
            amount_max=-20.0,
            next_date=today + timedelta(days=3),
        ),
        Subscription(
            id="floating",
            user_id="user_1",
            merchant_key="floating",
            display_name="Floating",
            cadence="monthly",
            expected_amount=-99.0,
        ),
        Subscription(
            id="odd",
            user_id="user_1",
            merchant_key="odd",
            display_name="Odd",
            cadence="unknown",
            expected_amount=-99.0,
            next_date=today + timedelta(days=1),
        ),
    ]
    result = simulate_balance(100.0, today, 30, subscriptions=subs)

    charged = [i for i, day in enumerate(result.series) if day.breakdown.recurring]
    assert charged == [3, 10, 17, 24]
    assert result.series[-1].balance == pytest.approx(20.0)


def test_subscription_with_unusable_expected_amount_uses_observed_max():
    today = date(2024, 3, 1)
    sub = Subscription(
        id="stale",
        user_id="user_1",
        merchant_key="stale",
        display_name="Stale",
        cadence="monthly",
        expected_amount=float("nan"),
        amount_max=-10.0,
        next_date=today + timedelta(days=2),
    )
    result = simulate_balance(100.0, today, 10, subscriptions=[sub])

    assert result.series[2].breakdown.recurring == -10.0
    assert result.series[-1].balance == pytest.approx(90.0)


def test_no_inputs_keeps_balance_flat():
    result = simulate_balance(250.0, date(2024, 1, 1), 7)
    assert [day.balance for day in result.series] == [250.0] * 8
    assert result.lowest.date == date(2024, 1, 1)
    assert result.lowest.balance == 250.0


@pytest.mark.parametrize(
    "raw, expected",
    [
        (30, 30),
        (1, 7),
        (1000, 180),
        (None, 30),
        ("abc", 30),
        ("60", 60),
        (float("inf"), 180),
        (float("-inf"), 7),
        (float("nan"), 30),
    ],
)
def test_clamp_days(raw, expected):
    assert clamp_days(raw, 30, 7, 180) == expected


# --- alternate timeline ---------------------------------------------------


def test_group_events_by_date_income_first():
    day = date(2024, 1, 2)
    grouped = group_events_by_date([_event(day, -30.0, "a"), _event(day, 500.0, "b"), _event(day, -20.0, "c")])
    assert [e.amount for e in grouped[day]] == [500.0, -20.0, -30.0]


def test_build_timeline_and_summary():
    start = date(2024, 1, 1)
    events = [
        _event(date(2024, 1, 1), -80.0, "phone"),
        _event(date(2024, 1, 2), -30.0, "streaming"),
        _event(date(2024, 1, 2), -20.0, "music"),
        _event(date(2024, 1, 5), 500.0, "payroll"),
        _event(date(2024, 2, 1), -999.0, "outside"),
    ]
    timeline = build_timeline(start, 10, 100.0, events)

    assert timeline.end == date(2024, 1, 10)
    assert len(timeline.days) == 10
    assert [d.balance for d in timeline.days[:5]] == [20.0, -30.0, -30.0, -30.0, 470.0]
    assert [e.description for e in timeline.days[1].events] == ["music", "streaming"]
    assert timeline.lowest_balance == -30.0
    assert timeline.lowest_date == date(2024, 1, 2)

    summary = summarize_timeline(timeline.days)
    assert summary.start_balance == 100.0
    assert summary.next_income_date == date(2024, 1, 5)
    assert summary.balance_until_next_income == pytest.approx(-30.0)
    assert summary.safe_to_spend_per_day == pytest.approx(-7.5)


def test_summary_without_income_is_null():
    timeline = build_timeline(date(2024, 1, 1), 14, 300.0, [_event(date(2024, 1, 3), -50.0)])
    summary = summarize_timeline(timeline.days)

    assert summary.start_balance == 300.0
    assert summary.next_income_date is None
    assert summary.balance_until_next_income is None
    assert summary.safe_to_spend_per_day is None


def test_summary_income_on_first_day_divides_by_one():
    timeline = build_timeline(date(2024, 1, 1), 7, 100.0, [_event(date(2024, 1, 1), 200.0)])
    summary = summarize_timeline(timeline.days)

    assert summary.next_income_date == date(2024, 1, 1)
    assert summary.balance_until_next_income == 100.0
    assert summary.safe_to_spend_per_day == 100.0


def test_summary_of_empty_timeline():
    summary = summarize_timeline([])
    assert summary.start_balance == 0.0
    assert summary.safe_to_spend_per_day is None
