"""Unit tests for subscription candidate detection"""

import pytest
from datetime import date, timedelta
from budget_forecast.domain.subscriptions import (
    classify_cadence,
    detect_subscription_candidates,
    normalize_merchant_key,
    score_confidence,
)
from conftest import make_transaction, series_of


def test_normalize_merchant_key():
    assert normalize_merchant_key("  NETFLIX.COM   Subscription ") == "netflixcom subscription"
    assert normalize_merchant_key("Spotify*Premium #123") == "spotifypremium 123"
    assert normalize_merchant_key("Café\tLuna") == "caf luna"
    assert normalize_merchant_key(None) == ""
    assert normalize_merchant_key("***") == ""


def test_normalize_merchant_key_is_bounded():
    assert len(normalize_merchant_key("a" * 100)) == 64
    assert normalize_merchant_key("abc def", max_length=4) == "abc"


@pytest.mark.parametrize(
    "gap, cadence",
    [
        (5, "weekly"),
        (7, "weekly"),
        (10, "weekly"),
        (11, "unknown"),
        (14, "unknown"),
        (20, "monthly"),
        (30.5, "monthly"),
        (45, "monthly"),
        (46, "unknown"),
        (90, "quarterly"),
        (365, "yearly"),
        (401, "unknown"),
    ],
)
def test_classify_cadence(gap, cadence):
    assert classify_cadence(gap) == cadence


def test_score_confidence():
    assert score_confidence(4, "monthly", -15.99) == 90
    assert score_confidence(2, "unknown", -3.0) == 30
    assert score_confidence(2, "weekly", -4.99) == 60
    assert score_confidence(3, "unknown", 5.0) == 60


def test_netflix_monthly_candidate():
    """Four charges of 15.99, 30 days apart"""
    first = date(2024, 1, 5)
    transactions = series_of("Netflix", first, 30, [-15.99] * 4)

    candidates = detect_subscription_candidates(transactions)

    assert len(candidates) == 1
    netflix = candidates[0]
    assert netflix.merchant_key == "netflix"
    assert netflix.display_name == "Netflix"
    assert netflix.cadence == "monthly"
    assert netflix.expected_amount == pytest.approx(-15.99)
    assert netflix.amount_min == netflix.amount_max == pytest.approx(-15.99)
    assert netflix.last_date == first + timedelta(days=90)
    assert netflix.next_date is None
    assert netflix.observations == 4
    assert netflix.confidence == 90


def test_weekly_and_monthly_series_classified_separately():
    gym = series_of("City Gym", date(2024, 3, 1), 7, [-59.5, -60.0, -60.5, -60.0])
    streaming = series_of("StreamCo", date(2024, 1, 10), 30, [-14.99, -15.0, -15.01])

    by_key = {c.merchant_key: c for c in detect_subscription_candidates(gym + streaming)}

    assert by_key["city gym"].cadence == "weekly"
    assert by_key["city gym"].expected_amount == pytest.approx(-60.0)
    assert by_key["streamco"].cadence == "monthly"
    assert by_key["streamco"].expected_amount == pytest.approx(-15.0)
    assert by_key["streamco"].amount_min == pytest.approx(-15.01)
    assert by_key["streamco"].amount_max == pytest.approx(-14.99)
    assert by_key["streamco"].confidence >= 80


def test_median_gap_tolerates_irregular_dates():
    days = [date(2024, 1, 1), date(2024, 1, 29), date(2024, 3, 1), date(2024, 3, 31)]
    transactions = [make_transaction(d, -42.0, "Power Co") for d in days]

    candidate = detect_subscription_candidates(transactions)[0]

    # gaps of 28, 32 and 30 days
    assert candidate.median_gap_days == 30
    assert candidate.cadence == "monthly"


def test_merchant_spelling_variants_group_together():
    transactions = [
        make_transaction(date(2024, 1, 1), -9.99, "SPOTIFY "),
        make_transaction(date(2024, 1, 31), -9.99, "Spotify"),
        make_transaction(date(2024, 3, 1), -9.99, "spotify!"),
    ]
    candidates = detect_subscription_candidates(transactions)

    assert [c.merchant_key for c in candidates] == ["spotify"]
    assert candidates[0].display_name == "SPOTIFY"
    assert candidates[0].observations == 3


def test_insufficient_evidence_is_skipped():
    single = [make_transaction(date(2024, 1, 1), -10.0, "Once Only")]
    short_span = series_of("Coffee Bar", date(2024, 1, 1), 7, [-4.5, -4.5, -4.5])  # 14-day span
    blank = series_of("   ", date(2024, 1, 1), 30, [-10.0, -10.0])

    assert detect_subscription_candidates(single + short_span + blank) == []


def test_non_finite_amounts_do_not_count_as_samples():
    transactions = [
        make_transaction(date(2024, 1, 1), float("nan"), "Mystery"),
        make_transaction(date(2024, 2, 1), -30.0, "Mystery"),
    ]
    assert detect_subscription_candidates(transactions) == []


def test_excluded_keys_are_skipped():
    transactions = series_of("Netflix", date(2024, 1, 1), 30, [-15.99] * 3)
    transactions += series_of("Hulu", date(2024, 1, 1), 30, [-7.99] * 3)

    candidates = detect_subscription_candidates(transactions, excluded_keys={"netflix"})

    assert [c.merchant_key for c in candidates] == ["hulu"]


def test_candidates_ranked_by_confidence():
    sparse = series_of("Annual Club", date(2024, 1, 1), 60, [-3.0, -3.0])  # unknown cadence, small
    strong = series_of("Rent Co", date(2024, 1, 1), 30, [-1200.0] * 4)
    medium = series_of("Insurer", date(2024, 1, 1), 90, [-150.0, -150.0])  # two observations

    candidates = detect_subscription_candidates(sparse + strong + medium)

    assert [c.merchant_key for c in candidates] == ["rent co", "insurer", "annual club"]
    assert [c.confidence for c in candidates] == [90, 70, 30]
