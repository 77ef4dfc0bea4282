"""Recurrence expansion - turns recurring templates into dated occurrences"""

import math
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional
from budget_forecast.domain.models import RecurringItem, Subscription, TimelineEvent
from budget_forecast.utils.date_utils import add_days, add_months, add_years, parse_iso_date

MIN_DAY_OF_MONTH = 1
MAX_DAY_OF_MONTH = 28  # every month has a 28th, so no month is ever skipped

CADENCE_STEPS: Dict[str, Callable[[date], date]] = {
    "weekly": lambda d: add_days(d, 7),
    "biweekly": lambda d: add_days(d, 14),
    "monthly": lambda d: add_months(d, 1),
    "quarterly": lambda d: add_months(d, 3),
    "yearly": lambda d: add_years(d, 1),
}


def clamp_day_of_month(value) -> int:
    """Coerce any day-of-month input into [1, 28]; unusable values become 1"""
    try:
        day = int(value)
    except (TypeError, ValueError):
        return MIN_DAY_OF_MONTH
    return max(MIN_DAY_OF_MONTH, min(MAX_DAY_OF_MONTH, day))


def step_cadence(current: date, cadence: str) -> Optional[date]:
    """Next occurrence after `current`, or None for an unrecognized cadence"""
    step = CADENCE_STEPS.get(cadence)
    return step(current) if step else None


def expand_day_of_month(day_of_month, window_start: date, window_end: date) -> List[date]:
    """One occurrence per calendar month on `day_of_month`, kept if inside [start, end]"""
    if window_end < window_start:
        return []

    day = clamp_day_of_month(day_of_month)
    occurrences = []
    year, month = window_start.year, window_start.month

    while (year, month) <= (window_end.year, window_end.month):
        occurrence = date(year, month, day)
        if window_start <= occurrence <= window_end:
            occurrences.append(occurrence)
        month += 1
        if month > 12:
            month = 1
            year += 1

    return occurrences


def expand_cadence(anchor, cadence: str, window_start: date, window_end: date) -> List[date]:
    """
    Walk forward from `anchor` in `cadence` steps, emitting dates inside [start, end].

    The cursor is advanced from the anchor itself (never re-derived from the
    window), so a monthly anchor on the 31st settles onto the clamped day
    after the first short month. Unknown cadences and unparseable anchors
    produce no occurrences.
    """
    cursor = parse_iso_date(anchor)
    if cursor is None or cadence not in CADENCE_STEPS:
        return []

    while cursor < window_start:
        cursor = step_cadence(cursor, cadence)

    occurrences = []
    while cursor <= window_end:
        occurrences.append(cursor)
        cursor = step_cadence(cursor, cadence)

    return occurrences


def resolve_subscription_amount(subscription: Subscription) -> float:
    """
    Signed amount projected for each subscription occurrence.

    Fallback order: expected amount, then the observed maximum, then the
    observed minimum, then 0 when nothing is known. Non-finite stored
    values count as unknown.
    """
    for candidate in (subscription.expected_amount, subscription.amount_max, subscription.amount_min):
        if candidate is not None and math.isfinite(candidate):
            return float(candidate)
    return 0.0


def recurring_item_events(items: Iterable[RecurringItem], window_start: date, window_end: date) -> List[TimelineEvent]:
    """Expand active day-of-month recurring items into timeline events"""
    events = []
    for item in items:
        if not item.is_active:
            continue
        for occurrence in expand_day_of_month(item.day_of_month, window_start, window_end):
            events.append(
                TimelineEvent(
                    kind="recurring",
                    recurring_id=item.id,
                    date=occurrence,
                    amount=float(item.amount or 0),
                    description=item.name or "Recurring",
                )
            )
    return events


def subscription_events(subscriptions: Iterable[Subscription], window_start: date, window_end: date) -> List[TimelineEvent]:
    """Expand active subscriptions that carry a next date into timeline events"""
    events = []
    for sub in subscriptions:
        if not sub.is_active or sub.next_date is None:
            continue
        amount = resolve_subscription_amount(sub)
        for occurrence in expand_cadence(sub.next_date, sub.cadence, window_start, window_end):
            events.append(
                TimelineEvent(
                    kind="subscription",
                    recurring_id=sub.id,
                    date=occurrence,
                    amount=amount,
                    description=sub.display_name or "Subscription",
                )
            )
    return events
