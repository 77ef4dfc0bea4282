"""Subscription candidate detection - infers recurring merchants from raw history"""

import math
import re
from collections import defaultdict
from datetime import date
from statistics import median
from typing import Dict, Iterable, List, Optional, Set, Tuple
from budget_forecast.domain.models import SubscriptionCandidate, Transaction

MERCHANT_KEY_MAX_LENGTH = 64
MIN_GROUP_SIZE = 2
MIN_SPAN_DAYS = 20

# Inclusive median-gap ranges (days) per cadence, checked in order
CADENCE_GAP_BUCKETS: List[Tuple[str, int, int]] = [
    ("weekly", 5, 10),
    ("monthly", 20, 45),
    ("quarterly", 70, 110),
    ("yearly", 330, 400),
]

# Heuristic point table, not a calibrated probability
CONFIDENCE_POINTS = {
    "base": 30,
    "three_or_more_observations": 20,
    "known_cadence": 30,
    "material_amount": 10,
}
MATERIAL_AMOUNT = 5.0

_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9 ]")


def normalize_merchant_key(merchant: Optional[str], max_length: int = MERCHANT_KEY_MAX_LENGTH) -> str:
    """Lowercase, collapse whitespace, keep [a-z0-9 ] and truncate"""
    text = _WHITESPACE.sub(" ", str(merchant or "").lower())
    text = _NON_ALNUM.sub("", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return text[:max_length].rstrip()


def classify_cadence(median_gap_days: float) -> str:
    for cadence, low, high in CADENCE_GAP_BUCKETS:
        if low <= median_gap_days <= high:
            return cadence
    return "unknown"


def score_confidence(observations: int, cadence: str, expected_amount: float) -> int:
    score = CONFIDENCE_POINTS["base"]
    if observations >= 3:
        score += CONFIDENCE_POINTS["three_or_more_observations"]
    if cadence != "unknown":
        score += CONFIDENCE_POINTS["known_cadence"]
    if abs(expected_amount) >= MATERIAL_AMOUNT:
        score += CONFIDENCE_POINTS["material_amount"]
    return max(0, min(100, score))


def _date_gaps(dates: List[date]) -> List[int]:
    return [(later - earlier).days for earlier, later in zip(dates, dates[1:])]


def _usable_amount(amount) -> Optional[float]:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def detect_subscription_candidates(
    transactions: Iterable[Transaction],
    excluded_keys: Optional[Set[str]] = None,
) -> List[SubscriptionCandidate]:
    """
    Rank merchants that look like recurring charges.

    Transactions are grouped by merchant key; ignored or already confirmed
    keys are skipped. A group needs at least two transactions spanning 20+
    days and two usable amounts. Cadence comes from the median gap between
    consecutive dates; confidence from CONFIDENCE_POINTS. Sorted by
    confidence, highest first.
    """
    excluded_keys = excluded_keys or set()
    groups: Dict[str, List[Transaction]] = defaultdict(list)

    for txn in transactions:
        key = normalize_merchant_key(txn.merchant)
        if not key or key in excluded_keys:
            continue
        groups[key].append(txn)

    candidates = []
    for key, txns in groups.items():
        if len(txns) < MIN_GROUP_SIZE:
            continue

        ordered = sorted(txns, key=lambda t: t.date)
        dates = [t.date for t in ordered]
        if (dates[-1] - dates[0]).days < MIN_SPAN_DAYS:
            continue

        amounts = [a for a in (_usable_amount(t.amount) for t in ordered) if a is not None]
        if len(amounts) < 2:
            continue

        median_gap = median(_date_gaps(dates))
        cadence = classify_cadence(median_gap)
        expected_amount = median(amounts)

        candidates.append(
            SubscriptionCandidate(
                merchant_key=key,
                display_name=ordered[0].merchant.strip() or key,
                cadence=cadence,
                expected_amount=expected_amount,
                amount_min=min(amounts),
                amount_max=max(amounts),
                last_date=dates[-1],
                confidence=score_confidence(len(ordered), cadence, expected_amount),
                observations=len(ordered),
                median_gap_days=median_gap,
            )
        )

    return sorted(candidates, key=lambda c: c.confidence, reverse=True)
