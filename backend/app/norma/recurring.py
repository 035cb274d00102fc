"""
Norma - recurring charge detection.

Responsibility:
- Group a user's outflow transactions by a normalized merchant key.
- Infer a weekly / monthly cadence from the gaps between charge dates.
- Confirm that the amounts look alike before calling a group "recurring".

Design notes:
- PURE: no IO, no DB session, no module state mutated.
- Thresholds live on RecurringConfig and are passed in, so tests can move them.
- Callers decide what to persist (insights, alerts); see subscription_service.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
import re
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Cadence = Literal["weekly", "monthly"]

SECONDS_PER_DAY = 24 * 60 * 60


# -------------------------
# Types
# -------------------------

@dataclass(frozen=True)
class OutflowTransaction:
    date: datetime
    name: str
    amount_cents: int


@dataclass(frozen=True)
class RecurringCandidate:
    merchant: str
    cadence: Cadence
    avg_amount_cents: int
    count: int
    last_date: datetime
    sample_dates: Tuple[datetime, ...]

    @property
    def spend_score(self) -> int:
        return self.avg_amount_cents * self.count

    def as_dict(self) -> Dict[str, Any]:
        return {
            "merchant": self.merchant,
            "cadence": self.cadence,
            "avgAmountCents": self.avg_amount_cents,
            "count": self.count,
            "lastDate": self.last_date.isoformat(),
            "sampleDates": [d.isoformat() for d in self.sample_dates],
        }


@dataclass(frozen=True)
class RecurringConfig:
    weekly_min_days: float = 6.0
    weekly_max_days: float = 8.0
    monthly_min_days: float = 25.0
    monthly_max_days: float = 35.0
    min_cadence_hits: int = 2
    amount_tolerance: float = 0.08
    min_occurrences: int = 3
    min_similar_amounts: int = 3
    max_candidates: int = 10


DEFAULT_RECURRING_CONFIG = RecurringConfig()


# -------------------------
# Merchant normalization
# -------------------------

_ENTITY_SUFFIX_RE = re.compile(r"\b(?:inc|llc|ltd|co)\b")
_NON_LETTER_RE = re.compile(r"[^a-z\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_merchant(name: str) -> str:
    """
    Map a raw display name onto the key used to group charges.

    "Spotify Inc" and "SPOTIFY LLC" both become "spotify"; "NETFLIX.COM"
    becomes "netflixcom". An empty result means the name cannot be grouped.
    """
    s = (name or "").lower()
    s = _ENTITY_SUFFIX_RE.sub("", s)
    s = _NON_LETTER_RE.sub("", s)
    return _WHITESPACE_RE.sub(" ", s).strip()


# -------------------------
# Small numeric helpers
# -------------------------

def diff_days(a: datetime, b: datetime) -> float:
    return abs((a - b).total_seconds()) / SECONDS_PER_DAY


def within_pct(a: int, b: int, pct: float) -> bool:
    # zero amounts are never "similar"
    if a == 0 or b == 0:
        return False
    return abs(a - b) / max(a, b) <= pct


def round_half_up_mean(amounts: Sequence[int]) -> int:
    if not amounts:
        return 0
    total = sum(amounts)
    n = len(amounts)
    return (2 * total + n) // (2 * n)


# -------------------------
# Pipeline stages
# -------------------------

def group_by_merchant(transactions: Iterable[OutflowTransaction]) -> Dict[str, List[OutflowTransaction]]:
    groups: Dict[str, List[OutflowTransaction]] = {}
    for txn in transactions:
        key = normalize_merchant(txn.name)
        if not key:
            continue
        groups.setdefault(key, []).append(txn)
    return groups


def _in_window(value: float, low: float, high: float) -> bool:
    return low <= value <= high


def detect_cadence(
    sorted_dates: Sequence[datetime],
    config: RecurringConfig = DEFAULT_RECURRING_CONFIG,
) -> Optional[Cadence]:
    """
    Weekly wins over monthly; both need `min_cadence_hits` gaps inside their window.
    """
    if len(sorted_dates) < 3:
        return None

    gaps = [diff_days(sorted_dates[i], sorted_dates[i - 1]) for i in range(1, len(sorted_dates))]

    weekly_hits = sum(1 for g in gaps if _in_window(g, config.weekly_min_days, config.weekly_max_days))
    monthly_hits = sum(1 for g in gaps if _in_window(g, config.monthly_min_days, config.monthly_max_days))

    if weekly_hits >= config.min_cadence_hits:
        return "weekly"
    if monthly_hits >= config.min_cadence_hits:
        return "monthly"
    return None


def count_similar_amounts(amounts: Sequence[int], avg: int, tolerance: float) -> int:
    return sum(1 for amount in amounts if within_pct(amount, avg, tolerance))


def _candidate_for_group(
    merchant: str,
    txns: List[OutflowTransaction],
    config: RecurringConfig,
) -> Optional[RecurringCandidate]:
    ordered = sorted(txns, key=lambda t: t.date)
    dates = [t.date for t in ordered]

    cadence = detect_cadence(dates, config)
    if cadence is None:
        return None

    amounts = [t.amount_cents for t in ordered]
    avg = round_half_up_mean(amounts)
    if count_similar_amounts(amounts, avg, config.amount_tolerance) < config.min_similar_amounts:
        return None

    return RecurringCandidate(
        merchant=merchant,
        cadence=cadence,
        avg_amount_cents=avg,
        count=len(ordered),
        last_date=dates[-1],
        sample_dates=tuple(dates[-4:]),
    )


def detect_recurring_charges(
    transactions: Iterable[OutflowTransaction],
    *,
    config: RecurringConfig = DEFAULT_RECURRING_CONFIG,
) -> List[RecurringCandidate]:
    """
    Return up to `config.max_candidates` recurring charges, biggest spend first.

    Expects outflows for a single user; direction and ownership are not checked.
    Ranking is avg_amount_cents * count descending, ties by merchant key.
    """
    groups = group_by_merchant(transactions)

    candidates: List[RecurringCandidate] = []
    for merchant in sorted(groups.keys()):
        txns = groups[merchant]
        if len(txns) < config.min_occurrences:
            continue
        candidate = _candidate_for_group(merchant, txns, config)
        if candidate is not None:
            candidates.append(candidate)

    candidates.sort(key=lambda c: c.spend_score, reverse=True)
    logger.debug("recurring detection: groups=%s candidates=%s", len(groups), len(candidates))
    return candidates[: config.max_candidates]
