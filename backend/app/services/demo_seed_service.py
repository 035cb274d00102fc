from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
import logging
import random
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import delete
from sqlalchemy.orm import Session

from backend.app.models import Alert, Insight, Transaction, User
from backend.app.services.audit_service import log_audit_event

logger = logging.getLogger(__name__)

DEMO_SOURCE = "demo_seed"

MIN_DAYS, MAX_DAYS = 7, 365
MIN_COUNT, MAX_COUNT = 10, 2000

INFLOW_SHARE = 0.12
PENDING_SHARE = 0.03

# each biller needs this many rows to clear the detector's occurrence floor
MIN_RECURRING_ROWS = 3

CATEGORIES = [
    "Groceries",
    "Rent",
    "Dining",
    "Transport",
    "Entertainment",
    "Utilities",
    "Shopping",
    "Healthcare",
    "Subscriptions",
]

MERCHANTS = [
    "Whole Foods",
    "Trader Joe's",
    "Uber",
    "Lyft",
    "Amazon",
    "Apple",
    "Shell",
    "Starbucks",
    "Target",
    "Walmart",
    "Costco",
]


@dataclass(frozen=True)
class RecurringSpec:
    name: str
    merchant: str
    category: str
    amount_cents: int
    every_days: int
    first_offset: int


# Fixed-rhythm billers, found by a detection run right after seeding.
RECURRING_SPECS: List[RecurringSpec] = [
    RecurringSpec("NETFLIX.COM", "Netflix", "Subscriptions", 15_49, 30, 2),
    RecurringSpec("Spotify Inc", "Spotify", "Subscriptions", 10_99, 30, 9),
    RecurringSpec("Planet Fitness LLC", "Planet Fitness", "Healthcare", 25_00, 7, 1),
]


def _validate(days: int, count: int) -> None:
    if not MIN_DAYS <= days <= MAX_DAYS:
        raise HTTPException(status_code=400, detail=f"days must be between {MIN_DAYS} and {MAX_DAYS}")
    if not MIN_COUNT <= count <= MAX_COUNT:
        raise HTTPException(status_code=400, detail=f"count must be between {MIN_COUNT} and {MAX_COUNT}")


def _at_noon(anchor: datetime, day_offset: int) -> datetime:
    day = (anchor - timedelta(days=day_offset)).date()
    return datetime.combine(day, time(hour=12, tzinfo=timezone.utc))


def _noise_transactions(rng: random.Random, anchor: datetime, days: int, count: int) -> List[Dict[str, object]]:
    out: List[Dict[str, object]] = []
    for i in range(count):
        day_offset = rng.randrange(days)
        if rng.random() < INFLOW_SHARE:
            direction = "INFLOW"
            category = "Income"
            merchant = "Employer"
            name = "Payroll"
            amount_cents = 100_00 * (20 + rng.randrange(35))
        else:
            direction = "OUTFLOW"
            category = rng.choice(CATEGORIES)
            merchant = rng.choice(MERCHANTS)
            name = f"{merchant} - {category}"
            amount_cents = 100 * (500 + rng.randrange(25_000))
        out.append(
            {
                "date": _at_noon(anchor, day_offset),
                "name": name,
                "amount_cents": amount_cents,
                "direction": direction,
                "category": category,
                "merchant": merchant,
                "is_pending": rng.random() < PENDING_SHARE,
                "provider_ref": f"{DEMO_SOURCE}:noise:{i}",
            }
        )
    return out


def _recurring_row_count(spec: RecurringSpec, days: int) -> int:
    in_window = -(-(days - spec.first_offset) // spec.every_days)
    return max(MIN_RECURRING_ROWS, in_window)


def _recurring_transactions(anchor: datetime, days: int) -> List[Dict[str, object]]:
    """
    Billers are laid out backwards from the anchor. Short windows still get
    MIN_RECURRING_ROWS rows each, so a series may start before `days`.
    """
    out: List[Dict[str, object]] = []
    for spec in RECURRING_SPECS:
        for n in range(_recurring_row_count(spec, days)):
            out.append(
                {
                    "date": _at_noon(anchor, spec.first_offset + n * spec.every_days),
                    "name": spec.name,
                    "amount_cents": spec.amount_cents,
                    "direction": "OUTFLOW",
                    "category": spec.category,
                    "merchant": spec.merchant,
                    "is_pending": False,
                    "provider_ref": f"{DEMO_SOURCE}:{spec.merchant.lower().replace(' ', '_')}:{n}",
                }
            )
    return out


def seed_demo_transactions(
    db: Session,
    user: User,
    *,
    days: int = 60,
    count: int = 250,
    replace: bool = False,
    seed: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, object]:
    """
    Insert `count` random transactions plus the fixed recurring subscriptions
    spread over the last `days` days.
    """
    _validate(days, count)

    if replace:
        db.execute(delete(Transaction).where(Transaction.user_id == user.id))
        db.execute(delete(Insight).where(Insight.user_id == user.id))
        db.execute(delete(Alert).where(Alert.user_id == user.id))

    rng = random.Random(seed)
    anchor = now or datetime.now(timezone.utc)
    rows = _noise_transactions(rng, anchor, days, count) + _recurring_transactions(anchor, days)

    for row in rows:
        db.add(Transaction(user_id=user.id, currency="USD", **row))

    log_audit_event(
        db,
        user_id=user.id,
        action="demo.seed",
        entity="Transaction",
        meta={"days": days, "count": count, "replace": replace, "created": len(rows)},
    )
    db.commit()

    logger.info("[demo] seeded user=%s transactions=%s replace=%s", user.id, len(rows), replace)
    return {"ok": True, "transactionsCreated": len(rows)}
