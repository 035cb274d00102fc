from datetime import datetime, timezone
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from fastapi import HTTPException  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from backend.app.models import Insight, Transaction, User  # noqa: E402
from backend.app.services import demo_seed_service, subscription_service  # noqa: E402

NOW = datetime(2024, 6, 30, 18, 0, tzinfo=timezone.utc)


def _user(db):
    user = User(email="demo@example.com", name="demo")
    db.add(user)
    db.flush()
    return user


def _txn_count(db, user_id):
    return db.execute(select(func.count()).select_from(Transaction).where(Transaction.user_id == user_id)).scalar_one()


def test_seed_adds_noise_plus_recurring_rows(sqlite_session):
    user = _user(sqlite_session)

    result = demo_seed_service.seed_demo_transactions(
        sqlite_session, user, days=90, count=20, seed=42, now=NOW
    )

    # netflix 3 + spotify 3 + gym 13 on top of the random rows
    assert result == {"ok": True, "transactionsCreated": 39}
    assert _txn_count(sqlite_session, user.id) == 39


def test_default_window_seeds_every_biller_three_times(sqlite_session):
    user = _user(sqlite_session)

    result = demo_seed_service.seed_demo_transactions(sqlite_session, user, count=10, seed=42, now=NOW)

    # 60 days: netflix 3 + spotify 3 + gym 9
    assert result["transactionsCreated"] == 25

    merchants = {c["merchant"] for c in subscription_service.detect_subscriptions(sqlite_session, user)["detected"]}
    assert {"netflixcom", "spotify", "planet fitness"} <= merchants


def test_short_window_still_clears_occurrence_floor(sqlite_session):
    user = _user(sqlite_session)

    demo_seed_service.seed_demo_transactions(sqlite_session, user, days=7, count=10, seed=3, now=NOW)

    rows = sqlite_session.execute(
        select(Transaction.name, func.count()).where(Transaction.user_id == user.id).group_by(Transaction.name)
    ).all()
    counts = dict(rows)
    assert counts["NETFLIX.COM"] == 3
    assert counts["Spotify Inc"] == 3
    assert counts["Planet Fitness LLC"] == 3


def test_noise_rows_follow_demo_amounts_and_pending_share(sqlite_session):
    user = _user(sqlite_session)
    demo_seed_service.seed_demo_transactions(sqlite_session, user, days=90, count=2000, seed=11, now=NOW)

    noise = sqlite_session.execute(
        select(Transaction).where(Transaction.provider_ref.like("demo_seed:noise:%"))
    ).scalars().all()
    outflows = [t for t in noise if t.direction == "OUTFLOW"]
    pending = [t for t in noise if t.is_pending]

    assert len(noise) == 2000
    assert all(500_00 <= t.amount_cents < 25_500_00 for t in outflows)
    assert 0 < len(pending) < 200
    assert not any(
        t.is_pending
        for t in sqlite_session.execute(
            select(Transaction).where(Transaction.name == "NETFLIX.COM")
        ).scalars()
    )


def test_seeded_data_is_detected_as_recurring(sqlite_session):
    user = _user(sqlite_session)
    demo_seed_service.seed_demo_transactions(sqlite_session, user, days=90, count=20, seed=42, now=NOW)

    result = subscription_service.detect_subscriptions(sqlite_session, user)
    by_merchant = {c["merchant"]: c for c in result["detected"]}

    assert by_merchant["netflixcom"]["cadence"] == "monthly"
    assert by_merchant["netflixcom"]["avgAmountCents"] == 1549
    assert by_merchant["spotify"]["cadence"] == "monthly"
    assert by_merchant["planet fitness"]["cadence"] == "weekly"
    assert by_merchant["planet fitness"]["count"] == 13


def test_seed_is_reproducible_with_a_seed(sqlite_session):
    user = _user(sqlite_session)
    demo_seed_service.seed_demo_transactions(sqlite_session, user, days=30, count=15, seed=7, now=NOW)
    first = sorted(
        (t.name, t.amount_cents, t.date)
        for t in sqlite_session.execute(select(Transaction)).scalars()
    )

    demo_seed_service.seed_demo_transactions(
        sqlite_session, user, days=30, count=15, seed=7, now=NOW, replace=True
    )
    second = sorted(
        (t.name, t.amount_cents, t.date)
        for t in sqlite_session.execute(select(Transaction)).scalars()
    )

    assert first == second


def test_replace_clears_previous_rows(sqlite_session):
    user = _user(sqlite_session)
    demo_seed_service.seed_demo_transactions(sqlite_session, user, days=90, count=20, seed=1, now=NOW)
    subscription_service.detect_subscriptions(sqlite_session, user)
    assert sqlite_session.execute(select(func.count()).select_from(Insight)).scalar_one() > 0

    result = demo_seed_service.seed_demo_transactions(
        sqlite_session, user, days=90, count=10, seed=1, now=NOW, replace=True
    )

    assert _txn_count(sqlite_session, user.id) == result["transactionsCreated"] == 29
    assert sqlite_session.execute(select(func.count()).select_from(Insight)).scalar_one() == 0


@pytest.mark.parametrize("days, count", [(6, 50), (366, 50), (60, 9), (60, 2001)])
def test_seed_rejects_out_of_range_parameters(sqlite_session, days, count):
    user = _user(sqlite_session)
    with pytest.raises(HTTPException) as exc:
        demo_seed_service.seed_demo_transactions(sqlite_session, user, days=days, count=count)
    assert exc.value.status_code == 400
