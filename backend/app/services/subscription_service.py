from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.config import recurring_scan_limit
from backend.app.models import Alert, Insight, Transaction, User
from backend.app.norma.recurring import (
    DEFAULT_RECURRING_CONFIG,
    OutflowTransaction,
    RecurringCandidate,
    RecurringConfig,
    detect_recurring_charges,
)
from backend.app.services.audit_service import log_audit_event

logger = logging.getLogger(__name__)

# avg amount at or above this is surfaced as a MEDIUM alert
MEDIUM_ALERT_MIN_CENTS = 50_00

INSIGHT_SCORES: Dict[str, float] = {
    "monthly": 0.7,
    "weekly": 0.6,
}

RECENT_INSIGHTS_WINDOW = 50
MAX_LISTED_SUBSCRIPTIONS = 10


def fetch_outflow_transactions(
    db: Session,
    user_id: str,
    *,
    limit: Optional[int] = None,
) -> List[OutflowTransaction]:
    take = limit if limit is not None else recurring_scan_limit()
    rows = db.execute(
        select(Transaction.date, Transaction.name, Transaction.amount_cents)
        .where(Transaction.user_id == user_id, Transaction.direction == "OUTFLOW")
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .limit(take)
    ).all()
    return [
        OutflowTransaction(date=row.date, name=row.name, amount_cents=int(row.amount_cents))
        for row in rows
    ]


def _title(candidate: RecurringCandidate) -> str:
    return f"Recurring charge detected: {candidate.merchant}"


def _content(candidate: RecurringCandidate) -> str:
    return (
        f"We detected a likely {candidate.cadence} recurring charge of about "
        f"${candidate.avg_amount_cents / 100:.2f} ({candidate.count} occurrences). "
        "Review and cancel if unused."
    )


def _meta(candidate: RecurringCandidate) -> Dict[str, Any]:
    return {
        "recurring": True,
        "merchant": candidate.merchant,
        "cadence": candidate.cadence,
        "avgAmountCents": candidate.avg_amount_cents,
        "count": candidate.count,
    }


def alert_severity(candidate: RecurringCandidate) -> str:
    return "MEDIUM" if candidate.avg_amount_cents >= MEDIUM_ALERT_MIN_CENTS else "LOW"


def insight_for_candidate(candidate: RecurringCandidate) -> Dict[str, Any]:
    meta = _meta(candidate)
    meta["lastDate"] = candidate.last_date.isoformat()
    return {
        "type": "GENERAL",
        "title": _title(candidate),
        "content": _content(candidate),
        "score": INSIGHT_SCORES[candidate.cadence],
        "meta": meta,
    }


def alert_for_candidate(candidate: RecurringCandidate) -> Dict[str, Any]:
    return {
        "severity": alert_severity(candidate),
        "title": _title(candidate),
        "content": _content(candidate),
        "meta": _meta(candidate),
    }


def detect_subscriptions(
    db: Session,
    user: User,
    *,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
    config: RecurringConfig = DEFAULT_RECURRING_CONFIG,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Run recurring detection for one user and persist one insight + one alert
    per candidate. Each run writes fresh rows; earlier rows are left alone.
    """
    txns = fetch_outflow_transactions(db, user.id, limit=limit)
    candidates = detect_recurring_charges(txns, config=config)

    insights_created = 0
    alerts_created = 0
    for candidate in candidates:
        db.add(Insight(user_id=user.id, **insight_for_candidate(candidate)))
        insights_created += 1
        db.add(Alert(user_id=user.id, **alert_for_candidate(candidate)))
        alerts_created += 1

    log_audit_event(
        db,
        user_id=user.id,
        action="subscriptions.detect",
        entity="Insight",
        meta={
            "detectedCount": len(candidates),
            "insightsCreated": insights_created,
            "alertsCreated": alerts_created,
        },
        ip=ip,
        user_agent=user_agent,
    )
    db.commit()

    logger.info(
        "[subscriptions] detect user=%s scanned=%s detected=%s",
        user.id,
        len(txns),
        len(candidates),
    )

    return {
        "ok": True,
        "detected": [c.as_dict() for c in candidates],
        "insightsCreated": insights_created,
        "alertsCreated": alerts_created,
    }


def list_subscriptions(db: Session, user_id: str) -> List[Dict[str, Any]]:
    rows = (
        db.execute(
            select(Insight)
            .where(Insight.user_id == user_id)
            .order_by(Insight.created_at.desc(), Insight.id.desc())
            .limit(RECENT_INSIGHTS_WINDOW)
        )
        .scalars()
        .all()
    )
    recurring = [row for row in rows if isinstance(row.meta, dict) and row.meta.get("recurring")]
    return [
        {
            "id": row.id,
            "type": row.type,
            "title": row.title,
            "content": row.content,
            "meta": row.meta,
            "createdAt": row.created_at,
        }
        for row in recurring[:MAX_LISTED_SUBSCRIPTIONS]
    ]
