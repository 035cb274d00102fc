from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.models import AuditLog


def log_audit_event(
    db: Session,
    *,
    user_id: str,
    action: str,
    entity: Optional[str] = None,
    entity_id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    row = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        meta=meta,
        ip=ip,
        user_agent=user_agent,
    )
    db.add(row)
    db.flush()
    return row


def list_audit_events(
    db: Session,
    user_id: str,
    *,
    action: Optional[str] = None,
    limit: int = 100,
) -> List[AuditLog]:
    query = select(AuditLog).where(AuditLog.user_id == user_id)
    if action:
        query = query.where(AuditLog.action == action)
    return list(
        db.execute(query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit))
        .scalars()
        .all()
    )
