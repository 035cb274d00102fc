from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_user
from backend.app.db import get_db
from backend.app.models import User
from backend.app.services import audit_service

router = APIRouter(prefix="/api/audit", tags=["audit"])


class AuditLogOut(BaseModel):
    id: str
    action: str
    entity: Optional[str] = None
    entity_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class AuditLogListOut(BaseModel):
    items: List[AuditLogOut]


@router.get("/list", response_model=AuditLogListOut)
def list_audit_events(
    action: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = audit_service.list_audit_events(db, user.id, action=action, limit=limit)
    return AuditLogListOut(
        items=[
            AuditLogOut(
                id=row.id,
                action=row.action,
                entity=row.entity,
                entity_id=row.entity_id,
                meta=row.meta,
                ip=row.ip,
                user_agent=row.user_agent,
                created_at=row.created_at,
            )
            for row in rows
        ]
    )
