from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.config import demo_seed_enabled
from backend.app.api.deps import get_current_user
from backend.app.db import get_db
from backend.app.models import User
from backend.app.services import demo_seed_service

router = APIRouter(prefix="/api/demo", tags=["demo"])


class DemoSeedIn(BaseModel):
    days: int = Field(60, ge=demo_seed_service.MIN_DAYS, le=demo_seed_service.MAX_DAYS)
    count: int = Field(250, ge=demo_seed_service.MIN_COUNT, le=demo_seed_service.MAX_COUNT)
    replace: bool = False


class DemoSeedOut(BaseModel):
    ok: bool
    transactionsCreated: int


@router.post("/seed", response_model=DemoSeedOut)
def seed_demo(
    req: DemoSeedIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not demo_seed_enabled():
        raise HTTPException(status_code=404, detail="demo seed disabled")
    return demo_seed_service.seed_demo_transactions(
        db,
        user,
        days=req.days,
        count=req.count,
        replace=req.replace,
    )
