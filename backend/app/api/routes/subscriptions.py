from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.app.api.deps import client_meta, get_current_user
from backend.app.db import get_db
from backend.app.models import User
from backend.app.services import subscription_service

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


class RecurringCandidateOut(BaseModel):
    merchant: str
    cadence: Literal["weekly", "monthly"]
    avgAmountCents: int
    count: int
    lastDate: datetime
    sampleDates: List[datetime]


class DetectOut(BaseModel):
    ok: bool
    detected: List[RecurringCandidateOut]
    insightsCreated: int
    alertsCreated: int


class SubscriptionOut(BaseModel):
    id: str
    type: str
    title: str
    content: str
    meta: Dict[str, Any]
    createdAt: datetime


class SubscriptionListOut(BaseModel):
    subscriptions: List[SubscriptionOut]


@router.post("/detect", response_model=DetectOut)
def detect_subscriptions(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return subscription_service.detect_subscriptions(db, user, **client_meta(request))


@router.get("/list", response_model=SubscriptionListOut)
def list_subscriptions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return SubscriptionListOut(
        subscriptions=[SubscriptionOut(**item) for item in subscription_service.list_subscriptions(db, user.id)]
    )
