from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from backend.app.api.config import demo_seed_enabled, recurring_scan_limit
from backend.app.norma.recurring import DEFAULT_RECURRING_CONFIG

router = APIRouter(prefix="/api", tags=["config"])


class RecurringThresholdsOut(BaseModel):
    weekly_min_days: float
    weekly_max_days: float
    monthly_min_days: float
    monthly_max_days: float
    min_cadence_hits: int
    amount_tolerance: float
    min_occurrences: int
    min_similar_amounts: int
    max_candidates: int


class ConfigOut(BaseModel):
    recurring_scan_limit: int
    demo_seed_enabled: bool
    recurring: RecurringThresholdsOut


@router.get("/config", response_model=ConfigOut)
def get_config() -> ConfigOut:
    cfg = DEFAULT_RECURRING_CONFIG
    return ConfigOut(
        recurring_scan_limit=recurring_scan_limit(),
        demo_seed_enabled=demo_seed_enabled(),
        recurring=RecurringThresholdsOut(
            weekly_min_days=cfg.weekly_min_days,
            weekly_max_days=cfg.weekly_max_days,
            monthly_min_days=cfg.monthly_min_days,
            monthly_max_days=cfg.monthly_max_days,
            min_cadence_hits=cfg.min_cadence_hits,
            amount_tolerance=cfg.amount_tolerance,
            min_occurrences=cfg.min_occurrences,
            min_similar_amounts=cfg.min_similar_amounts,
            max_candidates=cfg.max_candidates,
        ),
    )
