from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_RECURRING_SCAN_LIMIT = 800


def recurring_scan_limit() -> int:
    """
    Max outflow rows (newest first) fed into one recurring detection run.
    """
    raw = os.getenv("RECURRING_SCAN_LIMIT")
    if raw is None or not raw.strip():
        return DEFAULT_RECURRING_SCAN_LIMIT
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer RECURRING_SCAN_LIMIT=%r", raw)
        return DEFAULT_RECURRING_SCAN_LIMIT
    if value <= 0:
        logger.warning("Ignoring non-positive RECURRING_SCAN_LIMIT=%s", value)
        return DEFAULT_RECURRING_SCAN_LIMIT
    return value


def demo_seed_enabled() -> bool:
    return os.getenv("DEMO_SEED_DISABLED", "").strip().lower() not in {"1", "true", "yes", "on"}
