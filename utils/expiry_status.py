"""Derive the Valid / Expiring Soon / Expired badge from an expiry date."""

from __future__ import annotations

import math
from datetime import date, datetime, time
from typing import Optional, Union

VALID = "Valid"
EXPIRING_SOON = "Expiring Soon"
EXPIRED = "Expired"

EXPIRING_WINDOW_DAYS = 30
SECONDS_PER_DAY = 24 * 60 * 60


def _parse_expiry(value: str) -> Optional[datetime]:
    try:
        return datetime.combine(date.fromisoformat(value), time.min)
    except ValueError:
        return None


def derive_status(expiry_date: str, now: Optional[Union[date, datetime]] = None) -> str:
    """Return the status for ``expiry_date`` relative to ``now``.

    Empty or unparsable dates are reported as Valid rather than raising.
    The day difference is rounded up, so anything later today counts as day 0.
    """
    value = (expiry_date or "").strip()
    if not value:
        return VALID
    target = _parse_expiry(value)
    if target is None:
        return VALID

    if now is None:
        now = datetime.now()
    elif not isinstance(now, datetime):
        now = datetime.combine(now, time.min)

    diff_days = math.ceil((target - now).total_seconds() / SECONDS_PER_DAY)
    if diff_days < 0:
        return EXPIRED
    if diff_days <= EXPIRING_WINDOW_DAYS:
        return EXPIRING_SOON
    return VALID
