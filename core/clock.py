"""
core/clock.py -- Single source of "now" for token issuance and expiry checks.

Components that compare timestamps take a Clock (any zero-argument callable
returning an aware UTC datetime) so tests can advance time without sleeping.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
