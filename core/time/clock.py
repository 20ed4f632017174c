"""
TechShop Core Time — Injectable Clock
=======================================
Engines never call datetime.now() directly. Every engine receives a
Clock at construction time and stamps created/updated/paid/tracking
timestamps from it, so tests can pin and advance time explicitly.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


# ══════════════════════════════════════════════════════════════
# CLOCK PROTOCOL
# ══════════════════════════════════════════════════════════════

class Clock(Protocol):
    """Wall-clock time source consumed by the engines."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class SystemClock:
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock pinned to a single instant.

    Usage:
        clock = FixedClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
        clock.advance(minutes=30)
    """

    def __init__(self, fixed_at: datetime) -> None:
        if fixed_at.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime.")
        self._fixed_at = fixed_at

    def now(self) -> datetime:
        return self._fixed_at

    def advance(self, **delta: float) -> datetime:
        """Move the clock forward by timedelta keyword arguments."""
        step = timedelta(**delta)
        if step < timedelta(0):
            raise ValueError("FixedClock cannot move backwards.")
        self._fixed_at = self._fixed_at + step
        return self._fixed_at

    def set(self, fixed_at: datetime) -> None:
        if fixed_at.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime.")
        self._fixed_at = fixed_at
