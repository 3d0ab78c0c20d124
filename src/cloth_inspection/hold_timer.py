"""
Hold-to-confirm debouncer.

Turns a boolean pose signal that is re-evaluated every frame into a single
event once the signal has stayed true for ``duration_ms``.  Time is logical:
the caller passes the current clock reading on every update and the timer
only fires from inside ``update()``, so all state changes happen on the
frame-processing path.

States::

    Idle --active--> Holding(started_at)
    Holding --active and now - started_at >= duration--> fire, Idle
    Holding --inactive--> Idle (no event)
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger("cloth_inspection.hold_timer")


class HoldTimer:
    """One debouncer per gesture; instances never share state."""

    def __init__(self, duration_ms: float, name: str = "hold") -> None:
        if duration_ms <= 0:
            raise ValueError(f"{name}: duration_ms must be positive")
        self.duration_ms = duration_ms
        self.name = name
        self.started_at: Optional[float] = None

    @property
    def is_holding(self) -> bool:
        return self.started_at is not None

    def update(self, active: bool, now: float) -> bool:
        """Feed the pose reading for this frame; True on the firing frame."""
        if not active:
            self.cancel()
            return False

        if self.started_at is None:
            self.started_at = now
            logger.debug("%s: hold started", self.name)
            return False

        if now - self.started_at >= self.duration_ms:
            self.started_at = None
            logger.debug("%s: hold confirmed", self.name)
            return True
        return False

    def cancel(self) -> None:
        """Return to Idle without firing."""
        if self.started_at is not None:
            logger.debug("%s: hold cancelled", self.name)
        self.started_at = None

    def restart(self, now: float) -> None:
        """Drop any running hold and start a new one at *now*."""
        self.started_at = now

    def progress(self, now: float) -> float:
        """Fraction of the hold completed, in ``[0, 1]``."""
        if self.started_at is None:
            return 0.0
        return max(0.0, min(1.0, (now - self.started_at) / self.duration_ms))
