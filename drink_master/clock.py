from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


@dataclass(slots=True)
class TimerSlot:
    """Single pending deadline that can be armed, cancelled and re-armed.

    Times are simulation seconds supplied by the owner; the slot never reads a
    clock itself. Arming an armed slot replaces the old deadline.
    """

    name: str
    due_at_s: float | None = None

    @property
    def armed(self) -> bool:
        return self.due_at_s is not None

    def arm(self, *, now_s: float, delay_s: float) -> None:
        self.due_at_s = float(now_s) + max(0.0, float(delay_s))

    def cancel(self) -> None:
        self.due_at_s = None

    def poll(self, now_s: float) -> bool:
        """Disarm and return True if the deadline has been reached."""

        if self.due_at_s is None or now_s < self.due_at_s:
            return False
        self.due_at_s = None
        return True
