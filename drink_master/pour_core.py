from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum


class SessionPhase(str, Enum):
    MENU = "menu"
    PLAYING = "playing"
    RESULT = "result"


class DrinkType(str, Enum):
    SODA = "soda"
    COFFEE = "coffee"


class FillStatus(str, Enum):
    EMPTY = "empty"
    POURING = "pouring"
    SETTLING = "settling"
    EVALUATING = "evaluating"
    SPILLED = "spilled"


# Overflow is judged above this height; (100, OVERFLOW_LEVEL] is the surface tension band.
BRIM_LEVEL = 100.0
OVERFLOW_LEVEL = 105.0


@dataclass(frozen=True, slots=True)
class PourSnapshot:
    """View model for the UI (pure data)."""

    phase: SessionPhase
    drink_type: DrinkType
    status: FillStatus
    liquid_level: float
    foam_level: float
    target_line: float
    tolerance: float
    feedback: str | None
    time_remaining_s: int
    completed_cups: int
    score: float
    round_index: int
    nickname: str | None = None

    @property
    def total_level(self) -> float:
        return self.liquid_level + self.foam_level

    @property
    def controls_locked(self) -> bool:
        return self.phase is not SessionPhase.PLAYING or self.status in (
            FillStatus.EVALUATING,
            FillStatus.SPILLED,
        )


@dataclass(frozen=True, slots=True)
class SessionSummary:
    rounds: int
    completed_cups: int
    perfect_cups: int
    spills: int
    score: float
    poured_ml: float
    duration_s: float
    success_rate: float
    mean_abs_error: float | None


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def random(self) -> float:
        return self._rng.random()

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x <= lo else hi if x >= hi else float(x)


def clamp_non_negative(x: float) -> float:
    return 0.0 if x <= 0.0 else float(x)
