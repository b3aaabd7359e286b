from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .config import DrinkProfile, GameConfig
from .pour_core import BRIM_LEVEL, OVERFLOW_LEVEL


class PourOutcome(str, Enum):
    SPILLED = "spilled"
    SURFACE_TENSION = "surface_tension"
    OVERSHOOT = "overshoot"
    UNDERSHOOT = "undershoot"
    SUCCESS = "success"
    PERFECT = "perfect"


FEEDBACK_TEXT: dict[PourOutcome, str] = {
    PourOutcome.SPILLED: "Spilled!",
    PourOutcome.SURFACE_TENSION: "Surface tension!",
    PourOutcome.OVERSHOOT: "Too much!",
    PourOutcome.UNDERSHOOT: "Too little...",
    PourOutcome.SUCCESS: "Nice!",
    PourOutcome.PERFECT: "Perfect!",
}

_COUNTED = frozenset((PourOutcome.SURFACE_TENSION, PourOutcome.SUCCESS, PourOutcome.PERFECT))


@dataclass(frozen=True, slots=True)
class RoundScore:
    outcome: PourOutcome
    final_level: float
    target_line: float
    points: float
    poured_ml: float

    @property
    def counts_as_cup(self) -> bool:
        return self.outcome in _COUNTED

    @property
    def feedback(self) -> str:
        return FEEDBACK_TEXT[self.outcome]


def classify_pour(*, final_level: float, target_line: float, tolerance: float, perfect_window: float = 1.0) -> PourOutcome:
    """First matching row of the grading table wins."""

    min_success = target_line - tolerance
    max_success = target_line + tolerance

    if final_level > OVERFLOW_LEVEL:
        return PourOutcome.SPILLED
    if final_level > BRIM_LEVEL:
        return PourOutcome.SURFACE_TENSION
    if final_level > max_success:
        return PourOutcome.OVERSHOOT
    if final_level < min_success:
        return PourOutcome.UNDERSHOOT
    if abs(final_level - target_line) < perfect_window:
        return PourOutcome.PERFECT
    return PourOutcome.SUCCESS


def score_pour(
    *,
    final_level: float,
    target_line: float,
    profile: DrinkProfile,
    config: GameConfig,
) -> RoundScore:
    outcome = classify_pour(
        final_level=final_level,
        target_line=target_line,
        tolerance=profile.tolerance,
        perfect_window=config.perfect_window,
    )

    points = 0.0
    if outcome is PourOutcome.SURFACE_TENSION:
        points = float(config.surface_tension_points)
    elif outcome in (PourOutcome.SUCCESS, PourOutcome.PERFECT):
        points = final_level * config.ml_per_percent * profile.score_multiplier
        if outcome is PourOutcome.PERFECT:
            points = points * config.perfect_multiplier + profile.perfect_bonus

    poured_ml = final_level * config.ml_per_percent if outcome in _COUNTED else 0.0

    return RoundScore(
        outcome=outcome,
        final_level=float(final_level),
        target_line=float(target_line),
        points=float(points),
        poured_ml=float(poured_ml),
    )
