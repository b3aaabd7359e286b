from __future__ import annotations

from dataclasses import dataclass, field

from .pour_core import DrinkType

# Range for the dynamic target line (percentage of glass height).
TARGET_MIN = 60.0
TARGET_MAX = 85.0

GAME_DURATION_S = 60

# Probability that a new round serves soda.
SODA_APPEARANCE_CHANCE = 0.7

# 1% of glass height is roughly 6 ml.
ML_PER_PERCENT = 6.0


@dataclass(frozen=True, slots=True)
class DrinkProfile:
    """Per-drink balance constants. Rates are per physics tick."""

    tolerance: float
    fill_speed: float
    settling_time_s: float
    score_multiplier: float
    perfect_bonus: float

    # Pressure only builds for carbonated drinks.
    pressurized: bool = False
    foam_rate: float = 0.0

    foam_step: float = 0.5
    foam_cap: float = 5.0

    rise_speed: float = 0.4
    rise_jitter: float = 0.1

    foam_decay: float = 0.05
    foam_decay_jitter: float = 0.0
    foam_floor: float = 0.0


SODA_PROFILE = DrinkProfile(
    tolerance=7.0,
    fill_speed=0.55,
    settling_time_s=1.5,
    score_multiplier=1.5,
    perfect_bonus=399.0,
    pressurized=True,
    foam_rate=0.22,
    foam_cap=8.0,
    foam_decay=0.05,
    foam_decay_jitter=0.02,
)

COFFEE_PROFILE = DrinkProfile(
    tolerance=3.0,
    fill_speed=0.85,
    settling_time_s=0.7,
    score_multiplier=1.0,
    perfect_bonus=99.0,
    foam_cap=5.0,
    foam_decay=0.05,
    foam_floor=2.0,
)


def _default_profiles() -> dict[DrinkType, DrinkProfile]:
    return {DrinkType.SODA: SODA_PROFILE, DrinkType.COFFEE: COFFEE_PROFILE}


@dataclass(frozen=True, slots=True)
class GameConfig:
    session_duration_s: int = GAME_DURATION_S
    tick_hz: float = 60.0

    target_min: float = TARGET_MIN
    target_max: float = TARGET_MAX
    soda_chance: float = SODA_APPEARANCE_CHANCE
    ml_per_percent: float = ML_PER_PERCENT

    # Cosmetic micro-flow jitter and soda fizz chaos, per tick.
    flow_noise_max: float = 0.04
    chaos_min: float = -0.02
    chaos_max: float = 0.08
    pressure_epsilon: float = 0.01

    settle_jitter_s: float = 0.2
    evaluate_delay_s: float = 1.2
    spill_delay_s: float = 1.5

    surface_tension_points: float = 30.0
    perfect_window: float = 1.0
    perfect_multiplier: float = 1.2

    profiles: dict[DrinkType, DrinkProfile] = field(default_factory=_default_profiles)

    def profile(self, drink: DrinkType) -> DrinkProfile:
        return self.profiles[drink]

    def validate(self) -> None:
        if self.tick_hz <= 0.0:
            raise ValueError("tick_hz must be > 0")
        if self.session_duration_s <= 0:
            raise ValueError("session_duration_s must be > 0")
        if self.target_min > self.target_max:
            raise ValueError("target_min must be <= target_max")
        if not (0.0 <= self.soda_chance <= 1.0):
            raise ValueError("soda_chance must be in [0.0, 1.0]")
        if self.settle_jitter_s < 0.0:
            raise ValueError("settle_jitter_s must be >= 0")
        if self.evaluate_delay_s < 0.0 or self.spill_delay_s < 0.0:
            raise ValueError("transition delays must be >= 0")
        for drink in DrinkType:
            if drink not in self.profiles:
                raise ValueError(f"missing profile for {drink.value}")
            p = self.profiles[drink]
            if p.tolerance < 0.0:
                raise ValueError(f"{drink.value} tolerance must be >= 0")
            if p.fill_speed <= 0.0:
                raise ValueError(f"{drink.value} fill_speed must be > 0")
            if p.settling_time_s <= 0.0:
                raise ValueError(f"{drink.value} settling_time_s must be > 0")
