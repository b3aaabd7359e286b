"""Per-tick liquid, foam and pressure simulation for a single glass.

The functions here mutate a :class:`RoundState` in place and never look at
time; every increment is a fixed per-tick amount plus bounded uniform noise
drawn from the injected RNG. Soda stores pressure while it is poured and
releases it as rising foam once the pour stops, which is what makes it hard
to stop on the line. Coffee only grows a thin crema that relaxes to a floor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .config import DrinkProfile, GameConfig
from .pour_core import OVERFLOW_LEVEL, DrinkType, FillStatus, clamp_non_negative


class UniformSource(Protocol):
    def uniform(self, a: float, b: float) -> float: ...


@dataclass(slots=True)
class RoundState:
    drink_type: DrinkType = DrinkType.SODA
    target_line: float = 0.0
    liquid_level: float = 0.0
    foam_level: float = 0.0
    pressure: float = 0.0
    status: FillStatus = FillStatus.EMPTY
    is_pouring: bool = False

    @property
    def total_level(self) -> float:
        return self.liquid_level + self.foam_level

    def reset(self, *, drink_type: DrinkType, target_line: float) -> None:
        self.drink_type = drink_type
        self.target_line = float(target_line)
        self.liquid_level = 0.0
        self.foam_level = 0.0
        self.pressure = 0.0
        self.status = FillStatus.EMPTY
        self.is_pouring = False


_FROZEN = (FillStatus.SPILLED, FillStatus.EVALUATING)


def is_overflowing(state: RoundState) -> bool:
    return state.total_level > OVERFLOW_LEVEL and state.status not in _FROZEN


def step_physics(
    state: RoundState,
    *,
    profile: DrinkProfile,
    config: GameConfig,
    rng: UniformSource,
) -> bool:
    """Advance one tick. Returns True if the glass overflowed on this tick."""

    if state.is_pouring and state.status not in _FROZEN:
        _pour_tick(state, profile=profile, config=config, rng=rng)
    elif not state.is_pouring and state.status is FillStatus.SETTLING:
        if profile.pressurized:
            _release_pressure_tick(state, profile=profile, config=config, rng=rng)
        else:
            _relax_crema_tick(state, profile=profile)

    state.foam_level = clamp_non_negative(state.foam_level)
    state.pressure = clamp_non_negative(state.pressure)

    # Checked after this tick's level updates so a spill is never a tick late.
    return is_overflowing(state)


def _pour_tick(
    state: RoundState,
    *,
    profile: DrinkProfile,
    config: GameConfig,
    rng: UniformSource,
) -> None:
    state.liquid_level += profile.fill_speed + rng.uniform(0.0, config.flow_noise_max)

    if profile.pressurized:
        state.pressure += profile.foam_rate + rng.uniform(config.chaos_min, config.chaos_max)
    else:
        state.pressure = 0.0

    if state.foam_level < profile.foam_cap:
        state.foam_level = min(profile.foam_cap, state.foam_level + profile.foam_step)


def _release_pressure_tick(
    state: RoundState,
    *,
    profile: DrinkProfile,
    config: GameConfig,
    rng: UniformSource,
) -> None:
    if state.pressure > 0.0:
        rise_speed = profile.rise_speed + rng.uniform(0.0, profile.rise_jitter)
        released = min(state.pressure, rise_speed)
        state.foam_level += released
        state.pressure -= released
        if state.pressure < config.pressure_epsilon:
            state.pressure = 0.0
        return

    # Pressure is spent: the head slowly collapses.
    decay = profile.foam_decay + rng.uniform(0.0, profile.foam_decay_jitter)
    state.foam_level = max(0.0, state.foam_level - decay)


def _relax_crema_tick(state: RoundState, *, profile: DrinkProfile) -> None:
    state.pressure = 0.0
    if state.foam_level > profile.foam_floor:
        state.foam_level = max(profile.foam_floor, state.foam_level - profile.foam_decay)
