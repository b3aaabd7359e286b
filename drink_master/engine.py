from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol

from .clock import Clock, TimerSlot
from .config import DrinkProfile, GameConfig
from .physics import RoundState, step_physics
from .pour_core import (
    DrinkType,
    FillStatus,
    PourSnapshot,
    SeededRng,
    SessionPhase,
    SessionSummary,
)
from .scoring import FEEDBACK_TEXT, PourOutcome, RoundScore, score_pour

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(time.time()))


class PourEventKind(str, Enum):
    SESSION_STARTED = "session_started"
    ROUND_STARTED = "round_started"
    POUR_STARTED = "pour_started"
    POUR_STOPPED = "pour_stopped"
    SPILLED = "spilled"
    ROUND_EVALUATED = "round_evaluated"
    SESSION_ENDED = "session_ended"


@dataclass(frozen=True, slots=True)
class PourEvent:
    kind: PourEventKind
    round_index: int
    drink_type: DrinkType
    at_s: float
    outcome: PourOutcome | None = None
    points: float = 0.0


@dataclass(frozen=True, slots=True)
class RoundRecord:
    index: int
    drink_type: DrinkType
    target_line: float
    final_level: float
    outcome: PourOutcome
    points: float
    poured_ml: float


class SessionService(Protocol):
    """Session-scoped collaborator (e.g. an audio bed) with explicit lifecycle."""

    def start(self) -> None: ...

    def stop(self) -> None: ...


PourListener = Callable[[PourEvent], None]


class PourGameEngine:
    """Round orchestrator and fill state machine for the pouring game.

    - Deterministic: drink, target and all physics noise come from one RNG
      seeded at construction.
    - Time is entirely via injected Clock. Physics runs in fixed ticks; the
      settle/transition timers and the session countdown are measured in
      simulated ticks, so a reset round can never be hit by a stale timer.

    Input methods return True when accepted and False when ignored.
    """

    _MAX_UPDATE_DT_S = 0.50
    _TICK_EPSILON_S = 1e-9

    def __init__(
        self,
        *,
        clock: Clock,
        seed: int,
        config: GameConfig | None = None,
        listeners: Iterable[PourListener] = (),
    ) -> None:
        cfg = config or GameConfig()
        cfg.validate()

        self._clock = clock
        self._seed = int(seed)
        self._cfg = cfg
        self._rng = SeededRng(self._seed)
        self._tick_dt = 1.0 / float(cfg.tick_hz)

        self._listeners: list[PourListener] = list(listeners)
        self._services: list[SessionService] = []

        self._phase = SessionPhase.MENU
        self._round = RoundState()
        self._round_index = 0
        self._feedback: str | None = None

        self._settle_timer = TimerSlot("settle")
        self._transition_timer = TimerSlot("transition")

        self._last_update_at_s = self._clock.now()
        self._accumulator_s = 0.0
        self._tick_count = 0
        self._stalled_s = 0.0

        self._nickname: str | None = None
        self._time_remaining_s = int(cfg.session_duration_s)
        self._completed_cups = 0
        self._score = 0.0
        self._poured_ml = 0.0
        self._ended_at_s: float | None = None
        self._ended_at_utc: str | None = None

        self._rounds: list[RoundRecord] = []
        self._events: list[PourEvent] = []

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def config(self) -> GameConfig:
        return self._cfg

    @property
    def status(self) -> FillStatus:
        return self._round.status

    @property
    def drink_type(self) -> DrinkType:
        return self._round.drink_type

    @property
    def nickname(self) -> str | None:
        return self._nickname

    @property
    def ended_at_s(self) -> float | None:
        """Injected-clock reading at session end (for ordering, not for display)."""
        return self._ended_at_s

    @property
    def ended_at_utc(self) -> str | None:
        """Wall-clock end of the session as an ISO-8601 UTC string."""
        return self._ended_at_utc

    @property
    def sim_elapsed_s(self) -> float:
        return self._tick_count * self._tick_dt

    def add_listener(self, listener: PourListener) -> None:
        self._listeners.append(listener)

    def attach_service(self, service: SessionService) -> None:
        self._services.append(service)
        if self._phase is SessionPhase.PLAYING:
            service.start()

    # --- Session lifecycle ---

    def start_session(self, nickname: str | None = None) -> None:
        self._settle_timer.cancel()
        self._transition_timer.cancel()

        was_playing = self._phase is SessionPhase.PLAYING
        self._phase = SessionPhase.PLAYING
        self._nickname = None if nickname is None else (str(nickname).strip() or None)

        self._completed_cups = 0
        self._score = 0.0
        self._poured_ml = 0.0
        self._time_remaining_s = int(self._cfg.session_duration_s)
        self._ended_at_s = None
        self._ended_at_utc = None
        self._rounds.clear()
        self._events.clear()
        self._round_index = 0

        self._tick_count = 0
        self._stalled_s = 0.0
        self._accumulator_s = 0.0
        self._last_update_at_s = self._clock.now()

        if not was_playing:
            for service in self._services:
                service.start()

        logger.info(
            "Session started (seed=%d, duration=%ds, nickname=%s)",
            self._seed,
            self._time_remaining_s,
            self._nickname,
        )
        self._emit(PourEventKind.SESSION_STARTED)
        self.next_round()

    def return_to_menu(self) -> None:
        self._settle_timer.cancel()
        self._transition_timer.cancel()
        if self._phase is SessionPhase.PLAYING:
            self._stop_services()
        self._phase = SessionPhase.MENU
        self._round.reset(drink_type=self._round.drink_type, target_line=self._round.target_line)
        self._feedback = None

    def next_round(self) -> None:
        """Reset the glass and deal the next drink and target line."""

        self._settle_timer.cancel()
        self._transition_timer.cancel()
        self._feedback = None

        if self._phase is not SessionPhase.PLAYING:
            self._round.reset(drink_type=self._round.drink_type, target_line=self._round.target_line)
            return

        drink = DrinkType.SODA if self._rng.random() < self._cfg.soda_chance else DrinkType.COFFEE
        target = self._rng.uniform(self._cfg.target_min, self._cfg.target_max)
        self._round.reset(drink_type=drink, target_line=target)
        self._round_index += 1

        logger.debug("Round %d: %s, target %.1f", self._round_index, drink.value, target)
        self._emit(PourEventKind.ROUND_STARTED)

    # --- Input ---

    def pour_start(self) -> bool:
        if self._phase is not SessionPhase.PLAYING:
            return False
        if self._round.status in (FillStatus.EVALUATING, FillStatus.SPILLED):
            return False
        if self._round.is_pouring:
            return False

        self._settle_timer.cancel()
        self._round.is_pouring = True
        self._round.status = FillStatus.POURING
        self._emit(PourEventKind.POUR_STARTED)
        return True

    def pour_stop(self) -> bool:
        if self._phase is not SessionPhase.PLAYING or not self._round.is_pouring:
            return False

        self._round.is_pouring = False
        self._round.status = FillStatus.SETTLING

        jitter = self._cfg.settle_jitter_s
        wait_s = self._profile().settling_time_s + self._rng.uniform(-jitter, jitter)
        self._settle_timer.arm(now_s=self.sim_elapsed_s, delay_s=wait_s)

        logger.debug(
            "Pour stopped at %.2f (+%.2f foam, %.2f pressure); settling %.2fs",
            self._round.liquid_level,
            self._round.foam_level,
            self._round.pressure,
            wait_s,
        )
        self._emit(PourEventKind.POUR_STOPPED)
        return True

    # --- Simulation ---

    def update(self) -> None:
        now = self._clock.now()
        dt = now - self._last_update_at_s
        self._last_update_at_s = now

        if dt <= 0.0 or self._phase is not SessionPhase.PLAYING:
            return

        raw_dt = float(dt)
        dt = min(raw_dt, self._MAX_UPDATE_DT_S)
        if raw_dt > dt:
            # Physics drops the stall, but the session countdown still owes it.
            self._stalled_s += raw_dt - dt
            logger.debug("Frame stall of %.2fs clamped to %.2fs", raw_dt, dt)
        self._accumulator_s += dt

        while self._accumulator_s + self._TICK_EPSILON_S >= self._tick_dt:
            self._accumulator_s -= self._tick_dt
            if self._phase is not SessionPhase.PLAYING:
                self._accumulator_s = 0.0
                break
            self.step()

    def step(self) -> None:
        """Advance exactly one fixed simulation tick."""

        if self._phase is not SessionPhase.PLAYING:
            return

        self._tick_count += 1
        # Timer deadlines are sums of tick times; absorb float drift so they fire on their tick.
        now_s = self.sim_elapsed_s + self._TICK_EPSILON_S

        overflowed = step_physics(
            self._round,
            profile=self._profile(),
            config=self._cfg,
            rng=self._rng,
        )
        if overflowed:
            self._spill()

        if self._settle_timer.poll(now_s):
            self._evaluate()
        if self._transition_timer.poll(now_s):
            self.next_round()

        self._advance_countdown()

    def time_remaining_s(self) -> int:
        return int(self._time_remaining_s)

    # --- Views ---

    def snapshot(self) -> PourSnapshot:
        r = self._round
        return PourSnapshot(
            phase=self._phase,
            drink_type=r.drink_type,
            status=r.status,
            liquid_level=float(r.liquid_level),
            foam_level=float(r.foam_level),
            target_line=float(r.target_line),
            tolerance=float(self._profile().tolerance),
            feedback=self._feedback,
            time_remaining_s=int(self._time_remaining_s),
            completed_cups=int(self._completed_cups),
            score=float(self._score),
            round_index=int(self._round_index),
            nickname=self._nickname,
        )

    def events(self) -> list[PourEvent]:
        return list(self._events)

    def rounds(self) -> list[RoundRecord]:
        return list(self._rounds)

    def summary(self) -> SessionSummary:
        rounds = len(self._rounds)
        perfect = sum(1 for r in self._rounds if r.outcome is PourOutcome.PERFECT)
        spills = sum(1 for r in self._rounds if r.outcome is PourOutcome.SPILLED)
        errors = [
            abs(r.final_level - r.target_line)
            for r in self._rounds
            if r.outcome is not PourOutcome.SPILLED
        ]
        mean_err = None if not errors else sum(errors) / len(errors)
        success_rate = 0.0 if rounds == 0 else self._completed_cups / rounds

        return SessionSummary(
            rounds=rounds,
            completed_cups=int(self._completed_cups),
            perfect_cups=perfect,
            spills=spills,
            score=float(self._score),
            poured_ml=float(self._poured_ml),
            duration_s=float(self._cfg.session_duration_s),
            success_rate=float(success_rate),
            mean_abs_error=mean_err,
        )

    # --- Transitions ---

    def _profile(self) -> DrinkProfile:
        return self._cfg.profile(self._round.drink_type)

    def _advance_countdown(self) -> None:
        # Whole seconds of session time: simulated ticks plus any clamped-off stall.
        elapsed_s = self.sim_elapsed_s + self._stalled_s + self._TICK_EPSILON_S
        remaining = max(0, int(self._cfg.session_duration_s) - int(elapsed_s))
        if remaining >= self._time_remaining_s:
            return
        self._time_remaining_s = remaining
        if remaining <= 0:
            self._end_session()

    def _spill(self) -> None:
        r = self._round
        r.status = FillStatus.SPILLED
        r.is_pouring = False
        self._settle_timer.cancel()
        self._feedback = FEEDBACK_TEXT[PourOutcome.SPILLED]

        self._record_round(
            RoundScore(
                outcome=PourOutcome.SPILLED,
                final_level=r.total_level,
                target_line=r.target_line,
                points=0.0,
                poured_ml=0.0,
            )
        )
        logger.debug("Round %d spilled at %.2f", self._round_index, r.total_level)
        self._emit(PourEventKind.SPILLED, outcome=PourOutcome.SPILLED)
        self._transition_timer.arm(now_s=self.sim_elapsed_s, delay_s=self._cfg.spill_delay_s)

    def _evaluate(self) -> None:
        r = self._round
        r.status = FillStatus.EVALUATING

        result = score_pour(
            final_level=r.total_level,
            target_line=r.target_line,
            profile=self._profile(),
            config=self._cfg,
        )
        if result.counts_as_cup:
            self._completed_cups += 1
            self._score += result.points
            self._poured_ml += result.poured_ml
        self._feedback = result.feedback
        self._record_round(result)

        logger.debug(
            "Round %d evaluated: %s at %.2f (target %.2f, +%.1f)",
            self._round_index,
            result.outcome.value,
            result.final_level,
            result.target_line,
            result.points,
        )
        self._emit(PourEventKind.ROUND_EVALUATED, outcome=result.outcome, points=result.points)

        delay = self._cfg.spill_delay_s if result.outcome is PourOutcome.SPILLED else self._cfg.evaluate_delay_s
        self._transition_timer.arm(now_s=self.sim_elapsed_s, delay_s=delay)

    def _end_session(self) -> None:
        self._phase = SessionPhase.RESULT
        self._time_remaining_s = 0
        self._round.is_pouring = False
        self._settle_timer.cancel()
        self._transition_timer.cancel()
        self._accumulator_s = 0.0
        self._ended_at_s = self._clock.now()
        self._ended_at_utc = _utc_now_iso()

        logger.info(
            "Session ended: %d cups, score %.0f over %d rounds",
            self._completed_cups,
            self._score,
            len(self._rounds),
        )
        self._emit(PourEventKind.SESSION_ENDED)
        self._stop_services()

    def _stop_services(self) -> None:
        for service in self._services:
            service.stop()

    def _record_round(self, result: RoundScore) -> None:
        self._rounds.append(
            RoundRecord(
                index=self._round_index,
                drink_type=self._round.drink_type,
                target_line=float(self._round.target_line),
                final_level=float(result.final_level),
                outcome=result.outcome,
                points=float(result.points),
                poured_ml=float(result.poured_ml),
            )
        )

    def _emit(self, kind: PourEventKind, *, outcome: PourOutcome | None = None, points: float = 0.0) -> None:
        event = PourEvent(
            kind=kind,
            round_index=self._round_index,
            drink_type=self._round.drink_type,
            at_s=self.sim_elapsed_s,
            outcome=outcome,
            points=float(points),
        )
        self._events.append(event)
        for listener in self._listeners:
            listener(event)


def build_pour_game(
    *,
    clock: Clock,
    seed: int,
    session_duration_s: int = 60,
    soda_chance: float | None = None,
    config: GameConfig | None = None,
) -> PourGameEngine:
    cfg = config or GameConfig(session_duration_s=int(session_duration_s))
    if soda_chance is not None:
        cfg = replace(cfg, soda_chance=float(soda_chance))
    return PourGameEngine(clock=clock, seed=seed, config=cfg)
