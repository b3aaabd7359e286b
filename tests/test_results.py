from __future__ import annotations

from dataclasses import dataclass, replace

import pytest

from drink_master.config import COFFEE_PROFILE, SODA_PROFILE, GameConfig
from drink_master.engine import PourGameEngine
from drink_master.pour_core import DrinkType
from drink_master.results import format_result_lines, session_result_from_engine
from drink_master.scoring import PourOutcome


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _soda_engine(duration_s: int = 60) -> PourGameEngine:
    cfg = GameConfig(
        session_duration_s=duration_s,
        target_min=75.0,
        target_max=75.0,
        soda_chance=1.0,
        flow_noise_max=0.0,
        chaos_min=0.0,
        chaos_max=0.0,
        settle_jitter_s=0.0,
        profiles={
            DrinkType.SODA: replace(SODA_PROFILE, rise_jitter=0.0, foam_decay_jitter=0.0),
            DrinkType.COFFEE: COFFEE_PROFILE,
        },
    )
    return PourGameEngine(clock=FakeClock(), seed=21, config=cfg)


def _pour_round(engine: PourGameEngine, pour_ticks: int) -> None:
    assert engine.pour_start() is True
    for _ in range(pour_ticks):
        engine.step()
    engine.pour_stop()
    # Settle (90 ticks) plus the transition to the next round.
    for _ in range(90 + 72):
        engine.step()


def test_empty_session_result() -> None:
    engine = _soda_engine()
    engine.start_session()
    result = session_result_from_engine(engine)

    assert result.rounds == 0
    assert result.completed_cups == 0
    assert result.mean_abs_error is None
    assert result.median_abs_error is None
    assert result.best_round is None
    assert result.records == []
    assert result.cups_by_drink == {DrinkType.SODA: 0, DrinkType.COFFEE: 0}


def test_result_aggregates_rounds() -> None:
    engine = _soda_engine()
    engine.start_session("Ana")

    _pour_round(engine, 90)  # perfect
    _pour_round(engine, 95)  # in zone
    _pour_round(engine, 40)  # too little

    result = session_result_from_engine(engine)
    outcomes = [r.outcome for r in result.records]
    assert outcomes == [PourOutcome.PERFECT, PourOutcome.SUCCESS, PourOutcome.UNDERSHOOT]

    assert result.nickname == "Ana"
    assert result.seed == 21
    assert result.rounds == 3
    assert result.completed_cups == 2
    assert result.perfect_cups == 1
    assert result.spills == 0
    assert result.success_rate == pytest.approx(2.0 / 3.0)
    assert result.cups_by_drink[DrinkType.SODA] == 2
    assert result.best_round is result.records[0]
    assert result.poured_ml == pytest.approx((result.records[0].final_level + result.records[1].final_level) * 6.0)

    errors = sorted(abs(r.final_level - r.target_line) for r in result.records)
    assert result.median_abs_error == pytest.approx(errors[1])
    assert result.mean_abs_error == pytest.approx(sum(errors) / 3.0)


def test_format_result_lines() -> None:
    engine = _soda_engine(duration_s=4)
    engine.start_session()
    _pour_round(engine, 90)
    for _ in range(300):
        engine.step()

    result = session_result_from_engine(engine)
    assert result.ended_at_s is not None

    lines = format_result_lines(result)
    assert lines[0] == "Time's up, Player!"
    assert any(line.startswith("Score:") and f"{result.score:.0f}" in line for line in lines)
    assert "Cups:      1 / 1" in lines
    assert "Perfect:   1" in lines
    assert result.ended_at_utc is not None
    assert f"Finished:  {result.ended_at_utc[:10]} {result.ended_at_utc[11:19]} UTC" in lines


def test_format_result_lines_before_session_end() -> None:
    engine = _soda_engine()
    engine.start_session()

    lines = format_result_lines(session_result_from_engine(engine))
    assert "Finished:  n/a" in lines
