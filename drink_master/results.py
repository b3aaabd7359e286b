from __future__ import annotations

from dataclasses import dataclass

from .engine import PourGameEngine, RoundRecord
from .pour_core import DrinkType
from .scoring import PourOutcome


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Displayable summary + round log for a finished session."""

    nickname: str | None
    seed: int
    duration_s: float
    ended_at_s: float | None
    ended_at_utc: str | None

    rounds: int
    completed_cups: int
    perfect_cups: int
    spills: int
    score: float
    poured_ml: float
    success_rate: float
    mean_abs_error: float | None
    median_abs_error: float | None
    best_round: RoundRecord | None
    cups_by_drink: dict[DrinkType, int]

    records: list[RoundRecord]


def session_result_from_engine(engine: PourGameEngine) -> SessionResult:
    """Build a SessionResult from the engine's current round log."""

    summary = engine.summary()
    records = engine.rounds()

    errors = sorted(
        abs(r.final_level - r.target_line) for r in records if r.outcome is not PourOutcome.SPILLED
    )
    median_err: float | None
    if not errors:
        median_err = None
    else:
        mid = len(errors) // 2
        if len(errors) % 2 == 1:
            median_err = float(errors[mid])
        else:
            median_err = float(errors[mid - 1] + errors[mid]) / 2.0

    scored = [r for r in records if r.points > 0.0]
    best = max(scored, key=lambda r: r.points) if scored else None

    cups_by_drink = {drink: 0 for drink in DrinkType}
    for r in records:
        if r.poured_ml > 0.0:
            cups_by_drink[r.drink_type] += 1

    return SessionResult(
        nickname=engine.nickname,
        seed=int(engine.seed),
        duration_s=float(summary.duration_s),
        ended_at_s=engine.ended_at_s,
        ended_at_utc=engine.ended_at_utc,
        rounds=int(summary.rounds),
        completed_cups=int(summary.completed_cups),
        perfect_cups=int(summary.perfect_cups),
        spills=int(summary.spills),
        score=float(summary.score),
        poured_ml=float(summary.poured_ml),
        success_rate=float(summary.success_rate),
        mean_abs_error=summary.mean_abs_error,
        median_abs_error=median_err,
        best_round=best,
        cups_by_drink=cups_by_drink,
        records=records,
    )


def format_result_lines(result: SessionResult) -> list[str]:
    who = result.nickname or "Player"
    err = "n/a" if result.mean_abs_error is None else f"{result.mean_abs_error:.1f}%"
    finished = "n/a" if result.ended_at_utc is None else result.ended_at_utc.replace("T", " ").replace("Z", " UTC")
    best = "n/a" if result.best_round is None else f"{result.best_round.points:.0f} ({result.best_round.outcome.value})"
    return [
        f"Time's up, {who}!",
        "",
        f"Score:     {result.score:.0f}",
        f"Cups:      {result.completed_cups} / {result.rounds}",
        f"Perfect:   {result.perfect_cups}",
        f"Spills:    {result.spills}",
        f"Poured:    {result.poured_ml:.0f} ml",
        f"Mean miss: {err}",
        f"Best cup:  {best}",
        f"Finished:  {finished}",
    ]
