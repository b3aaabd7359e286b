from __future__ import annotations

from dataclasses import replace

import pytest

from drink_master.config import COFFEE_PROFILE, ML_PER_PERCENT, SODA_PROFILE, GameConfig
from drink_master.scoring import PourOutcome, classify_pour, score_pour


def _soda(final_level: float, target_line: float = 75.0):
    return score_pour(final_level=final_level, target_line=target_line, profile=SODA_PROFILE, config=GameConfig())


def test_upper_zone_boundary_is_inclusive() -> None:
    s = _soda(82.0)
    assert s.outcome is PourOutcome.SUCCESS
    assert s.points == pytest.approx(82.0 * ML_PER_PERCENT * 1.5)
    assert s.counts_as_cup is True


def test_just_past_upper_boundary_is_overshoot() -> None:
    s = _soda(82.01)
    assert s.outcome is PourOutcome.OVERSHOOT
    assert s.points == 0.0
    assert s.counts_as_cup is False


def test_lower_zone_boundary_is_inclusive_and_below_is_undershoot() -> None:
    assert _soda(68.0).outcome is PourOutcome.SUCCESS
    s = _soda(67.99)
    assert s.outcome is PourOutcome.UNDERSHOOT
    assert s.points == 0.0


def test_dead_centre_is_perfect_with_bonus() -> None:
    s = _soda(75.0)
    assert s.outcome is PourOutcome.PERFECT
    base = 75.0 * ML_PER_PERCENT * 1.5
    assert s.points == pytest.approx(base * 1.2 + 399.0)


def test_perfect_window_is_strict() -> None:
    assert _soda(75.99).outcome is PourOutcome.PERFECT
    assert _soda(76.0).outcome is PourOutcome.SUCCESS
    assert _soda(74.01).outcome is PourOutcome.PERFECT
    assert _soda(74.0).outcome is PourOutcome.SUCCESS


def test_perfect_beats_plain_success_at_same_height() -> None:
    perfect = _soda(76.0, target_line=76.0)
    plain = _soda(76.0, target_line=72.0)
    assert perfect.outcome is PourOutcome.PERFECT
    assert plain.outcome is PourOutcome.SUCCESS
    assert perfect.points > plain.points


def test_success_reward_matches_drink_multiplier() -> None:
    soda = _soda(76.0)
    assert soda.outcome is PourOutcome.SUCCESS
    assert soda.points == pytest.approx(76.0 * ML_PER_PERCENT * SODA_PROFILE.score_multiplier)
    assert soda.poured_ml == pytest.approx(76.0 * ML_PER_PERCENT)

    coffee = score_pour(final_level=72.0, target_line=70.0, profile=COFFEE_PROFILE, config=GameConfig())
    assert coffee.outcome is PourOutcome.SUCCESS
    assert coffee.points == pytest.approx(72.0 * ML_PER_PERCENT * 1.0)


def test_surface_tension_band_is_distinct_from_spill_and_success() -> None:
    wide = replace(SODA_PROFILE, tolerance=10.0)
    cfg = GameConfig()

    tension = score_pour(final_level=103.0, target_line=75.0, profile=SODA_PROFILE, config=cfg)
    assert tension.outcome is PourOutcome.SURFACE_TENSION
    assert tension.points == pytest.approx(30.0)
    assert tension.counts_as_cup is True

    spill = score_pour(final_level=106.0, target_line=75.0, profile=SODA_PROFILE, config=cfg)
    assert spill.outcome is PourOutcome.SPILLED
    assert spill.points == 0.0
    assert spill.poured_ml == 0.0
    assert spill.counts_as_cup is False

    ok = score_pour(final_level=95.0, target_line=90.0, profile=wide, config=cfg)
    assert ok.outcome is PourOutcome.SUCCESS
    assert ok.points > 0.0


def test_band_edges_at_brim_and_overflow() -> None:
    assert classify_pour(final_level=105.0, target_line=75.0, tolerance=7.0) is PourOutcome.SURFACE_TENSION
    assert classify_pour(final_level=100.01, target_line=75.0, tolerance=7.0) is PourOutcome.SURFACE_TENSION
    # At the brim the zone table applies again.
    assert classify_pour(final_level=100.0, target_line=95.0, tolerance=7.0) is PourOutcome.SUCCESS
    assert classify_pour(final_level=100.0, target_line=75.0, tolerance=7.0) is PourOutcome.OVERSHOOT


def test_feedback_text_per_outcome() -> None:
    assert _soda(75.0).feedback == "Perfect!"
    assert _soda(70.0).feedback == "Nice!"
    assert _soda(90.0).feedback == "Too much!"
    assert _soda(50.0).feedback == "Too little..."
    assert _soda(104.0).feedback == "Surface tension!"
    assert _soda(110.0).feedback == "Spilled!"
