import pytest

from oddgravity.constants import DIFFICULTY_MAX, FUDGE_FLOOR, GAP_MIN, SPEED_UNIT
from oddgravity.difficulty import clamp, difficulty, ease_out, lerp, tunables
from oddgravity.modes import WORLDS


def test_helpers():
    assert clamp(5, 0, 3) == 3
    assert clamp(-1, 0, 3) == 0
    assert lerp(10, 20, 0.5) == 15
    assert ease_out(0) == 0
    assert ease_out(1) == 1


def test_fresh_run_starts_at_zero():
    assert difficulty(0, 0, 0, 0) == 0


def test_grace_period_ignores_elapsed_time():
    assert difficulty(3000, 0, 0, 0) == 0
    assert difficulty(3000 + 45000, 0, 0, 0) == pytest.approx(0.15 * ease_out(0.4))


def test_level_baseline_steps():
    assert difficulty(0, 40, 1, 40) == pytest.approx(0.07)
    assert difficulty(0, 80, 2, 80) == pytest.approx(0.14)


def test_difficulty_is_clamped():
    assert difficulty(10 ** 9, 10 ** 6, 100, 0) == DIFFICULTY_MAX


def test_easy_tunables():
    clouds = WORLDS[0]
    t = tunables(0, 3000, 3, clouds)
    assert t.gap_h == 280 + clouds.gap_bonus
    assert t.speed == pytest.approx(3 * SPEED_UNIT * 0.6)
    assert t.flip_ms == 4050
    assert t.col_width == pytest.approx(26 * clouds.col_mul)
    assert t.fudge == pytest.approx(22)
    assert t.freeze_mul == pytest.approx(1.25)


def test_tunables_hold_their_limits_past_the_curve():
    t = tunables(3.0, 3000, 3, WORLDS[1])
    assert t.gap_h == GAP_MIN
    assert t.speed == pytest.approx(3 * SPEED_UNIT * 1.3)
    assert t.flip_ms == 1800
    assert t.col_width == 56
    assert t.fudge == FUDGE_FLOOR
    assert t.freeze_mul == pytest.approx(0.9)
