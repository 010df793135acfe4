"""
difficulty.py: The difficulty scalar and the tunables derived from it.

d = LEVEL_STEP * level_index + WITHIN_LEVEL_SPAN * easeOut(within)

The first term is a coarse step on every level up. The second is a smooth
ramp inside the level, mixing score progress with elapsed time (the first
GRACE_SEC seconds of a run do not count).
"""

from dataclasses import dataclass

from .constants import (
    COL_WIDTH_END, COL_WIDTH_MAX, COL_WIDTH_MIN, COL_WIDTH_START, DIFFICULTY_MAX,
    FLIP_MUL_END, FLIP_MUL_MIN, FLIP_MUL_START, FREEZE_MUL_END, FREEZE_MUL_START,
    FUDGE_END, FUDGE_FLOOR, FUDGE_START, GAP_END, GAP_MAX, GAP_MIN, GAP_START,
    GRACE_SEC, LEVEL_SIZE, LEVEL_STEP, SPEED_MUL_END, SPEED_MUL_MAX,
    SPEED_MUL_START, SPEED_UNIT, TIME_RAMP_SEC, WITHIN_LEVEL_SPAN,
)
from .modes import World


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def ease_out(t: float) -> float:
    return 1 - (1 - t) ** 2


@dataclass(frozen=True)
class Tunables:
    difficulty: float
    gap_h: float
    speed: float            # pixels/s
    flip_ms: float
    col_width: float
    fudge: float
    freeze_mul: float


def difficulty(elapsed_ms: float, score: int, level_index: int, level_start_score: int) -> float:
    baseline = LEVEL_STEP * level_index
    t_sec = max(0.0, elapsed_ms / 1000 - GRACE_SEC)
    progress = clamp((score - level_start_score) / LEVEL_SIZE, 0, 1)
    within = clamp(0.6 * progress + 0.4 * (t_sec / TIME_RAMP_SEC), 0, 1)
    return clamp(baseline + WITHIN_LEVEL_SPAN * ease_out(within), 0, DIFFICULTY_MAX)


def tunables(d: float, base_flip_ms: float, base_speed: float, world: World) -> Tunables:
    """Derive the per-frame values. Each one is clamped to its hard limit."""
    gap_h = clamp(lerp(GAP_START + world.gap_bonus, GAP_END, d), GAP_MIN, GAP_MAX)
    speed_mul = min(lerp(SPEED_MUL_START, SPEED_MUL_END, d), SPEED_MUL_MAX)
    flip_ms = max(lerp(base_flip_ms * FLIP_MUL_START, base_flip_ms * FLIP_MUL_END, d),
                  base_flip_ms * FLIP_MUL_MIN)
    col_width = clamp(lerp(COL_WIDTH_START, COL_WIDTH_END, d) * world.col_mul,
                      COL_WIDTH_MIN, COL_WIDTH_MAX)
    fudge = max(lerp(FUDGE_START, FUDGE_END, d), FUDGE_FLOOR)
    freeze_mul = max(lerp(FREEZE_MUL_START, FREEZE_MUL_END, d), FREEZE_MUL_END)

    return Tunables(
        difficulty=d,
        gap_h=gap_h,
        speed=base_speed * SPEED_UNIT * speed_mul,
        flip_ms=round(flip_ms),
        col_width=col_width,
        fudge=fudge,
        freeze_mul=freeze_mul,
    )
