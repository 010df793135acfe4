"""
obstacles.py: Gap obstacle generation, movement patterns and culling.
"""

import math
import random
from dataclasses import dataclass, field
from typing import List

from .constants import (
    FIRST_EASY_BONUS, FIRST_EASY_WALLS, GAP_MARGIN, INITIAL_OBSTACLES,
    MOVING_CHANCE_MAX, MOVING_CHANCE_SCALE, MOVING_MIN_D, OBSTACLE_WINDOW,
    SCREEN_HEIGHT, SCREEN_WIDTH, SECOND_EASY_BONUS, SECOND_EASY_WALLS,
    SINE_DRIFT_AMP, SINE_DRIFT_FREQ, SPAWN_DIST_EASY, SPAWN_DIST_HARD,
    SPAWN_OFFSET_X, ZIGZAG_SPEED,
)
from .data_models import GapObstacle
from .difficulty import Tunables, clamp, lerp

# Landmark pools unlock by score. Cosmetic only.
LANDMARK_TIERS = (
    (0, ("pillar", "tower")),
    (10, ("arch", "spire")),
    (25, ("pyramid", "obelisk")),
    (50, ("pagoda", "lighthouse")),
)


def landmark_pool(score: int) -> List[str]:
    pool = []
    for min_score, shapes in LANDMARK_TIERS:
        if score >= min_score:
            pool.extend(shapes)
    return pool


def moving_chance(d: float) -> float:
    return clamp((d - MOVING_MIN_D) * MOVING_CHANCE_SCALE, 0, MOVING_CHANCE_MAX)


def spawn_distance(d: float, passed_in_level: int) -> float:
    """Spacing shrinks with difficulty; the first walls of a level get extra room."""
    early = 0
    if passed_in_level < FIRST_EASY_WALLS:
        early = FIRST_EASY_BONUS
    elif passed_in_level < SECOND_EASY_WALLS:
        early = SECOND_EASY_BONUS
    return lerp(SPAWN_DIST_EASY, SPAWN_DIST_HARD, d) + early


@dataclass
class ObstacleField:
    """The rolling window of upcoming gap obstacles."""
    rng: random.Random = field(default_factory=random.Random)
    obstacles: List[GapObstacle] = field(default_factory=list)
    rightmost_x: float = 0.0

    def rand_gap_y(self) -> float:
        return GAP_MARGIN + self.rng.random() * (SCREEN_HEIGHT - GAP_MARGIN * 2)

    def _make(self, x: float, tun: Tunables, score: int) -> GapObstacle:
        pattern = "static"
        if self.rng.random() < moving_chance(tun.difficulty):
            pattern = self.rng.choice(("sine", "zigzag"))
        gap_y = self.rand_gap_y()
        return GapObstacle(
            x=x,
            gap_y=gap_y,
            gap_h=tun.gap_h,
            width=tun.col_width,
            shape=self.rng.choice(landmark_pool(score)),
            pattern=pattern,
            base_y=gap_y,
            phase=self.rng.random() * math.pi * 2,
            drift_dir=1 if self.rng.random() < 0.5 else -1,
        )

    def spawn_initial(self, tun: Tunables) -> List[GapObstacle]:
        self.obstacles = []
        self.rightmost_x = SCREEN_WIDTH + SPAWN_OFFSET_X
        sp = spawn_distance(0, 0)
        for i in range(INITIAL_OBSTACLES):
            self.obstacles.append(self._make(self.rightmost_x + i * sp, tun, 0))
        self.rightmost_x += (INITIAL_OBSTACLES - 1) * sp
        return list(self.obstacles)

    def advance(self, dx: float):
        for obs in self.obstacles:
            obs.x -= dx
        self.rightmost_x -= dx

    def update_patterns(self, dt: float):
        """Vertical drift of moving obstacles. Runs even during a freeze."""
        for obs in self.obstacles:
            if obs.pattern == "static":
                continue
            lo = GAP_MARGIN
            hi = SCREEN_HEIGHT - GAP_MARGIN
            if obs.pattern == "sine":
                obs.phase += SINE_DRIFT_FREQ * dt
                obs.gap_y = clamp(obs.base_y + math.sin(obs.phase) * SINE_DRIFT_AMP, lo, hi)
            elif obs.pattern == "zigzag":
                obs.gap_y += obs.drift_dir * ZIGZAG_SPEED * dt
                if obs.gap_y <= lo or obs.gap_y >= hi:
                    obs.gap_y = clamp(obs.gap_y, lo, hi)
                    obs.drift_dir = -obs.drift_dir

    def cull(self) -> int:
        before = len(self.obstacles)
        self.obstacles = [o for o in self.obstacles if o.trailing_x >= 0]
        return before - len(self.obstacles)

    def refill(self, tun: Tunables, passed_in_level: int, score: int) -> List[GapObstacle]:
        """Top the window back up. Returns the obstacles that were created."""
        if self.obstacles:
            self.rightmost_x = self.obstacles[-1].x
        created = []
        while len(self.obstacles) < OBSTACLE_WINDOW:
            start = self.rightmost_x if self.obstacles else SCREEN_WIDTH
            nx = start + spawn_distance(tun.difficulty, passed_in_level)
            obs = self._make(nx, tun, score)
            self.obstacles.append(obs)
            self.rightmost_x = nx
            created.append(obs)
        return created
