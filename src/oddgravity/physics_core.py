"""
physics_core.py: The shared, deterministic kinematic functions and collision logic.
"""

import math
from typing import Optional

from .constants import GRAVITY_ACCEL, SCREEN_HEIGHT, TAP_IMPULSE
from .data_models import GapObstacle, Player


def circle_collision(x1: float, y1: float, r1: float, x2: float, y2: float, r2: float) -> bool:
    dx = x1 - x2
    dy = y1 - y2
    return dx * dx + dy * dy < (r1 + r2) * (r1 + r2)


def rect_collision(cx: float, cy: float, r: float,
                   rx: float, ry: float, rw: float, rh: float, fudge: float = 0.0) -> bool:
    """Circle vs axis-aligned rect. `fudge` shrinks the rect on every side."""
    fudge = min(fudge, rw / 2, rh / 2)
    closest_x = max(rx + fudge, min(cx, rx + rw - fudge))
    closest_y = max(ry + fudge, min(cy, ry + rh - fudge))
    dx = cx - closest_x
    dy = cy - closest_y
    return dx * dx + dy * dy < r * r


def overlaps_x(px: float, pr: float, obs: GapObstacle) -> bool:
    return px + pr > obs.x and px - pr < obs.x + obs.width


def gap_collision(px: float, py: float, pr: float, obs: GapObstacle, fudge: float = 0.0) -> bool:
    """True when the player overlaps the bar and is not fully inside the gap."""
    if not overlaps_x(px, pr, obs):
        return False
    top = obs.gap_top + fudge
    bottom = obs.gap_bottom - fudge
    return not (py - pr >= top and py + pr <= bottom)


def gap_clearance(py: float, pr: float, obs: GapObstacle) -> float:
    """Smallest distance between the player's edge and either side of the gap."""
    return min((py - pr) - obs.gap_top, obs.gap_bottom - (py + pr))


class PhysicsCore:
    """
    Deterministic player integration. One instance per run, configured by the
    active mode and the current world.
    """

    def __init__(self, gravity: float = GRAVITY_ACCEL, impulse: float = TAP_IMPULSE,
                 height: float = SCREEN_HEIGHT):
        self.gravity = gravity
        self.impulse = impulse
        self.height = height

    def integrate(self, player: Player, sign: int, dt: float, now: float,
                  sine_amp: float = 0.0, sine_period_ms: float = 1200, wind: float = 0.0):
        """vy += g*sign*dt (+ wobble + wind), then y += vy*dt."""
        player.vy += self.gravity * sign * dt
        if sine_amp > 0:
            w = (2 * math.pi) / (sine_period_ms or 1200)
            player.vy += self.gravity * sine_amp * math.sin(now * w) * dt
        if wind:
            player.vy += wind * dt
        player.y += player.vy * dt

    def tap(self, player: Player, sign: int):
        """Impulse against the current gravity direction."""
        player.vy += -sign * self.impulse

    def out_of_bounds(self, y: float, radius: float) -> Optional[str]:
        if y - radius < 0:
            return "top"
        if y + radius > self.height:
            return "bottom"
        return None

    def bounce(self, player: Player, radius: float, side: str, damping: float):
        if side == "top":
            player.y = radius + 1
            player.vy = abs(player.vy) * damping
        else:
            player.y = self.height - radius - 1
            player.vy = -abs(player.vy) * damping

    def push_inside(self, player: Player, radius: float, side: str):
        """Shield recovery: place the player just inside the bound and stop it."""
        player.y = radius + 1 if side == "top" else self.height - radius - 1
        player.vy = 0.0
