"""
engine.py: The per-frame simulation of one run.

RunState is the whole mutable state of a run. Simulation steps it forward in
a fixed order:

  1. tunables from the difficulty model
  2. powerup modifier snapshot (effective dt and radius)
  3. gravity flip
  4. player integration
  5. hazard, collectible and powerup motion
  6. cull and spawn
  7. passing and scoring
  8. boundary
  9. hazard collision
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional

from .collectibles import CollectibleField, Pickup
from .constants import (
    BANNER_MS, BOUNCE_DAMPING, COMBO_BONUS_EVERY, COMBO_BONUS_POINTS, LEVEL_SIZE,
    MAX_FRAME_DT, NEAR_MISS_MARGIN, NEAR_MISS_POINTS, PLAYER_RADIUS, SHIELD_GRACE_MS,
)
from .creatures import CreatureContext, CreatureField, clearance, trailing_x
from .data_models import Banner, GravityState, Modifiers, Player
from .difficulty import Tunables, difficulty, tunables
from .modes import ActiveMode, world_for_level
from .obstacles import ObstacleField
from .physics_core import PhysicsCore, gap_clearance, gap_collision
from .powerups import PowerupManager

logger = logging.getLogger(__name__)


@dataclass
class RunState:
    """Everything that belongs to a single run. Discarded on reset."""
    active: ActiveMode
    rng: random.Random
    player: Player = field(default_factory=Player)
    gravity: GravityState = field(default_factory=GravityState)
    obstacles: ObstacleField = None
    creatures: CreatureField = None
    collectibles: CollectibleField = None
    powerups: PowerupManager = None

    score: int = 0
    level_index: int = 0
    level_start_score: int = 0
    level_start_passed: int = 0
    passed_obstacles: int = 0
    dodged_creatures: int = 0
    shields_used: int = 0

    start_time: float = 0.0
    last_frame: float = 0.0
    freeze_until: float = 0.0
    shield_used_at: float = -1.0
    shield_grace_until: float = -1.0

    tunables: Optional[Tunables] = None
    banners: List[Banner] = field(default_factory=list)
    dead: bool = False
    death_cause: Optional[str] = None

    def __post_init__(self):
        if self.obstacles is None:
            self.obstacles = ObstacleField(rng=self.rng)
        if self.creatures is None:
            self.creatures = CreatureField(rng=self.rng)
        if self.collectibles is None:
            self.collectibles = CollectibleField(rng=self.rng)
        if self.powerups is None:
            self.powerups = PowerupManager(rng=self.rng)

    @property
    def passed_in_level(self) -> int:
        return self.passed_obstacles - self.level_start_passed

    @property
    def world(self):
        return world_for_level(self.level_index)

    def in_shield_grace(self, now: float) -> bool:
        return self.shield_used_at < now < self.shield_grace_until

    def ms_to_flip(self, now: float) -> float:
        if self.tunables is None:
            return 0.0
        return max(0.0, self.tunables.flip_ms - (now - self.gravity.last_flip))


@dataclass
class FrameEvents:
    """What happened during one step. Used for feedback cues and banners."""
    flipped: bool = False
    chaos_flip: bool = False
    points: int = 0
    near_misses: int = 0
    pickups: List[Pickup] = field(default_factory=list)
    powerup_messages: List[str] = field(default_factory=list)
    level_up: Optional[int] = None
    bounced: bool = False
    shield_used: bool = False
    game_over: bool = False


class Simulation(PhysicsCore):
    """
    The authoritative run engine.
    Inherits integration and bounds handling from PhysicsCore.
    """

    def new_run(self, active: ActiveMode, now: float, rng: Optional[random.Random] = None) -> RunState:
        run = RunState(active=active, rng=rng or random.Random())
        run.gravity = GravityState(sign=active.start_gravity, last_flip=now)
        run.start_time = now
        run.last_frame = now
        run.tunables = self.frame_tunables(run, now)
        for obs in run.obstacles.spawn_initial(run.tunables):
            run.collectibles.spawn_at_gap(obs.x + obs.width / 2, obs.gap_y)
        run.creatures.reset(now)
        run.powerups.reset(now)
        return run

    def start(self, run: RunState, now: float):
        """Restart every clock at the moment the run goes live."""
        run.start_time = now
        run.last_frame = now
        run.gravity.last_flip = now
        run.creatures.reset(now)
        run.powerups.last_spawn_time = now

    def shift_clock(self, run: RunState, delta: float):
        """Move every timestamp forward by `delta` ms (used when resuming from pause)."""
        run.start_time += delta
        run.last_frame += delta
        run.freeze_until += delta
        run.shield_used_at += delta
        run.shield_grace_until += delta
        run.gravity.last_flip += delta
        run.creatures.next_spawn_at += delta
        run.powerups.last_spawn_time += delta
        for effect in run.powerups.active.values():
            effect.started_at += delta
            effect.expires_at += delta
        combo = run.collectibles.combo
        if combo.count:
            combo.last_event += delta
        if combo.message:
            combo.message_at += delta
        run.banners = [Banner(b.text, b.until + delta) for b in run.banners]

    def frame_tunables(self, run: RunState, now: float) -> Tunables:
        d = difficulty(now - run.start_time, run.score, run.level_index, run.level_start_score)
        return tunables(d, run.active.flip_ms, run.active.speed, run.world)

    def apply_tap(self, run: RunState, now: float):
        """Impulse against gravity plus a short hazard freeze."""
        self.tap(run.player, run.gravity.sign)
        freeze_mul = run.tunables.freeze_mul if run.tunables else 1.0
        run.freeze_until = now + run.active.freeze_ms * freeze_mul

    def step(self, run: RunState, now: float) -> FrameEvents:
        events = FrameEvents()
        if run.dead:
            return events
        dt = min(MAX_FRAME_DT, max(0.0, (now - run.last_frame) / 1000))
        run.last_frame = now

        # 1. Tunables
        tun = self.frame_tunables(run, now)
        run.tunables = tun

        # 2. Modifiers
        mods = run.powerups.modifiers(now)
        dt_eff = dt * mods.time_scale
        radius = PLAYER_RADIUS * mods.player_scale
        run.player.radius = radius

        # 3. Gravity
        flip = self._update_gravity(run, now, tun, mods)
        events.flipped = flip is not None
        events.chaos_flip = flip == "chaos"

        # 4. Integrate
        beh = run.active.behaviors
        self.integrate(run.player, run.gravity.sign, dt_eff, now,
                       beh.sine_amp, beh.sine_period_ms, run.world.wind)

        # 5. Motion
        px, py = run.player.x, run.player.y
        frozen = now < run.freeze_until
        dx = 0.0 if frozen else tun.speed * dt_eff
        run.obstacles.advance(dx)
        run.creatures.advance(dx)
        run.obstacles.update_patterns(dt_eff)
        run.creatures.update(dt_eff, CreatureContext(now=now, player_y=py, rng=run.rng, height=self.height))
        run.collectibles.update(dx, dt_eff, px, py, mods.magnet)
        run.powerups.update(dt_eff, frozen, now)
        run.collectibles.combo.update(now)
        events.pickups = run.collectibles.check_collisions(now, px, py, radius)
        events.powerup_messages = run.powerups.check_collisions(now, px, py, radius)

        # 6. Cull and spawn
        run.obstacles.cull()
        for obs in run.obstacles.refill(tun, run.passed_in_level, run.score):
            run.collectibles.spawn_at_gap(obs.x + obs.width / 2, obs.gap_y)
        run.creatures.cull()
        run.creatures.maybe_spawn(now, tun.difficulty, run.level_index + 1)
        run.powerups.try_spawn(now, run.score, tun.speed)

        # 7. Passing
        self._check_passing(run, now, radius, mods, events)

        # 8. Boundary
        side = self.out_of_bounds(run.player.y, radius)
        if side:
            if beh.bouncy:
                self.bounce(run.player, radius, side, BOUNCE_DAMPING)
                events.bounced = True
            elif run.powerups.consume_shield():
                self.push_inside(run.player, radius, side)
                self._shield_absorbed(run, now, events)
            else:
                self._kill(run, side, events)
                return events

        # 9. Hazard collision
        if not mods.ghost and not run.in_shield_grace(now):
            hit = self._first_hit(run, radius, tun.fudge)
            if hit:
                if run.powerups.consume_shield():
                    self._shield_absorbed(run, now, events)
                else:
                    self._kill(run, hit, events)
        return events

    def _update_gravity(self, run: RunState, now: float, tun: Tunables, mods: Modifiers) -> Optional[str]:
        """Returns "scheduled" or "chaos" when gravity flipped this frame."""
        if mods.gravity_locked:
            # hold the timer so the lock does not bank a flip
            run.gravity.last_flip = now
            return None
        if run.active.flip == "none":
            return None
        since = now - run.gravity.last_flip
        beh = run.active.behaviors
        if since >= tun.flip_ms:
            run.gravity.flip(now)
            return "scheduled"
        if beh.chaos and since > beh.chaos_min_ms and run.rng.random() < beh.chaos_chance:
            run.gravity.flip(now)
            return "chaos"
        return None

    def _check_passing(self, run: RunState, now: float, radius: float, mods: Modifiers,
                       events: FrameEvents):
        edge = run.player.x - radius
        py = run.player.y
        for obs in run.obstacles.obstacles:
            if obs.passed or obs.trailing_x >= edge:
                continue
            obs.passed = True
            run.passed_obstacles += 1
            self._score_hazard(run, now, gap_clearance(py, radius, obs), mods, events)
            if run.passed_in_level >= LEVEL_SIZE:
                self._level_up(run, now, events)
        for c in run.creatures.creatures:
            if c.passed or trailing_x(c) >= edge:
                continue
            c.passed = True
            run.dodged_creatures += 1
            self._score_hazard(run, now, clearance(c, py, radius), mods, events)

    def _score_hazard(self, run: RunState, now: float, gap: Optional[float], mods: Modifiers,
                      events: FrameEvents):
        points = 1
        if gap is not None and gap < NEAR_MISS_MARGIN and not mods.ghost:
            points += NEAR_MISS_POINTS
            run.collectibles.near_miss()
            events.near_misses += 1
        combo = run.collectibles.combo
        combo.hit(now)
        if combo.count % COMBO_BONUS_EVERY == 0:
            points += COMBO_BONUS_POINTS
        run.score += points
        events.points += points

    def _level_up(self, run: RunState, now: float, events: FrameEvents):
        run.level_index += 1
        run.level_start_score = run.score
        run.level_start_passed = run.passed_obstacles
        events.level_up = run.level_index
        world = run.world
        run.banners.append(Banner("Level %d: %s" % (run.level_index + 1, world.name), now + BANNER_MS))
        logger.info("Level up: level=%d world=%s score=%d", run.level_index + 1, world.name, run.score)

    def _first_hit(self, run: RunState, radius: float, fudge: float) -> Optional[str]:
        px, py = run.player.x, run.player.y
        for obs in run.obstacles.obstacles:
            if gap_collision(px, py, radius, obs, fudge):
                return "obstacle"
        for c in run.creatures.creatures:
            if run.creatures.collides(c, px, py, radius, fudge):
                return c.kind
        return None

    def _shield_absorbed(self, run: RunState, now: float, events: FrameEvents):
        run.shields_used += 1
        run.shield_used_at = now
        run.shield_grace_until = now + SHIELD_GRACE_MS
        events.shield_used = True

    def _kill(self, run: RunState, cause: str, events: FrameEvents):
        run.dead = True
        run.death_cause = cause
        events.game_over = True
