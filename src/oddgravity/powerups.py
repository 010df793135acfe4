"""
powerups.py: Temporary abilities and the modifier snapshot they feed into physics.
"""

import math
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .constants import (
    ITEM_CULL_X, POWERUP_BASE_CHANCE, POWERUP_COLLECT_RADIUS, POWERUP_MIN_INTERVAL_MS,
    POWERUP_SCORE_BONUS_MAX, POWERUP_SIZE, POWERUP_SPEED_MULT, SCREEN_HEIGHT,
    SCREEN_WIDTH, SHRINK_SCALE, SLOWMO_SCALE,
)
from .data_models import ActiveEffect, Modifiers, Powerup


@dataclass(frozen=True)
class PowerupType:
    id: str
    name: str
    duration_ms: int        # 0 means instant
    rarity: float
    description: str
    color: Tuple[int, int, int]


POWERUP_TYPES = (
    PowerupType("shield", "Shield", 0, 0.3, "Survive one hit", (0, 191, 255)),
    PowerupType("shrink", "Shrink", 5000, 0.2, "Become tiny for 5s", (255, 105, 180)),
    PowerupType("slowmo", "Slow-Mo", 4000, 0.15, "Slow time for 4s", (147, 112, 219)),
    PowerupType("ghost", "Ghost", 3000, 0.1, "Phase through obstacles", (230, 230, 250)),
    PowerupType("magnet", "Magnet", 6000, 0.15, "Attract coins for 6s", (255, 69, 0)),
    PowerupType("gravity_lock", "Gravity Lock", 5000, 0.1, "No forced flips for 5s", (50, 205, 50)),
)
POWERUPS_BY_ID = {p.id: p for p in POWERUP_TYPES}


def select_powerup(rng: random.Random) -> PowerupType:
    total = sum(p.rarity for p in POWERUP_TYPES)
    roll = rng.random() * total
    for p in POWERUP_TYPES:
        roll -= p.rarity
        if roll <= 0:
            return p
    return POWERUP_TYPES[0]


def spawn_chance(score: int) -> float:
    return POWERUP_BASE_CHANCE + min(score / 100, POWERUP_SCORE_BONUS_MAX)


@dataclass
class PowerupManager:
    """Floating pickups plus the effects currently running on the player."""
    rng: random.Random = field(default_factory=random.Random)
    spawned: List[Powerup] = field(default_factory=list)
    active: Dict[str, ActiveEffect] = field(default_factory=dict)
    has_shield: bool = False
    last_spawn_time: float = 0.0
    collected_types: Set[str] = field(default_factory=set)
    collected_count: int = 0

    def reset(self, now: float = 0.0):
        self.spawned = []
        self.active = {}
        self.has_shield = False
        self.last_spawn_time = now
        self.collected_types = set()
        self.collected_count = 0

    def try_spawn(self, now: float, score: int, hazard_speed: float) -> Optional[Powerup]:
        if now - self.last_spawn_time < POWERUP_MIN_INTERVAL_MS:
            return None
        if self.rng.random() >= spawn_chance(score):
            return None
        kind = select_powerup(self.rng)
        p = Powerup(
            kind=kind.id,
            x=SCREEN_WIDTH + POWERUP_SIZE,
            y=self.rng.random() * (SCREEN_HEIGHT - 200) + 100,
            speed=hazard_speed * POWERUP_SPEED_MULT,
            size=POWERUP_SIZE,
            spawn_time=now,
        )
        self.spawned.append(p)
        self.last_spawn_time = now
        return p

    def activate(self, kind: str, now: float) -> str:
        """Start an effect. Collecting one that is already running restarts its timer."""
        ptype = POWERUPS_BY_ID[kind]
        self.collected_types.add(kind)
        self.collected_count += 1
        if ptype.duration_ms == 0:
            self.has_shield = True
            return "Shield Active!"
        self.active[kind] = ActiveEffect(effect_id=kind, started_at=now,
                                         expires_at=now + ptype.duration_ms)
        return "%s!" % ptype.name

    def consume_shield(self) -> bool:
        if self.has_shield:
            self.has_shield = False
            return True
        return False

    def is_active(self, kind: str, now: float) -> bool:
        effect = self.active.get(kind)
        return effect is not None and now < effect.expires_at

    def time_remaining(self, kind: str, now: float) -> float:
        effect = self.active.get(kind)
        if effect is None:
            return 0.0
        return max(0.0, effect.expires_at - now)

    def prune(self, now: float):
        for kind in [k for k, e in self.active.items() if now >= e.expires_at]:
            del self.active[kind]

    def modifiers(self, now: float) -> Modifiers:
        return Modifiers(
            player_scale=SHRINK_SCALE if self.is_active("shrink", now) else 1.0,
            time_scale=SLOWMO_SCALE if self.is_active("slowmo", now) else 1.0,
            ghost=self.is_active("ghost", now),
            magnet=self.is_active("magnet", now),
            gravity_locked=self.is_active("gravity_lock", now),
            shield=self.has_shield,
        )

    def active_list(self, now: float) -> Tuple[Tuple[str, float], ...]:
        out = [(k, self.time_remaining(k, now)) for k in self.active if self.is_active(k, now)]
        if self.has_shield:
            out.insert(0, ("shield", 0.0))
        return tuple(out)

    def update(self, dt: float, frozen: bool, now: float):
        if not frozen:
            for p in self.spawned:
                p.x -= p.speed * dt
        self.spawned = [p for p in self.spawned if p.x > ITEM_CULL_X and not p.collected]
        self.prune(now)

    def check_collisions(self, now: float, px: float, py: float, pr: float) -> List[str]:
        """Collect every pickup touching the player. Returns the activation messages."""
        messages = []
        for p in self.spawned:
            if p.collected:
                continue
            if math.hypot(p.x - px, p.y - py) < pr + POWERUP_COLLECT_RADIUS:
                p.collected = True
                messages.append(self.activate(p.kind, now))
        return messages
