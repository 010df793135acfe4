"""
collectibles.py: Coins, gems and the combo streak that multiplies them.
"""

import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .constants import (
    CLUSTER_SIZE_MAX, CLUSTER_SIZE_MIN, CLUSTER_SPREAD, COLLECT_RADIUS,
    COLLECTIBLE_SPAWN_CHANCE, COMBO_MESSAGE_MS, COMBO_WINDOW_MS, ITEM_CULL_X,
    MAGNET_RADIUS, MAGNET_SPEED, MAX_MULTIPLIER, NEAR_MISS_COIN_BONUS,
)
from .data_models import Collectible


@dataclass(frozen=True)
class CollectibleType:
    id: str
    name: str
    value: int
    size: float
    rarity: float


COLLECTIBLE_TYPES = (
    CollectibleType("coin", "Coin", value=1, size=18, rarity=0.7),
    CollectibleType("silver", "Silver Coin", value=3, size=20, rarity=0.2),
    CollectibleType("gem", "Gem", value=10, size=22, rarity=0.08),
    CollectibleType("star", "Star", value=5, size=24, rarity=0.02),
)

# (streak, message) pairs shown once when the streak hits them.
COMBO_MILESTONES = (
    (3, "Nice!"),
    (5, "Great!"),
    (8, "Amazing!"),
    (12, "INCREDIBLE!"),
    (20, "ON FIRE!"),
)


def select_type(rng: random.Random) -> CollectibleType:
    total = sum(t.rarity for t in COLLECTIBLE_TYPES)
    roll = rng.random() * total
    for t in COLLECTIBLE_TYPES:
        roll -= t.rarity
        if roll <= 0:
            return t
    return COLLECTIBLE_TYPES[0]


def multiplier_for(count: int) -> int:
    """Every two steps of streak add one to the multiplier, up to the cap."""
    return max(1, min(1 + count // 2, MAX_MULTIPLIER))


@dataclass
class ComboTracker:
    """Streak of scoring events that decays after COMBO_WINDOW_MS of idling."""
    count: int = 0
    multiplier: int = 1
    last_event: float = 0.0
    max_count: int = 0
    message: Optional[str] = None
    message_at: float = 0.0

    def hit(self, now: float) -> int:
        if self.count and now - self.last_event > COMBO_WINDOW_MS:
            self.count = 0
        self.count += 1
        self.last_event = now
        self.multiplier = multiplier_for(self.count)
        self.max_count = max(self.max_count, self.count)
        for threshold, text in COMBO_MILESTONES:
            if self.count == threshold:
                self.message = text
                self.message_at = now
                break
        return self.multiplier

    def update(self, now: float):
        if self.count > 0 and now - self.last_event > COMBO_WINDOW_MS:
            self.count = 0
            self.multiplier = 1
        if self.message and now - self.message_at > COMBO_MESSAGE_MS:
            self.message = None

    def time_remaining(self, now: float) -> float:
        if self.count == 0:
            return 0.0
        return max(0.0, COMBO_WINDOW_MS - (now - self.last_event))


def cluster_positions(pattern: str, count: int, cx: float, cy: float) -> List[Tuple[float, float]]:
    spread = CLUSTER_SPREAD
    if pattern == "line":
        return [(cx + (i - count / 2) * spread, cy) for i in range(count)]
    if pattern == "column":
        return [(cx, cy + (i - count / 2) * spread * 0.8) for i in range(count)]
    if pattern == "arc":
        out = []
        for i in range(count):
            angle = (i / count) * math.pi - math.pi / 2
            out.append((cx + math.cos(angle) * spread * 1.5, cy + math.sin(angle) * spread))
        return out
    diamond = ((0, -1), (-1, 0), (1, 0), (0, 1), (0, 0))
    return [(cx + dx * spread, cy + dy * spread) for dx, dy in diamond[:count]]


def pick_pattern(rng: random.Random) -> str:
    roll = rng.random()
    if roll < 0.3:
        return "line"
    if roll < 0.6:
        return "column"
    if roll < 0.8:
        return "arc"
    return "diamond"


@dataclass
class Pickup:
    """One collection event, as reported back to the engine."""
    kind: str
    value: int
    multiplier: int
    x: float
    y: float


@dataclass
class CollectibleField:
    rng: random.Random = field(default_factory=random.Random)
    combo: ComboTracker = field(default_factory=ComboTracker)
    items: List[Collectible] = field(default_factory=list)
    session_coins: int = 0
    collected_count: int = 0
    near_misses: int = 0

    def spawn_at_gap(self, cx: float, cy: float) -> List[Collectible]:
        if self.rng.random() >= COLLECTIBLE_SPAWN_CHANCE:
            return []
        count = self.rng.randint(CLUSTER_SIZE_MIN, CLUSTER_SIZE_MAX)
        created = []
        for x, y in cluster_positions(pick_pattern(self.rng), count, cx, cy):
            t = select_type(self.rng)
            created.append(Collectible(kind=t.id, value=t.value, size=t.size, x=x, y=y,
                                       float_phase=self.rng.random() * math.pi * 2))
        self.items.extend(created)
        return created

    def update(self, dx: float, dt: float, px: float, py: float, magnet: bool):
        """Scroll with the hazards by `dx`, then apply the magnet pull."""
        for c in self.items:
            c.x -= dx
            if magnet and not c.collected:
                ox = px - c.x
                oy = py - c.y
                dist = math.hypot(ox, oy)
                if 0 < dist < MAGNET_RADIUS:
                    force = MAGNET_SPEED * dt * (1 - dist / MAGNET_RADIUS)
                    c.x += ox / dist * force
                    c.y += oy / dist * force
        self.items = [c for c in self.items if c.x > ITEM_CULL_X and not c.collected]

    def check_collisions(self, now: float, px: float, py: float, pr: float) -> List[Pickup]:
        picked = []
        for c in self.items:
            if c.collected:
                continue
            if math.hypot(c.x - px, c.y - py) < pr + COLLECT_RADIUS:
                c.collected = True
                picked.append(self.collect(c, now))
        return picked

    def collect(self, item: Collectible, now: float) -> Pickup:
        mult = self.combo.hit(now)
        value = item.value * mult
        self.session_coins += value
        self.collected_count += 1
        return Pickup(kind=item.kind, value=value, multiplier=mult, x=item.x, y=item.y)

    def near_miss(self) -> int:
        self.near_misses += 1
        self.session_coins += NEAR_MISS_COIN_BONUS
        return NEAR_MISS_COIN_BONUS
