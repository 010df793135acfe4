"""
creatures.py: Freeform hazards that unlock as the run levels up.

Each kind is a CreatureKind record: spawn parameters plus the functions that
create, update, collide and render one creature. The table CREATURE_KINDS is
the only dispatch point, so adding a kind means adding one entry.
"""

import math
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .constants import (
    CREATURE_SPAWN_EASY_MS, CREATURE_SPAWN_HARD_MS,
    CREATURE_SPAWN_X, DIVE_RETURN_MS, LIGHTNING_STRIKE_MS, SCREEN_HEIGHT,
)
from .data_models import Creature, DrawCommand
from .difficulty import lerp
from .physics_core import circle_collision, rect_collision


@dataclass
class CreatureContext:
    """What a creature may look at while it updates."""
    now: float
    player_y: float
    rng: random.Random
    height: float = SCREEN_HEIGHT


@dataclass(frozen=True)
class CreatureKind:
    name: str
    unlock_level: int
    weight: float
    create: Callable[[Creature, random.Random], None]
    update: Callable[[Creature, float, CreatureContext], None]
    collides: Callable[[Creature, float, float, float, float], bool]
    render: Callable[[Creature], Tuple[DrawCommand, ...]]
    half_width: Callable[[Creature], float]
    half_height: Optional[Callable[[Creature], float]] = None


def _vary(rng: random.Random, lo: float = 0.8, span: float = 0.4) -> float:
    return lo + rng.random() * span


# ---------- bubble: floats upward, wobbles sideways ----------

def _bubble_create(c: Creature, rng: random.Random):
    c.state.update(radius=25 + rng.random() * 10, float_speed=-40 * _vary(rng),
                   wobble_amp=15, wobble_off=0.0, alpha=0.7 + rng.random() * 0.3)


def _bubble_update(c: Creature, dt: float, ctx: CreatureContext):
    s = c.state
    c.y += s["float_speed"] * dt
    off = math.sin(ctx.now / 500 + c.phase) * s["wobble_amp"]
    c.x += off - s["wobble_off"]
    s["wobble_off"] = off
    if c.y < -s["radius"] * 2:
        c.y = ctx.height + s["radius"]


def _bubble_collides(c, px, py, pr, fudge):
    r = c.state["radius"]
    return circle_collision(px, py, pr, c.x, c.y, max(r - fudge, r * 0.5))


def _bubble_render(c):
    r = c.state["radius"]
    return (DrawCommand("circle", (c.x, c.y, r), (150, 220, 255), alpha=c.state["alpha"] * 0.6),
            DrawCommand("circle", (c.x - r * 0.3, c.y - r * 0.3, r * 0.2), (255, 255, 255), alpha=0.8))


# ---------- fish: swims up and down ----------

def _fish_create(c: Creature, rng: random.Random):
    c.state.update(width=50 * _vary(rng), height=25 * _vary(rng), swim_amp=30,
                   swim_freq=2 * _vary(rng), direction=1 if rng.random() > 0.5 else -1,
                   color=rng.choice(((59, 130, 246), (6, 182, 212), (249, 115, 22), (234, 179, 8))))


def _fish_update(c: Creature, dt: float, ctx: CreatureContext):
    s = c.state
    c.y += math.sin(ctx.now / 1000 * s["swim_freq"] + c.phase) * s["swim_amp"] * dt


def _fish_collides(c, px, py, pr, fudge):
    w, h = c.state["width"], c.state["height"]
    return rect_collision(px, py, pr, c.x - w / 2, c.y - h / 2, w, h, fudge)


def _fish_render(c):
    w, h = c.state["width"], c.state["height"]
    return (DrawCommand("ellipse", (c.x - w / 2, c.y - h / 2, w, h), c.state["color"]),
            DrawCommand("polygon", (c.x + w / 2 - 5, c.y, c.x + w / 2 + 15, c.y - h / 2,
                                    c.x + w / 2 + 15, c.y + h / 2), c.state["color"]))


# ---------- pterodactyl: dives at the player, then returns ----------

def _ptero_create(c: Creature, rng: random.Random):
    c.state.update(wingspan=70 * _vary(rng), flap_phase=rng.random() * math.pi * 2,
                   flap_speed=8, diving=False, dive_y=0.0, origin_y=c.y, return_ms=0.0)


def _ptero_update(c: Creature, dt: float, ctx: CreatureContext):
    s = c.state
    s["flap_phase"] += s["flap_speed"] * dt
    if s["return_ms"] > 0:
        s["return_ms"] -= dt * 1000
        if s["return_ms"] <= 0:
            c.y = s["origin_y"]
        return
    if not s["diving"] and ctx.rng.random() < 0.002:
        s["diving"] = True
        s["dive_y"] = ctx.player_y
    if s["diving"]:
        c.y += (s["dive_y"] - c.y) * 2 * dt
        if abs(c.y - s["dive_y"]) < 20:
            s["diving"] = False
            s["return_ms"] = DIVE_RETURN_MS


def _ptero_collides(c, px, py, pr, fudge):
    return circle_collision(px, py, pr, c.x, c.y, c.state["wingspan"] / 3)


def _ptero_render(c):
    ws = c.state["wingspan"] / 2
    lift = math.sin(c.state["flap_phase"]) * 15
    return (DrawCommand("ellipse", (c.x - 20, c.y - 12, 40, 24), (101, 163, 13)),
            DrawCommand("polygon", (c.x, c.y, c.x + ws, c.y - 30 - lift, c.x + ws + 10, c.y), (132, 204, 22)),
            DrawCommand("polygon", (c.x, c.y, c.x + ws, c.y + 30 + lift, c.x + ws + 10, c.y), (132, 204, 22)))


# ---------- shark: occasional lunge forward ----------

def _shark_create(c: Creature, rng: random.Random):
    c.state.update(length=80, height=35, lunging=False, lunge_timer=0.0, mouth_open=0.0)


def _shark_update(c: Creature, dt: float, ctx: CreatureContext):
    s = c.state
    s["mouth_open"] = math.sin(ctx.now / 200) * 0.5 + 0.5
    if not s["lunging"] and ctx.rng.random() < 0.003:
        s["lunging"] = True
        s["lunge_timer"] = 0.3
    if s["lunging"]:
        s["lunge_timer"] -= dt
        c.x -= 150 * dt
        if s["lunge_timer"] <= 0:
            s["lunging"] = False


def _shark_collides(c, px, py, pr, fudge):
    ln, h = c.state["length"], c.state["height"]
    return rect_collision(px, py, pr, c.x - ln / 2, c.y - h / 2, ln, h, fudge)


def _shark_render(c):
    ln, h = c.state["length"], c.state["height"]
    return (DrawCommand("ellipse", (c.x - ln / 2, c.y - h / 2, ln, h), (100, 116, 139)),
            DrawCommand("polygon", (c.x - 5, c.y - h / 3, c.x, c.y - h - 10, c.x + 15, c.y - h / 3), (51, 65, 85)))


# ---------- dragon: body plus a periodic fire breath ----------

def _dragon_create(c: Creature, rng: random.Random):
    c.state.update(size=60, fire_length=100, breathing=False, breath_timer=rng.random() * 3000,
                   wing_phase=0.0, color=rng.choice(((220, 38, 38), (124, 58, 237), (5, 150, 105))))


def _dragon_update(c: Creature, dt: float, ctx: CreatureContext):
    s = c.state
    s["wing_phase"] += 6 * dt
    s["breath_timer"] -= dt * 1000
    if s["breath_timer"] <= 0:
        s["breathing"] = not s["breathing"]
        s["breath_timer"] = 1500 if s["breathing"] else 2000 + ctx.rng.random() * 1000


def _dragon_collides(c, px, py, pr, fudge):
    s = c.state
    if circle_collision(px, py, pr, c.x, c.y, s["size"] / 2):
        return True
    if s["breathing"]:
        fire_start = c.x - s["size"] / 2
        fire_end = fire_start - s["fire_length"]
        if fire_end < px < fire_start and abs(py - c.y) < 25:
            return True
    return False


def _dragon_render(c):
    s = c.state
    cmds = [DrawCommand("ellipse", (c.x - s["size"] / 2, c.y - s["size"] / 3, s["size"], s["size"] * 2 / 3), s["color"])]
    if s["breathing"]:
        x0 = c.x - s["size"] / 2
        cmds.append(DrawCommand("polygon", (x0, c.y - 10, x0 - s["fire_length"], c.y - 25,
                                            x0 - s["fire_length"], c.y + 25, x0, c.y + 10),
                                (255, 120, 0), alpha=0.8))
    return tuple(cmds)


# ---------- asteroid: rotating rock ----------

def _asteroid_create(c: Creature, rng: random.Random):
    n = 6 + rng.randrange(4)
    points = [((i / n) * math.pi * 2, 0.7 + rng.random() * 0.3) for i in range(n)]
    c.state.update(radius=30 * _vary(rng, 0.7, 0.6), rotation=0.0,
                   rotate_speed=2 * (1 if rng.random() > 0.5 else -1), points=points)


def _asteroid_update(c: Creature, dt: float, ctx: CreatureContext):
    c.state["rotation"] += c.state["rotate_speed"] * dt


def _asteroid_collides(c, px, py, pr, fudge):
    r = c.state["radius"]
    return circle_collision(px, py, pr, c.x, c.y, max(r - fudge, r * 0.5))


def _asteroid_render(c):
    s = c.state
    pts = []
    for angle, k in s["points"]:
        a = angle + s["rotation"]
        pts.extend((c.x + math.cos(a) * s["radius"] * k, c.y + math.sin(a) * s["radius"] * k))
    return (DrawCommand("polygon", tuple(pts), (87, 83, 78)),)


# ---------- ghost: only solid while mostly visible ----------

def _ghost_create(c: Creature, rng: random.Random):
    c.state.update(size=45 * _vary(rng), alpha=1.0, fade_dir=-1, fade_speed=1.5)


def _ghost_update(c: Creature, dt: float, ctx: CreatureContext):
    s = c.state
    s["alpha"] += s["fade_dir"] * s["fade_speed"] * dt
    if s["alpha"] <= 0.2:
        s["fade_dir"] = 1
    if s["alpha"] >= 1:
        s["fade_dir"] = -1


def _ghost_collides(c, px, py, pr, fudge):
    if c.state["alpha"] > 0.5:
        return circle_collision(px, py, pr, c.x, c.y, c.state["size"] / 2)
    return False


def _ghost_render(c):
    size = c.state["size"]
    return (DrawCommand("circle", (c.x, c.y, size / 2.5), (230, 230, 255), alpha=max(0.0, min(1.0, c.state["alpha"]))),)


# ---------- lightning: a full-height strike for a short window ----------

def _lightning_create(c: Creature, rng: random.Random):
    c.state.update(width=30, striking=False, strike_ms=0.0,
                   strike_timer=rng.random() * 2000, bolts=[])


def _lightning_bolts(x: float, height: float, rng: random.Random) -> List[float]:
    pts = [x, 0.0]
    y = 0.0
    while y < height:
        y += 20 + rng.random() * 40
        pts.extend((x + (rng.random() - 0.5) * 30, y))
    return pts


def _lightning_update(c: Creature, dt: float, ctx: CreatureContext):
    s = c.state
    if s["striking"]:
        s["strike_ms"] -= dt * 1000
        if s["strike_ms"] <= 0:
            s["striking"] = False
    s["strike_timer"] -= dt * 1000
    if s["strike_timer"] <= 0:
        s["striking"] = True
        s["strike_ms"] = LIGHTNING_STRIKE_MS
        s["bolts"] = _lightning_bolts(c.x, ctx.height, ctx.rng)
        s["strike_timer"] = 2000 + ctx.rng.random() * 1500


def _lightning_collides(c, px, py, pr, fudge):
    if c.state["striking"]:
        return abs(px - c.x) < c.state["width"] / 2
    return False


def _lightning_render(c):
    s = c.state
    if not s["striking"]:
        return (DrawCommand("rect", (c.x - s["width"], 0, s["width"] * 2, SCREEN_HEIGHT), (255, 255, 100), alpha=0.1),)
    return (DrawCommand("line", tuple(s["bolts"]), (254, 240, 138), width=4),)


# ---------- ufo: hovering craft with a tractor beam below ----------

def _ufo_create(c: Creature, rng: random.Random):
    c.state.update(width=55, height=25, beam_active=False, beam_timer=0.0, wobble=0.0)


def _ufo_update(c: Creature, dt: float, ctx: CreatureContext):
    s = c.state
    s["wobble"] = math.sin(ctx.now / 300) * 5
    s["beam_timer"] -= dt * 1000
    if s["beam_timer"] <= 0:
        s["beam_active"] = not s["beam_active"]
        s["beam_timer"] = 1000 if s["beam_active"] else 2000 + ctx.rng.random() * 1000


def _ufo_collides(c, px, py, pr, fudge):
    s = c.state
    w, h = s["width"], s["height"]
    if rect_collision(px, py, pr, c.x - w / 2, c.y - h / 2 + s["wobble"], w, h, fudge):
        return True
    return s["beam_active"] and c.x - 20 < px < c.x + 20 and py > c.y


def _ufo_render(c):
    s = c.state
    y = c.y + s["wobble"]
    cmds = []
    if s["beam_active"]:
        cmds.append(DrawCommand("polygon", (c.x - 15, y + s["height"] / 2, c.x - 40, y + 200,
                                            c.x + 40, y + 200, c.x + 15, y + s["height"] / 2),
                                (100, 255, 100), alpha=0.4))
    cmds.append(DrawCommand("ellipse", (c.x - s["width"] / 2, y - s["height"] / 2, s["width"], s["height"]), (107, 114, 128)))
    return tuple(cmds)


CREATURE_KINDS: Dict[str, CreatureKind] = {
    "bubble": CreatureKind("Bubble", 1, 40, _bubble_create, _bubble_update, _bubble_collides, _bubble_render,
                           lambda c: c.state["radius"], lambda c: c.state["radius"]),
    "fish": CreatureKind("Fish", 1, 40, _fish_create, _fish_update, _fish_collides, _fish_render,
                         lambda c: c.state["width"] / 2, lambda c: c.state["height"] / 2),
    "pterodactyl": CreatureKind("Pterodactyl", 2, 35, _ptero_create, _ptero_update, _ptero_collides, _ptero_render,
                                lambda c: c.state["wingspan"] / 2, lambda c: c.state["wingspan"] / 3),
    "shark": CreatureKind("Shark", 3, 30, _shark_create, _shark_update, _shark_collides, _shark_render,
                          lambda c: c.state["length"] / 2, lambda c: c.state["height"] / 2),
    "dragon": CreatureKind("Dragon", 4, 25, _dragon_create, _dragon_update, _dragon_collides, _dragon_render,
                           lambda c: c.state["size"] / 2, lambda c: c.state["size"] / 2),
    "asteroid": CreatureKind("Asteroid", 5, 30, _asteroid_create, _asteroid_update, _asteroid_collides,
                             _asteroid_render, lambda c: c.state["radius"], lambda c: c.state["radius"]),
    "ghost": CreatureKind("Ghost", 6, 25, _ghost_create, _ghost_update, _ghost_collides, _ghost_render,
                          lambda c: c.state["size"] / 2, lambda c: c.state["size"] / 2),
    "lightning": CreatureKind("Lightning", 7, 20, _lightning_create, _lightning_update, _lightning_collides,
                              _lightning_render, lambda c: c.state["width"] / 2),
    "ufo": CreatureKind("UFO", 8, 20, _ufo_create, _ufo_update, _ufo_collides, _ufo_render,
                        lambda c: c.state["width"] / 2, lambda c: c.state["height"] / 2),
}


def available_kinds(level: int) -> List[str]:
    return [key for key, kind in CREATURE_KINDS.items() if level >= kind.unlock_level]


def pick_kind(level: int, rng: random.Random) -> Optional[str]:
    """Weighted draw over unlocked kinds, or None when nothing is unlocked yet."""
    eligible = available_kinds(level)
    if not eligible:
        return None
    total = sum(CREATURE_KINDS[k].weight for k in eligible)
    roll = rng.random() * total
    for key in eligible:
        roll -= CREATURE_KINDS[key].weight
        if roll <= 0:
            return key
    return eligible[0]


def create_creature(kind: str, x: float, y: float, now: float, rng: random.Random) -> Creature:
    c = Creature(kind=kind, x=x, y=y, phase=rng.random() * math.pi * 2, created_at=now)
    CREATURE_KINDS[kind].create(c, rng)
    return c


def spawn_interval(d: float) -> float:
    return max(lerp(CREATURE_SPAWN_EASY_MS, CREATURE_SPAWN_HARD_MS, d), CREATURE_SPAWN_HARD_MS)


def trailing_x(c: Creature) -> float:
    return c.x + CREATURE_KINDS[c.kind].half_width(c)


def clearance(c: Creature, py: float, pr: float) -> Optional[float]:
    """Vertical gap between the player and the creature body, if the kind has one."""
    half_height = CREATURE_KINDS[c.kind].half_height
    if half_height is None:
        return None
    return abs(py - c.y) - pr - half_height(c)


@dataclass
class CreatureField:
    rng: random.Random = field(default_factory=random.Random)
    creatures: List[Creature] = field(default_factory=list)
    next_spawn_at: float = 0.0

    def reset(self, now: float):
        self.creatures = []
        self.next_spawn_at = now + CREATURE_SPAWN_EASY_MS

    def maybe_spawn(self, now: float, d: float, level: int) -> Optional[Creature]:
        if now < self.next_spawn_at:
            return None
        self.next_spawn_at = now + spawn_interval(d)
        kind = pick_kind(level, self.rng)
        if kind is None:
            return None
        y = self.rng.random() * (SCREEN_HEIGHT - 100) + 50
        creature = create_creature(kind, CREATURE_SPAWN_X, y, now, self.rng)
        self.creatures.append(creature)
        return creature

    def advance(self, dx: float):
        for c in self.creatures:
            c.x -= dx

    def update(self, dt: float, ctx: CreatureContext):
        for c in self.creatures:
            CREATURE_KINDS[c.kind].update(c, dt, ctx)

    def cull(self) -> int:
        before = len(self.creatures)
        self.creatures = [c for c in self.creatures if trailing_x(c) >= 0]
        return before - len(self.creatures)

    def collides(self, c: Creature, px: float, py: float, pr: float, fudge: float) -> bool:
        return CREATURE_KINDS[c.kind].collides(c, px, py, pr, fudge)

    def render(self, c: Creature) -> Tuple[DrawCommand, ...]:
        return CREATURE_KINDS[c.kind].render(c)
