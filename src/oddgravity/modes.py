"""
modes.py: Mode presets, rotating worlds, and the daily + mode merge.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .constants import (
    DEFAULT_FLIP_MS, DEFAULT_FREEZE_MS, DEFAULT_MODE_NAME, DEFAULT_OBSTACLE_SPEED,
)
from .data_models import DailyConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Behaviors:
    sine_amp: float = 0.0
    sine_period_ms: float = 1200
    bouncy: bool = False
    chaos: bool = False
    chaos_min_ms: float = 600
    chaos_chance: float = 0.0


@dataclass(frozen=True)
class ModePreset:
    name: str
    desc: str
    bg: str = "sky"
    start_gravity: int = 1
    flip: str = "scheduled"         # scheduled | none
    speed_mul: float = 1.0
    freeze_mul: float = 1.0
    flip_ms_mul: float = 1.0
    behaviors: Behaviors = field(default_factory=Behaviors)


@dataclass(frozen=True)
class ActiveMode:
    """The daily baseline with a mode preset applied. Built once per run."""
    mode_name: str
    bg: str
    start_gravity: int
    flip: str
    speed: float                    # obstacle speed in daily units
    freeze_ms: float
    flip_ms: float
    behaviors: Behaviors


@dataclass(frozen=True)
class World:
    name: str
    bg: str
    gap_bonus: float
    col_mul: float
    wind: float                     # ambient vertical force (pixels/s^2)


MODE_PRESETS: Mapping[str, ModePreset] = MappingProxyType({
    "Classic": ModePreset(
        name="Classic", desc="The original experience. Balanced and clean."),
    "Odd Gravity": ModePreset(
        name="Odd Gravity", desc="Faster flips keep you on your toes!",
        flip_ms_mul=0.7),
    "Inverted": ModePreset(
        name="Inverted", desc="Gravity is reversed. You fall up!",
        bg="space", start_gravity=-1, speed_mul=1.05),
    "Flux": ModePreset(
        name="Flux", desc="The ball waves up and down constantly.",
        bg="tech", speed_mul=0.8, freeze_mul=1.2, flip_ms_mul=1.2,
        behaviors=Behaviors(sine_amp=0.7, sine_period_ms=900)),
    "Pulse": ModePreset(
        name="Pulse", desc="35% faster, 50% shorter freeze.",
        speed_mul=1.35, freeze_mul=0.5, flip_ms_mul=0.75),
    "Chaotic": ModePreset(
        name="Chaotic", desc="Random flips! Gravity changes without warning.",
        bg="cave", speed_mul=0.95, freeze_mul=1.1, flip_ms_mul=2.0,
        behaviors=Behaviors(chaos=True, chaos_min_ms=400, chaos_chance=0.02)),
    "Bouncy": ModePreset(
        name="Bouncy", desc="Bounce off walls. Top and bottom can't kill you.",
        bg="crystal", speed_mul=1.25, freeze_mul=0.75, flip_ms_mul=0.85,
        behaviors=Behaviors(bouncy=True)),
})

WORLDS = (
    World(name="Clouds", bg="sky", gap_bonus=12, col_mul=0.90, wind=0.0),
    World(name="Caverns", bg="cave", gap_bonus=4, col_mul=1.00, wind=0.0),
    World(name="Circuit", bg="tech", gap_bonus=-2, col_mul=1.05, wind=12.0),
    World(name="Nebula", bg="space", gap_bonus=-8, col_mul=1.00, wind=-24.0),
)


def world_for_level(level_index: int) -> World:
    return WORLDS[level_index % len(WORLDS)]


def mode_key(mode_name: str) -> str:
    """'Odd Gravity' -> 'oddgravity'. Used by missions, stats and unlocks."""
    return "".join(mode_name.lower().split())


def apply_mode(daily: Optional[DailyConfig], preset: Optional[ModePreset]) -> ActiveMode:
    """Combine the daily baseline with a preset. Neither input is mutated."""
    p = preset or MODE_PRESETS["Classic"]
    base_speed = daily.obstacle_speed if daily else DEFAULT_OBSTACLE_SPEED
    base_flip = daily.gravity_flip_every_ms if daily else DEFAULT_FLIP_MS
    base_freeze = daily.freeze_duration_ms if daily else DEFAULT_FREEZE_MS

    active = ActiveMode(
        mode_name=p.name or (daily.mode_name if daily else DEFAULT_MODE_NAME),
        bg=p.bg,
        start_gravity=1 if p.start_gravity >= 0 else -1,
        flip=p.flip,
        speed=base_speed * p.speed_mul,
        freeze_ms=base_freeze * p.freeze_mul,
        flip_ms=base_flip * p.flip_ms_mul,
        behaviors=p.behaviors,
    )
    logger.info("Mode applied: %s speed=%.2f freezeMs=%d flipMs=%d",
                active.mode_name, active.speed, round(active.freeze_ms), round(active.flip_ms))
    return active


def get_mode_names():
    return list(MODE_PRESETS.keys())
