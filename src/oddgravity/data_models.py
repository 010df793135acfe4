"""
data_models.py: Data structures for the simulation state and its read-only views.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .constants import PLAYER_RADIUS, PLAYER_X, RESPAWN_Y


class GamePhase(str, Enum):
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    GAMEOVER = "gameover"


@dataclass
class Player:
    """The player body. Only the vertical axis moves."""
    y: float = RESPAWN_Y
    vy: float = 0.0
    x: float = PLAYER_X
    radius: float = PLAYER_RADIUS


@dataclass
class GravityState:
    sign: int = 1
    last_flip: float = 0.0
    flips: int = 0

    def flip(self, now: float):
        self.sign = -self.sign
        self.last_flip = now
        self.flips += 1


@dataclass
class GapObstacle:
    """A bar with a vertical passage. Geometry is fixed at creation."""
    x: float
    gap_y: float
    gap_h: float
    width: float
    shape: str = "pillar"           # cosmetic landmark tag
    pattern: str = "static"         # static | sine | zigzag
    base_y: float = 0.0
    phase: float = 0.0
    drift_dir: int = 1
    passed: bool = False

    @property
    def gap_top(self) -> float:
        return self.gap_y - self.gap_h / 2

    @property
    def gap_bottom(self) -> float:
        return self.gap_y + self.gap_h / 2

    @property
    def trailing_x(self) -> float:
        return self.x + self.width


@dataclass
class Creature:
    """A freeform hazard. Per-kind motion state lives in `state`."""
    kind: str
    x: float
    y: float
    phase: float = 0.0
    created_at: float = 0.0
    passed: bool = False
    state: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Collectible:
    kind: str
    value: int
    size: float
    x: float
    y: float
    float_phase: float = 0.0
    collected: bool = False


@dataclass
class Powerup:
    kind: str
    x: float
    y: float
    speed: float
    size: float
    spawn_time: float = 0.0
    collected: bool = False


@dataclass
class ActiveEffect:
    effect_id: str
    started_at: float
    expires_at: float


@dataclass(frozen=True)
class Modifiers:
    """Per-frame snapshot of everything powerups change in the simulation."""
    player_scale: float = 1.0
    time_scale: float = 1.0
    ghost: bool = False
    magnet: bool = False
    gravity_locked: bool = False
    shield: bool = False


@dataclass(frozen=True)
class DailyConfig:
    seed: str = "classic"
    mode_name: str = "Odd Gravity"
    gravity_flip_every_ms: float = 3000
    obstacle_speed: float = 3
    freeze_duration_ms: float = 550

    @classmethod
    def from_dict(cls, data: dict) -> "DailyConfig":
        return cls(
            seed=str(data.get("seed", cls.seed)),
            mode_name=data.get("modeName") or cls.mode_name,
            gravity_flip_every_ms=float(data.get("gravityFlipEveryMs", cls.gravity_flip_every_ms)),
            obstacle_speed=float(data.get("obstacleSpeed", cls.obstacle_speed)),
            freeze_duration_ms=float(data.get("freezeDurationMs", cls.freeze_duration_ms)),
        )


@dataclass(frozen=True)
class ScoreEntry:
    player_id: str
    score: int
    mode_name: str
    ts: float = 0.0

    def to_payload(self) -> dict:
        return {"playerId": self.player_id, "score": self.score, "modeName": self.mode_name}


# ----------------- Render model (read-only, handed to the renderer) -----------------

@dataclass(frozen=True)
class DrawCommand:
    """A renderer-agnostic primitive: rect, circle, ellipse, polygon or line."""
    shape: str
    points: Tuple[float, ...]
    color: Tuple[int, int, int]
    alpha: float = 1.0
    width: int = 0


@dataclass(frozen=True)
class PlayerView:
    x: float
    y: float
    radius: float
    skin: str
    trail: str
    shielded: bool
    ghost: bool


@dataclass(frozen=True)
class HazardView:
    kind: str
    x: float
    y: float
    commands: Tuple[DrawCommand, ...]


@dataclass(frozen=True)
class ItemView:
    kind: str
    x: float
    y: float
    size: float


@dataclass(frozen=True)
class Banner:
    text: str
    until: float


@dataclass(frozen=True)
class HudView:
    score: int
    combo: int
    multiplier: int
    level: int
    world: str
    difficulty_pct: int
    gravity_sign: int
    ms_to_flip: float
    coins: int
    player_level: int
    xp_progress: float
    mode_name: str
    active_effects: Tuple[Tuple[str, float], ...]
    sync_status: Optional[str] = None


@dataclass(frozen=True)
class RenderModel:
    phase: GamePhase
    now: float
    frozen: bool
    background: str
    player: PlayerView
    hazards: Tuple[HazardView, ...]
    collectibles: Tuple[ItemView, ...]
    powerups: Tuple[ItemView, ...]
    hud: HudView
    banners: Tuple[Banner, ...]
