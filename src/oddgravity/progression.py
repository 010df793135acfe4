"""
progression.py: Currency, XP levels and unlockable cosmetics.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from .constants import (
    BASE_XP, MAX_LEVEL, XP_MULTIPLIER, XP_PER_COIN, XP_PER_OBSTACLE, XP_PER_POWERUP,
    XP_PER_SCORE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShopItem:
    id: str
    name: str
    cost: int
    color: Tuple[int, int, int] = (255, 255, 255)


PLAYER_SKINS = (
    ShopItem("default", "Classic", 0, (255, 107, 107)),
    ShopItem("blue", "Ocean", 50, (78, 205, 196)),
    ShopItem("gold", "Golden", 100, (255, 215, 0)),
    ShopItem("purple", "Mystic", 150, (155, 89, 182)),
    ShopItem("neon", "Neon", 200, (0, 255, 136)),
    ShopItem("fire", "Fire", 300, (255, 69, 0)),
    ShopItem("ice", "Ice", 300, (0, 191, 255)),
    ShopItem("rainbow", "Rainbow", 500, (255, 0, 255)),
    ShopItem("ghost", "Ghost", 400, (240, 240, 255)),
    ShopItem("pixel", "Pixel", 350, (139, 69, 19)),
)

TRAIL_EFFECTS = (
    ShopItem("none", "None", 0),
    ShopItem("dots", "Dots", 75),
    ShopItem("line", "Line Trail", 100),
    ShopItem("sparkle", "Sparkles", 200, (255, 230, 120)),
    ShopItem("fire", "Fire Trail", 350, (255, 120, 0)),
    ShopItem("ice", "Ice Trail", 350, (150, 220, 255)),
    ShopItem("rainbow", "Rainbow Trail", 500, (255, 0, 255)),
    ShopItem("stars", "Star Trail", 400, (255, 255, 150)),
)

# Keyed by mode_key(); costs in coins.
MODE_UNLOCKS: Dict[str, int] = {
    "classic": 0,
    "oddgravity": 0,
    "bouncy": 100,
    "inverted": 150,
    "flux": 200,
    "pulse": 300,
    "chaotic": 400,
}

# level -> (coins, cosmetic id)
LEVEL_REWARDS: Dict[int, Tuple[int, str]] = {
    5: (50, "blue"),
    10: (100, "dots"),
    15: (150, "purple"),
    20: (200, "sparkle"),
    25: (300, "neon"),
    30: (400, "fire"),
    35: (500, "ice"),
    40: (600, "stars"),
    45: (750, "ghost"),
    50: (1000, "rainbow"),
}

DEFAULT_SKINS = ("default",)
DEFAULT_TRAILS = ("none",)
DEFAULT_MODES = ("classic", "oddgravity")


def _find(items, item_id: str) -> Optional[ShopItem]:
    for item in items:
        if item.id == item_id:
            return item
    return None


def xp_for_level(level: int) -> int:
    """XP needed to go from level - 1 to level."""
    if level <= 1:
        return 0
    return int(BASE_XP * XP_MULTIPLIER ** (level - 2))


def total_xp_for_level(level: int) -> int:
    return sum(xp_for_level(i) for i in range(2, level + 1))


def game_xp(score: int, coins: int, obstacles: int, powerups: int) -> int:
    return (score * XP_PER_SCORE + coins * XP_PER_COIN
            + obstacles * XP_PER_OBSTACLE + powerups * XP_PER_POWERUP)


class PurchaseError(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_OWNED = "already_owned"
    INSUFFICIENT_FUNDS = "insufficient_funds"


@dataclass(frozen=True)
class PurchaseResult:
    success: bool
    item_id: str
    error: Optional[PurchaseError] = None


@dataclass
class LevelUpResult:
    xp_gained: int
    leveled_up: bool = False
    new_level: int = 1
    rewards: List[Tuple[int, int, str]] = field(default_factory=list)   # (level, coins, unlock)


@dataclass
class LifetimeStats:
    total_games: int = 0
    total_score: int = 0
    total_coins: int = 0
    total_time_played_sec: float = 0.0
    high_score: int = 0
    longest_combo: int = 0


@dataclass
class ProgressionLedger:
    coins: int = 0
    xp: int = 0
    level: int = 1
    unlocked_skins: Set[str] = field(default_factory=lambda: set(DEFAULT_SKINS))
    unlocked_trails: Set[str] = field(default_factory=lambda: set(DEFAULT_TRAILS))
    unlocked_modes: Set[str] = field(default_factory=lambda: set(DEFAULT_MODES))
    equipped_skin: str = "default"
    equipped_trail: str = "none"
    stats: LifetimeStats = field(default_factory=LifetimeStats)

    # ---------- currency ----------

    def add_coins(self, amount: int) -> int:
        self.coins += amount
        return self.coins

    def spend_coins(self, amount: int) -> bool:
        if self.coins < amount:
            return False
        self.coins -= amount
        return True

    # ---------- xp ----------

    def add_xp(self, amount: int) -> LevelUpResult:
        self.xp += amount
        result = LevelUpResult(xp_gained=amount, new_level=self.level)
        while self.level < MAX_LEVEL and self.xp >= total_xp_for_level(self.level + 1):
            self.level += 1
            result.leveled_up = True
            result.new_level = self.level
            reward = LEVEL_REWARDS.get(self.level)
            if reward:
                coins, unlock = reward
                self.coins += coins
                if _find(PLAYER_SKINS, unlock):
                    self.unlocked_skins.add(unlock)
                if _find(TRAIL_EFFECTS, unlock):
                    self.unlocked_trails.add(unlock)
                result.rewards.append((self.level, coins, unlock))
        if result.leveled_up:
            logger.info("Player level up: level=%d xp=%d", self.level, self.xp)
        return result

    def level_progress(self) -> float:
        current = total_xp_for_level(self.level)
        needed = total_xp_for_level(self.level + 1) - current
        if needed <= 0 or self.level >= MAX_LEVEL:
            return 1.0
        return (self.xp - current) / needed

    # ---------- shop ----------

    def _purchase(self, item_id: str, cost: Optional[int], owned: Set[str]) -> PurchaseResult:
        if cost is None:
            return PurchaseResult(False, item_id, PurchaseError.NOT_FOUND)
        if item_id in owned:
            return PurchaseResult(False, item_id, PurchaseError.ALREADY_OWNED)
        if not self.spend_coins(cost):
            return PurchaseResult(False, item_id, PurchaseError.INSUFFICIENT_FUNDS)
        owned.add(item_id)
        return PurchaseResult(True, item_id)

    def purchase_skin(self, skin_id: str) -> PurchaseResult:
        item = _find(PLAYER_SKINS, skin_id)
        return self._purchase(skin_id, item.cost if item else None, self.unlocked_skins)

    def purchase_trail(self, trail_id: str) -> PurchaseResult:
        item = _find(TRAIL_EFFECTS, trail_id)
        return self._purchase(trail_id, item.cost if item else None, self.unlocked_trails)

    def purchase_mode(self, mode_id: str) -> PurchaseResult:
        return self._purchase(mode_id, MODE_UNLOCKS.get(mode_id), self.unlocked_modes)

    def equip_skin(self, skin_id: str) -> bool:
        if skin_id not in self.unlocked_skins:
            return False
        self.equipped_skin = skin_id
        return True

    def equip_trail(self, trail_id: str) -> bool:
        if trail_id not in self.unlocked_trails:
            return False
        self.equipped_trail = trail_id
        return True

    def current_skin(self) -> ShopItem:
        return _find(PLAYER_SKINS, self.equipped_skin) or PLAYER_SKINS[0]

    def current_trail(self) -> ShopItem:
        return _find(TRAIL_EFFECTS, self.equipped_trail) or TRAIL_EFFECTS[0]

    def is_mode_unlocked(self, mode_id: str) -> bool:
        return mode_id in self.unlocked_modes

    # ---------- stats ----------

    def update_game_stats(self, score: int, coins: int, time_played_sec: float, combo: int):
        s = self.stats
        s.total_games += 1
        s.total_score += score
        s.total_coins += coins
        s.total_time_played_sec += time_played_sec
        s.high_score = max(s.high_score, score)
        s.longest_combo = max(s.longest_combo, combo)

    # ---------- persistence ----------

    def to_dict(self) -> dict:
        return {
            "coins": self.coins,
            "xp": self.xp,
            "level": self.level,
            "unlockedSkins": sorted(self.unlocked_skins),
            "unlockedTrails": sorted(self.unlocked_trails),
            "unlockedModes": sorted(self.unlocked_modes),
            "equippedSkin": self.equipped_skin,
            "equippedTrail": self.equipped_trail,
            "stats": {
                "totalGames": self.stats.total_games,
                "totalScore": self.stats.total_score,
                "totalCoins": self.stats.total_coins,
                "totalTimePlayedSec": self.stats.total_time_played_sec,
                "highScore": self.stats.high_score,
                "longestCombo": self.stats.longest_combo,
            },
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ProgressionLedger":
        """Rebuild from a saved blob. Anything malformed falls back to the default ledger."""
        if not isinstance(data, dict):
            return cls()
        try:
            stats = data.get("stats") or {}
            return cls(
                coins=int(data.get("coins", 0)),
                xp=int(data.get("xp", 0)),
                level=max(1, min(int(data.get("level", 1)), MAX_LEVEL)),
                unlocked_skins=set(data.get("unlockedSkins") or DEFAULT_SKINS),
                unlocked_trails=set(data.get("unlockedTrails") or DEFAULT_TRAILS),
                unlocked_modes=set(data.get("unlockedModes") or DEFAULT_MODES),
                equipped_skin=str(data.get("equippedSkin", "default")),
                equipped_trail=str(data.get("equippedTrail", "none")),
                stats=LifetimeStats(
                    total_games=int(stats.get("totalGames", 0)),
                    total_score=int(stats.get("totalScore", 0)),
                    total_coins=int(stats.get("totalCoins", 0)),
                    total_time_played_sec=float(stats.get("totalTimePlayedSec", 0)),
                    high_score=int(stats.get("highScore", 0)),
                    longest_combo=int(stats.get("longestCombo", 0)),
                ),
            )
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Discarding corrupt progression blob: %s", e)
            return cls()
