"""
missions.py: Daily missions and permanent achievements.

Daily missions are generated from the calendar date alone, so every player
gets the same four on the same day. Achievements are predicates over
cumulative stats and unlock exactly once.
"""

import datetime
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Set

from .seeding import date_seed, mulberry32

logger = logging.getLogger(__name__)

SCORE = "score"
COINS = "coins"
SURVIVE = "survive"
OBSTACLES = "obstacles"
COMBO = "combo"
POWERUPS = "powerups"
NEAR_MISS = "nearmiss"
NO_POWERUP = "nopowerup"
SINGLE_LIFE = "singlelife"

DAILY_DIFFICULTIES = ("easy", "medium", "medium", "hard")
MODE_VARIANT_CHANCE = 0.3


@dataclass(frozen=True)
class Mission:
    id: str
    type: str
    target: int
    reward: int
    difficulty: str
    desc: str
    mode: Optional[str] = None      # mode_key() of the only mode this counts in


def _template(type_, target, reward, difficulty, desc):
    return Mission(id="", type=type_, target=target, reward=reward, difficulty=difficulty, desc=desc)


MISSION_TEMPLATES = (
    _template(SCORE, 10, 5, "easy", "Score {target} points"),
    _template(COINS, 10, 5, "easy", "Collect {target} coins"),
    _template(SURVIVE, 30, 5, "easy", "Survive {target} seconds"),
    _template(OBSTACLES, 15, 5, "easy", "Pass {target} obstacles"),

    _template(SCORE, 30, 15, "medium", "Score {target} points"),
    _template(COINS, 30, 15, "medium", "Collect {target} coins"),
    _template(COMBO, 5, 20, "medium", "Achieve {target}x combo"),
    _template(SURVIVE, 60, 15, "medium", "Survive {target} seconds"),
    _template(POWERUPS, 3, 15, "medium", "Collect {target} powerups"),
    _template(NEAR_MISS, 5, 20, "medium", "Get {target} near misses"),

    _template(SCORE, 50, 30, "hard", "Score {target} points"),
    _template(COMBO, 10, 40, "hard", "Achieve {target}x combo"),
    _template(SURVIVE, 120, 35, "hard", "Survive {target} seconds"),
    _template(NO_POWERUP, 30, 50, "hard", "Score {target} without powerups"),

    _template(SCORE, 100, 75, "expert", "Score {target} points"),
    _template(COMBO, 15, 80, "expert", "Achieve {target}x combo"),
    _template(COINS, 100, 60, "expert", "Collect {target} coins"),
)


@dataclass(frozen=True)
class ModeVariant:
    mode: str
    label: str
    target_mult: float
    reward_mult: float


MODE_VARIANTS = (
    ModeVariant("chaotic", "Chaotic", 0.7, 1.5),
    ModeVariant("bouncy", "Bouncy", 0.8, 1.3),
    ModeVariant("inverted", "Inverted", 0.9, 1.2),
    ModeVariant("flux", "Flux", 0.8, 1.4),
    ModeVariant("pulse", "Pulse", 0.6, 1.6),
)


def generate_daily_missions(day: Optional[datetime.date] = None) -> List[Mission]:
    """The day's missions: one easy, two medium, one hard. Same date, same list."""
    seed = date_seed(day)
    rng = mulberry32(seed)
    missions = []
    for i, diff in enumerate(DAILY_DIFFICULTIES):
        pool = [m for m in MISSION_TEMPLATES if m.difficulty == diff]
        template = pool[int(rng() * len(pool))]
        mission = replace(template, id="daily_%d_%d" % (seed, i))
        variant_roll = rng()
        variant = MODE_VARIANTS[int(rng() * len(MODE_VARIANTS))]
        if diff != "easy" and variant_roll < MODE_VARIANT_CHANCE:
            target = max(1, int(mission.target * variant.target_mult))
            mission = replace(
                mission,
                mode=variant.mode,
                target=target,
                reward=int(mission.reward * variant.reward_mult),
                desc=template.desc.format(target=target) + " in %s mode" % variant.label,
            )
        else:
            mission = replace(mission, desc=template.desc.format(target=mission.target))
        missions.append(mission)
    return missions


@dataclass
class RunProgress:
    """Per-run metrics that missions are checked against."""
    mode: str = ""
    score: int = 0
    coins: int = 0
    max_combo: int = 0
    time: float = 0.0
    obstacles: int = 0
    powerups: int = 0
    near_misses: int = 0
    used_powerup: bool = False
    used_shield: bool = False


def mission_value(mission: Mission, p: RunProgress) -> float:
    if mission.type in (SCORE, NO_POWERUP, SINGLE_LIFE):
        return p.score
    return {
        COINS: p.coins,
        SURVIVE: int(p.time),
        OBSTACLES: p.obstacles,
        COMBO: p.max_combo,
        POWERUPS: p.powerups,
        NEAR_MISS: p.near_misses,
    }.get(mission.type, 0)


def mission_complete(mission: Mission, p: RunProgress) -> bool:
    if mission.mode and mission.mode != p.mode:
        return False
    if mission.type == NO_POWERUP and p.used_powerup:
        return False
    if mission.type == SINGLE_LIFE and p.used_shield:
        return False
    return mission_value(mission, p) >= mission.target


@dataclass
class MissionTracker:
    completed_today: Set[str] = field(default_factory=set)
    last_daily_date: Optional[int] = None
    active: List[Mission] = field(default_factory=list)
    progress: RunProgress = field(default_factory=RunProgress)

    def refresh(self, today: Optional[datetime.date] = None) -> bool:
        """Load the day's missions. Returns True when the date rolled over."""
        seed = date_seed(today)
        rolled = self.last_daily_date != seed
        if rolled:
            self.completed_today.clear()
            self.last_daily_date = seed
        self.active = [m for m in generate_daily_missions(today) if m.id not in self.completed_today]
        return rolled

    def start_run(self, mode: str):
        self.progress = RunProgress(mode=mode)

    def update_progress(self, **metrics):
        for key, value in metrics.items():
            if not hasattr(self.progress, key):
                raise AttributeError("unknown mission metric %r" % key)
            setattr(self.progress, key, value)

    def check_completions(self) -> List[Mission]:
        done = []
        for mission in self.active:
            if mission.id in self.completed_today:
                continue
            if mission_complete(mission, self.progress):
                self.completed_today.add(mission.id)
                done.append(mission)
        if done:
            self.active = [m for m in self.active if m.id not in self.completed_today]
            logger.info("Missions completed: %s", ", ".join(m.id for m in done))
        return done

    def mission_progress(self) -> List[Dict]:
        out = []
        for m in self.active:
            current = mission_value(m, self.progress)
            out.append({"mission": m, "current": current, "progress": min(1.0, current / m.target)})
        return out

    def to_dict(self) -> dict:
        return {"completedToday": sorted(self.completed_today), "lastDailyDate": self.last_daily_date}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "MissionTracker":
        if not isinstance(data, dict):
            return cls()
        completed = data.get("completedToday") or []
        last = data.get("lastDailyDate")
        if not isinstance(completed, list) or not (last is None or isinstance(last, int)):
            logger.warning("Discarding corrupt missions blob")
            return cls()
        return cls(completed_today={str(c) for c in completed}, last_daily_date=last)


# ---------------- Achievements ----------------

@dataclass
class AchievementStats:
    high_score: int = 0
    total_coins: int = 0
    games_played: int = 0
    max_combo: int = 0
    max_near_misses: int = 0
    mode_high_scores: Dict[str, int] = field(default_factory=dict)
    modes_played: Set[str] = field(default_factory=set)
    powerups_collected: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    desc: str
    reward: int
    check: Callable[[AchievementStats], bool]


def _mode_at_least(mode: str, score: int):
    return lambda s: s.mode_high_scores.get(mode, 0) >= score


ACHIEVEMENTS = (
    Achievement("score_25", "Getting Started", "Score 25 points", 10, lambda s: s.high_score >= 25),
    Achievement("score_50", "Warming Up", "Score 50 points", 25, lambda s: s.high_score >= 50),
    Achievement("score_100", "Century", "Score 100 points", 50, lambda s: s.high_score >= 100),
    Achievement("score_200", "Double Century", "Score 200 points", 100, lambda s: s.high_score >= 200),

    Achievement("coins_100", "Coin Collector", "Collect 100 total coins", 20, lambda s: s.total_coins >= 100),
    Achievement("coins_500", "Treasure Hunter", "Collect 500 total coins", 50, lambda s: s.total_coins >= 500),
    Achievement("coins_1000", "Rich!", "Collect 1000 total coins", 100, lambda s: s.total_coins >= 1000),

    Achievement("games_10", "Regular", "Play 10 games", 15, lambda s: s.games_played >= 10),
    Achievement("games_50", "Dedicated", "Play 50 games", 40, lambda s: s.games_played >= 50),
    Achievement("games_100", "Addicted", "Play 100 games", 75, lambda s: s.games_played >= 100),

    Achievement("combo_5", "Combo Starter", "Get a 5x combo", 15, lambda s: s.max_combo >= 5),
    Achievement("combo_10", "Combo Master", "Get a 10x combo", 35, lambda s: s.max_combo >= 10),
    Achievement("combo_15", "Combo Legend", "Get a 15x combo", 75, lambda s: s.max_combo >= 15),

    Achievement("chaos_50", "Chaos Controller", "Score 50 in Chaotic mode", 50, _mode_at_least("chaotic", 50)),
    Achievement("bouncy_100", "Bouncy Master", "Score 100 in Bouncy mode", 60, _mode_at_least("bouncy", 100)),
    Achievement("inverted_75", "Upside Down", "Score 75 in Inverted mode", 55, _mode_at_least("inverted", 75)),

    Achievement("near_miss_10", "Daredevil", "Get 10 near misses in one game", 40,
                lambda s: s.max_near_misses >= 10),
    Achievement("powerup_all", "Power Collector", "Collect every powerup type", 50,
                lambda s: len(s.powerups_collected) >= 6),
    Achievement("all_modes", "Mode Explorer", "Play every game mode", 30, lambda s: len(s.modes_played) >= 7),
)


@dataclass(frozen=True)
class RunResult:
    score: int
    coins: int
    mode: str
    max_combo: int
    near_misses: int
    powerups_used: frozenset = frozenset()


@dataclass
class AchievementTracker:
    unlocked: Set[str] = field(default_factory=set)
    stats: AchievementStats = field(default_factory=AchievementStats)

    def record_run(self, result: RunResult):
        s = self.stats
        s.games_played += 1
        s.total_coins += result.coins
        s.high_score = max(s.high_score, result.score)
        s.max_combo = max(s.max_combo, result.max_combo)
        s.max_near_misses = max(s.max_near_misses, result.near_misses)
        s.modes_played.add(result.mode)
        s.mode_high_scores[result.mode] = max(s.mode_high_scores.get(result.mode, 0), result.score)
        s.powerups_collected.update(result.powerups_used)

    def check(self) -> List[Achievement]:
        fresh = []
        for a in ACHIEVEMENTS:
            if a.id in self.unlocked:
                continue
            if a.check(self.stats):
                self.unlocked.add(a.id)
                fresh.append(a)
        if fresh:
            logger.info("Achievements unlocked: %s", ", ".join(a.id for a in fresh))
        return fresh

    def to_dict(self) -> dict:
        s = self.stats
        return {
            "unlocked": sorted(self.unlocked),
            "stats": {
                "highScore": s.high_score,
                "totalCoins": s.total_coins,
                "gamesPlayed": s.games_played,
                "maxCombo": s.max_combo,
                "maxNearMisses": s.max_near_misses,
                "modeHighScores": dict(s.mode_high_scores),
                "modesPlayed": sorted(s.modes_played),
                "powerupsCollected": sorted(s.powerups_collected),
            },
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "AchievementTracker":
        if not isinstance(data, dict):
            return cls()
        try:
            st = data.get("stats") or {}
            stats = AchievementStats(
                high_score=int(st.get("highScore", 0)),
                total_coins=int(st.get("totalCoins", 0)),
                games_played=int(st.get("gamesPlayed", 0)),
                max_combo=int(st.get("maxCombo", 0)),
                max_near_misses=int(st.get("maxNearMisses", 0)),
                mode_high_scores={str(k): int(v) for k, v in (st.get("modeHighScores") or {}).items()},
                modes_played=set(st.get("modesPlayed") or []),
                powerups_collected=set(st.get("powerupsCollected") or []),
            )
            return cls(unlocked=set(data.get("unlocked") or []), stats=stats)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Discarding corrupt achievements blob: %s", e)
            return cls()
