"""
game.py: The game state machine.

    ready -> playing <-> paused -> gameover -> ready

Game owns exactly one RunState at a time plus the long-lived ledgers
(progression, missions, achievements, best scores). The ledgers are loaded
once at construction and saved at game over and on shop actions, never from
the per-frame path.
"""

import datetime
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .api_client import ScoreSubmitter
from .constants import (
    BANNER_MS, BEST_BANNER_MS, COMBO_MESSAGE_MS, DEFAULT_MODE_NAME,
    SCREEN_HEIGHT, XP_BONUS_DAILY,
)
from .data_models import (
    Banner, DailyConfig, DrawCommand, GamePhase, HazardView, HudView, ItemView, PlayerView,
    RenderModel, ScoreEntry,
)
from .engine import FrameEvents, RunState, Simulation
from .missions import AchievementTracker, Mission, MissionTracker, RunResult
from .modes import MODE_PRESETS, ActiveMode, apply_mode, mode_key
from .progression import LevelUpResult, ProgressionLedger, PurchaseResult, game_xp
from .services import FeedbackService, Preferences
from .storage import (
    ACHIEVEMENTS, BEST_SCORES, LAST_MODE, MISSIONS, PROGRESSION, KeyValueStore, MemoryStore,
)

logger = logging.getLogger(__name__)

OBSTACLE_COLOR = (60, 179, 113)


@dataclass
class BestScores:
    all_time: int = 0
    per_seed: Dict[str, int] = field(default_factory=dict)

    def record(self, score: int, seed: str) -> Tuple[bool, bool]:
        """Returns (new all-time best, new best for this seed)."""
        all_time = score > self.all_time
        seed_best = score > self.per_seed.get(seed, 0)
        if all_time:
            self.all_time = score
        if seed_best:
            self.per_seed[seed] = score
        return all_time, seed_best

    def to_dict(self) -> dict:
        return {"allTime": self.all_time, "perSeed": dict(self.per_seed)}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "BestScores":
        if not isinstance(data, dict):
            return cls()
        try:
            return cls(all_time=int(data.get("allTime", 0)),
                       per_seed={str(k): int(v) for k, v in (data.get("perSeed") or {}).items()})
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Discarding corrupt best-score blob: %s", e)
            return cls()


@dataclass
class GameOverReport:
    score: int
    mode_name: str
    cause: Optional[str]
    coins: int
    time_sec: float
    max_combo: int
    near_misses: int
    new_best: bool
    new_seed_best: bool
    xp: LevelUpResult
    missions: List[Mission]
    achievements: List[str]
    bonus_coins: int


class Game:
    def __init__(self, store: Optional[KeyValueStore] = None, feedback: Optional[FeedbackService] = None,
                 submitter: Optional[ScoreSubmitter] = None, daily: Optional[DailyConfig] = None,
                 mode_name: Optional[str] = None, player_id: Optional[str] = None,
                 rng: Optional[random.Random] = None, today: Optional[datetime.date] = None,
                 now: float = 0.0):
        self.store = store or MemoryStore()
        self.feedback = feedback or FeedbackService(Preferences())
        self.submitter = submitter
        self.daily = daily
        self.player_id = player_id
        self.rng = rng or random.Random()
        self.sim = Simulation()

        self.progression = ProgressionLedger.from_dict(self.store.load(PROGRESSION))
        self.achievements = AchievementTracker.from_dict(self.store.load(ACHIEVEMENTS))
        self.best = BestScores.from_dict(self.store.load(BEST_SCORES))
        self.missions = MissionTracker.from_dict(self.store.load(MISSIONS))

        # None means the real date, read again on every reset
        self.today = today
        wanted = mode_name or self.store.load(LAST_MODE) or (daily.mode_name if daily else DEFAULT_MODE_NAME)
        self.mode_name = wanted if self._playable(wanted) else DEFAULT_MODE_NAME

        self.phase = GamePhase.READY
        self.paused_at: Optional[float] = None
        self.banners: List[Banner] = []
        self.report: Optional[GameOverReport] = None
        self.active: ActiveMode = None
        self.run: RunState = None
        self.reset(now)

    @property
    def seed(self) -> str:
        return self.daily.seed if self.daily else "classic"

    def _playable(self, mode_name) -> bool:
        return (isinstance(mode_name, str) and mode_name in MODE_PRESETS
                and self.progression.is_mode_unlocked(mode_key(mode_name)))

    # ---------- transitions ----------

    def reset(self, now: float):
        """Fresh run in the ready state. Only the mission list is touched, on a new day."""
        if self.missions.refresh(self.today):
            self.store.save(MISSIONS, self.missions.to_dict())
        self.active = apply_mode(self.daily, MODE_PRESETS[self.mode_name])
        self.run = self.sim.new_run(self.active, now, self.rng)
        self.phase = GamePhase.READY
        self.paused_at = None
        self.banners = []
        self.report = None

    def press(self, now: float) -> bool:
        """The one button."""
        if self.phase == GamePhase.READY:
            self.sim.start(self.run, now)
            self.missions.start_run(mode_key(self.active.mode_name))
            self.phase = GamePhase.PLAYING
            logger.debug("Run started: mode=%s", self.active.mode_name)
            return True
        if self.phase == GamePhase.PLAYING:
            self.sim.apply_tap(self.run, now)
            self.feedback.cue("tap")
            return True
        if self.phase == GamePhase.GAMEOVER:
            self.reset(now)
            return True
        return False

    def toggle_pause(self, now: float) -> bool:
        if self.phase == GamePhase.PLAYING:
            self.phase = GamePhase.PAUSED
            self.paused_at = now
            return True
        if self.phase == GamePhase.PAUSED:
            self.sim.shift_clock(self.run, now - self.paused_at)
            self.paused_at = None
            self.phase = GamePhase.PLAYING
            return True
        return False

    def set_visible(self, visible: bool, now: float):
        """Hidden window: pause a live run. Becoming visible never auto-resumes."""
        if not visible and self.phase == GamePhase.PLAYING:
            self.toggle_pause(now)

    def select_mode(self, mode_name: str, now: float) -> bool:
        if self.phase not in (GamePhase.READY, GamePhase.GAMEOVER):
            return False
        if not self._playable(mode_name):
            return False
        self.mode_name = mode_name
        self.store.save(LAST_MODE, mode_name)
        self.reset(now)
        return True

    # ---------- frame ----------

    def update(self, now: float) -> Optional[FrameEvents]:
        if self.phase != GamePhase.PLAYING:
            return None
        run = self.run
        events = self.sim.step(run, now)
        self._cue_events(events)
        self.missions.update_progress(
            score=run.score,
            coins=run.collectibles.session_coins,
            max_combo=run.collectibles.combo.max_count,
            time=(now - run.start_time) / 1000,
            obstacles=run.passed_obstacles,
            powerups=run.powerups.collected_count,
            near_misses=run.collectibles.near_misses,
            used_powerup=run.powerups.collected_count > 0,
            used_shield=run.shields_used > 0,
        )
        if events.game_over:
            self.game_over(now)
        return events

    def _cue_events(self, events: FrameEvents):
        if events.chaos_flip:
            self.feedback.cue("chaos_flip")
        elif events.flipped:
            self.feedback.cue("flip")
        if events.points:
            self.feedback.cue("pass")
        if events.near_misses:
            self.feedback.cue("near_miss")
        if events.pickups:
            self.feedback.cue("coin")
        if events.powerup_messages:
            self.feedback.cue("powerup")
        if events.shield_used:
            self.feedback.cue("shield")
        if events.level_up is not None:
            self.feedback.cue("level_up")

    def game_over(self, now: float) -> Optional[GameOverReport]:
        """End the run and settle the ledgers. A second call does nothing."""
        if self.phase not in (GamePhase.PLAYING, GamePhase.PAUSED):
            return None
        run = self.run
        run.dead = True
        self.phase = GamePhase.GAMEOVER
        self.paused_at = None

        score = run.score
        mkey = mode_key(self.active.mode_name)
        time_sec = max(0.0, (now - run.start_time) / 1000)
        coins = run.collectibles.session_coins
        max_combo = run.collectibles.combo.max_count
        near_misses = run.collectibles.near_misses

        new_best, new_seed_best = self.best.record(score, self.seed)
        if new_best:
            self.banners.append(Banner("New Best! %d" % score, now + BEST_BANNER_MS))
            self.feedback.cue("best")
        elif new_seed_best:
            self.banners.append(Banner("Daily Best! %d" % score, now + BEST_BANNER_MS))

        self.progression.add_coins(coins)

        completed = self.missions.check_completions()
        bonus = sum(m.reward for m in completed)

        xp = game_xp(score, coins, run.passed_obstacles, run.powerups.collected_count)
        xp += XP_BONUS_DAILY * len(completed)
        level = self.progression.add_xp(xp)
        if level.leveled_up:
            self.banners.append(Banner("Player Level %d!" % level.new_level, now + BANNER_MS))

        self.achievements.record_run(RunResult(
            score=score, coins=coins, mode=mkey, max_combo=max_combo,
            near_misses=near_misses, powerups_used=frozenset(run.powerups.collected_types)))
        fresh = self.achievements.check()
        bonus += sum(a.reward for a in fresh)
        for a in fresh:
            self.banners.append(Banner("Achievement: %s" % a.name, now + BANNER_MS))
        self.progression.add_coins(bonus)

        self.progression.update_game_stats(score, coins + bonus, time_sec, max_combo)
        self._save_ledgers()

        if self.submitter and self.player_id:
            self.submitter.submit(ScoreEntry(player_id=self.player_id, score=score,
                                             mode_name=self.active.mode_name, ts=time.time() * 1000))

        self.feedback.cue("game_over")
        self.report = GameOverReport(
            score=score, mode_name=self.active.mode_name, cause=run.death_cause, coins=coins,
            time_sec=time_sec, max_combo=max_combo, near_misses=near_misses, new_best=new_best,
            new_seed_best=new_seed_best, xp=level, missions=completed,
            achievements=[a.id for a in fresh], bonus_coins=bonus)
        logger.info("Game over: score=%d mode=%s cause=%s coins=%d xp=%d",
                    score, self.active.mode_name, run.death_cause, coins, xp)
        return self.report

    def _save_ledgers(self):
        self.store.save(PROGRESSION, self.progression.to_dict())
        self.store.save(MISSIONS, self.missions.to_dict())
        self.store.save(ACHIEVEMENTS, self.achievements.to_dict())
        self.store.save(BEST_SCORES, self.best.to_dict())

    # ---------- shop ----------

    def purchase(self, category: str, item_id: str) -> PurchaseResult:
        buy = {
            "skin": self.progression.purchase_skin,
            "trail": self.progression.purchase_trail,
            "mode": self.progression.purchase_mode,
        }[category]
        result = buy(item_id)
        if result.success:
            self.store.save(PROGRESSION, self.progression.to_dict())
        return result

    def equip(self, category: str, item_id: str) -> bool:
        equip = self.progression.equip_skin if category == "skin" else self.progression.equip_trail
        ok = equip(item_id)
        if ok:
            self.store.save(PROGRESSION, self.progression.to_dict())
        return ok

    # ---------- render ----------

    def render_model(self, now: float) -> RenderModel:
        run = self.run
        mods = run.powerups.modifiers(now)
        player = PlayerView(
            x=run.player.x, y=run.player.y, radius=run.player.radius,
            skin=self.progression.equipped_skin, trail=self.progression.equipped_trail,
            shielded=mods.shield, ghost=mods.ghost,
        )
        hazards = [HazardView("obstacle", o.x, o.gap_y, (
            DrawCommand("rect", (o.x, 0, o.width, o.gap_top), OBSTACLE_COLOR),
            DrawCommand("rect", (o.x, o.gap_bottom, o.width, SCREEN_HEIGHT - o.gap_bottom), OBSTACLE_COLOR),
        )) for o in run.obstacles.obstacles]
        hazards.extend(HazardView(c.kind, c.x, c.y, run.creatures.render(c)) for c in run.creatures.creatures)

        combo = run.collectibles.combo
        tun = run.tunables
        hud = HudView(
            score=run.score,
            combo=combo.count,
            multiplier=combo.multiplier,
            level=run.level_index + 1,
            world=run.world.name,
            difficulty_pct=round(100 * tun.difficulty) if tun else 0,
            gravity_sign=run.gravity.sign,
            ms_to_flip=run.ms_to_flip(now),
            coins=self.progression.coins + run.collectibles.session_coins,
            player_level=self.progression.level,
            xp_progress=self.progression.level_progress(),
            mode_name=self.active.mode_name,
            active_effects=run.powerups.active_list(now),
            sync_status=self.submitter.status if self.submitter else None,
        )

        banners = [b for b in run.banners + self.banners if b.until > now]
        if combo.message:
            banners.append(Banner(combo.message, combo.message_at + COMBO_MESSAGE_MS))

        return RenderModel(
            phase=self.phase,
            now=now,
            frozen=now < run.freeze_until,
            background=run.world.bg if run.level_index else self.active.bg,
            player=player,
            hazards=tuple(hazards),
            collectibles=tuple(ItemView(c.kind, c.x, c.y, c.size) for c in run.collectibles.items),
            powerups=tuple(ItemView(p.kind, p.x, p.y, p.size) for p in run.powerups.spawned),
            hud=hud,
            banners=tuple(banners),
        )
