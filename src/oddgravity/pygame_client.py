#!/usr/bin/env python3
"""
pygame_client.py

Pygame window for Odd Gravity: input, frame pacing, rendering of the
RenderModel and the tone generator behind the feedback service.
"""

import argparse
import array
import logging
import math
from typing import Dict, Optional, Sequence

import pygame

from .api_client import ApiClient, ScoreSubmitter, ensure_player_id, fetch_daily
from .constants import API_BASE_URL, LOCAL_DB_FILE, RENDER_FPS, SCREEN_HEIGHT, SCREEN_WIDTH
from .data_models import DrawCommand, GamePhase, RenderModel
from .game import Game
from .loop import EventSource, LoopDriver, ManualScheduler
from .modes import get_mode_names
from .powerups import POWERUPS_BY_ID
from .progression import PLAYER_SKINS
from .services import FeedbackService, FeedbackSink, Preferences
from .storage import PREFS, SqliteStore

logger = logging.getLogger(__name__)

BACKGROUNDS = {
    "sky": (135, 206, 250),
    "cave": (45, 40, 55),
    "tech": (20, 30, 48),
    "space": (10, 10, 30),
    "crystal": (70, 40, 110),
}
ITEM_COLORS = {
    "coin": (255, 215, 0),
    "silver": (200, 200, 210),
    "gem": (80, 220, 255),
    "star": (255, 240, 120),
}
SAMPLE_RATE = 22050


class PygameScheduler(ManualScheduler):
    """Paces frames with a pygame clock and stamps them with pygame ticks."""

    def __init__(self, fps: int = RENDER_FPS):
        super().__init__()
        self.fps = fps
        self.clock = pygame.time.Clock()

    def pump(self) -> int:
        self.clock.tick(self.fps)
        return self.advance(float(pygame.time.get_ticks()))


class PygameSoundSink(FeedbackSink):
    """Synthesises short tones with pygame.mixer. Vibration is a no-op on desktop."""

    def __init__(self):
        self.cache: Dict[tuple, pygame.mixer.Sound] = {}
        self.enabled = pygame.mixer.get_init() is not None

    def _tone(self, freq: float, duration: float, wave: str, gain: float) -> pygame.mixer.Sound:
        key = (freq, duration, wave, gain)
        if key not in self.cache:
            n = int(SAMPLE_RATE * duration)
            samples = array.array("h")
            for i in range(n):
                phase = (i * freq / SAMPLE_RATE) % 1.0
                if wave == "square":
                    v = 1.0 if phase < 0.5 else -1.0
                elif wave == "triangle":
                    v = 4 * abs(phase - 0.5) - 1
                else:
                    v = math.sin(2 * math.pi * phase)
                fade = 1 - i / n
                samples.append(int(v * fade * gain * 10 * 32767))
            self.cache[key] = pygame.mixer.Sound(buffer=samples.tobytes())
        return self.cache[key]

    def beep(self, freq, duration, wave="sine", gain=0.03):
        if self.enabled:
            self._tone(freq, duration, wave, gain).play()

    def vibrate(self, pattern: Sequence[int]):
        pass


class OddGravityClient:
    def __init__(self, api: Optional[ApiClient], db_file: str = LOCAL_DB_FILE, mode_name: Optional[str] = None):
        pygame.mixer.pre_init(SAMPLE_RATE, -16, 1)
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("Odd Gravity")
        self.large_font = pygame.font.Font(None, 40)
        self.font = pygame.font.Font(None, 24)

        self.store = SqliteStore(db_file)
        self.prefs = Preferences.from_dict(self.store.load(PREFS))
        self.feedback = FeedbackService(self.prefs, PygameSoundSink())

        self.api = api
        self.submitter = ScoreSubmitter(api, self.store) if api else None
        daily = fetch_daily(api)
        player_id = ensure_player_id(api, self.store)
        if daily:
            print(f"Daily config: {daily.mode_name} (seed {daily.seed})")
        else:
            print("Offline: using default daily config.")

        now = float(pygame.time.get_ticks())
        self.game = Game(store=self.store, feedback=self.feedback, submitter=self.submitter,
                         daily=daily, mode_name=mode_name, player_id=player_id, now=now)
        self.scheduler = PygameScheduler(RENDER_FPS)
        self.events = EventSource()
        self.driver = LoopDriver(self.game, self.scheduler, self.events, on_render=self._draw)
        self.trail = []

    def run(self):
        """The main client execution loop."""
        if self.submitter:
            self.submitter.start()
            self.submitter.flush(self.game.player_id)

        self.driver.start()
        running = True
        while running:
            for event in pygame.event.get():
                running = self._handle_event(event) and running
            self.scheduler.pump()

        self.driver.stop()
        if self.submitter:
            self.submitter.stop()
        self.store.save(PREFS, self.prefs.to_dict())
        self.store.close()
        pygame.quit()

    def _handle_event(self, event) -> bool:
        now = float(pygame.time.get_ticks())
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                return False
            if event.key in (pygame.K_SPACE, pygame.K_UP):
                self.events.emit("press", now)
            elif event.key == pygame.K_p:
                self.events.emit("pause", now)
            elif event.key == pygame.K_m:
                self._cycle_mode(now)
            elif event.key == pygame.K_a:
                self.prefs.audio = not self.prefs.audio
            elif event.key == pygame.K_v:
                self.prefs.vibrate = not self.prefs.vibrate
        elif event.type == pygame.MOUSEBUTTONDOWN:
            self.events.emit("press", now)
        elif event.type == pygame.WINDOWFOCUSLOST:
            self.events.emit("visibility", False, now)
        elif event.type == pygame.WINDOWFOCUSGAINED:
            self.events.emit("visibility", True, now)
        return True

    def _cycle_mode(self, now: float):
        names = get_mode_names()
        start = names.index(self.game.mode_name)
        for step in range(1, len(names) + 1):
            if self.game.select_mode(names[(start + step) % len(names)], now):
                return

    # ---------- drawing ----------

    def _draw_command(self, cmd: DrawCommand):
        color = cmd.color
        pts = cmd.points
        if cmd.alpha < 1.0:
            layer = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT), pygame.SRCALPHA)
            self._draw_primitive(layer, cmd.shape, pts, (*color, int(255 * max(cmd.alpha, 0))), cmd.width)
            self.screen.blit(layer, (0, 0))
        else:
            self._draw_primitive(self.screen, cmd.shape, pts, color, cmd.width)

    @staticmethod
    def _draw_primitive(surface, shape, pts, color, width):
        if shape == "rect":
            pygame.draw.rect(surface, color, pygame.Rect(pts[0], pts[1], max(pts[2], 0), max(pts[3], 0)), width)
        elif shape == "circle":
            pygame.draw.circle(surface, color, (int(pts[0]), int(pts[1])), max(int(pts[2]), 1), width)
        elif shape == "ellipse":
            pygame.draw.ellipse(surface, color, pygame.Rect(pts[0], pts[1], pts[2], pts[3]), width)
        elif shape == "polygon":
            points = list(zip(pts[0::2], pts[1::2]))
            if len(points) >= 3:
                pygame.draw.polygon(surface, color, points, width)
        elif shape == "line":
            points = list(zip(pts[0::2], pts[1::2]))
            if len(points) >= 2:
                pygame.draw.lines(surface, color, False, points, max(width, 1))

    def _draw(self, model: RenderModel):
        screen = self.screen
        white = (255, 255, 255)
        screen.fill(BACKGROUNDS.get(model.background, BACKGROUNDS["sky"]))

        for hazard in model.hazards:
            for cmd in hazard.commands:
                self._draw_command(cmd)

        for item in model.collectibles:
            pygame.draw.circle(screen, ITEM_COLORS.get(item.kind, white), (int(item.x), int(item.y)), int(item.size / 2))
        for p in model.powerups:
            ptype = POWERUPS_BY_ID[p.kind]
            pygame.draw.circle(screen, ptype.color, (int(p.x), int(p.y)), int(p.size / 2))
            label = self.font.render(ptype.name[0], True, white)
            screen.blit(label, (p.x - label.get_width() // 2, p.y - label.get_height() // 2))

        # Player and trail
        pv = model.player
        if pv.trail != "none":
            self.trail = (self.trail + [(pv.x, pv.y)])[-12:]
            for i, (tx, ty) in enumerate(self.trail[:-1]):
                pygame.draw.circle(screen, (230, 230, 230), (int(tx - (len(self.trail) - i) * 4), int(ty)), 2)
        skin = next((s for s in PLAYER_SKINS if s.id == pv.skin), PLAYER_SKINS[0])
        if pv.shielded:
            pygame.draw.circle(screen, (0, 191, 255), (int(pv.x), int(pv.y)), int(pv.radius + 6), 2)
        color = tuple(c // 2 for c in skin.color) if pv.ghost else skin.color
        pygame.draw.circle(screen, color, (int(pv.x), int(pv.y)), int(pv.radius))

        # HUD
        hud = model.hud
        score_text = self.large_font.render(f"{hud.score}", True, white)
        screen.blit(score_text, (SCREEN_WIDTH // 2 - score_text.get_width() // 2, 20))
        lines = [
            f"{hud.mode_name} | Lv {hud.level} {hud.world} | {hud.difficulty_pct}%",
            f"Gravity {'v' if hud.gravity_sign > 0 else '^'} flip in {hud.ms_to_flip / 1000:.1f}s",
            f"Coins {hud.coins}  Player Lv {hud.player_level} ({int(hud.xp_progress * 100)}%)",
        ]
        if hud.combo > 1:
            lines.append(f"Combo {hud.combo} x{hud.multiplier}")
        for kind, remaining in hud.active_effects:
            lines.append(f"{kind} {remaining / 1000:.1f}s" if remaining else kind)
        if hud.sync_status:
            lines.append(f"Score {hud.sync_status}")
        for i, line in enumerate(lines):
            surf = self.font.render(line, True, (220, 220, 220))
            screen.blit(surf, (10, 60 + i * 20))

        for i, banner in enumerate(model.banners):
            surf = self.large_font.render(banner.text, True, (255, 215, 0))
            screen.blit(surf, (SCREEN_WIDTH // 2 - surf.get_width() // 2, SCREEN_HEIGHT // 3 + i * 36))

        prompt = {
            GamePhase.READY: "SPACE / CLICK to start",
            GamePhase.PAUSED: "Paused - P to resume",
            GamePhase.GAMEOVER: "Game over - SPACE to retry",
        }.get(model.phase)
        if prompt:
            surf = self.large_font.render(prompt, True, white)
            screen.blit(surf, (SCREEN_WIDTH // 2 - surf.get_width() // 2, SCREEN_HEIGHT // 2 - 20))
        if model.phase == GamePhase.GAMEOVER and self.game.report:
            r = self.game.report
            summary = self.font.render(f"+{r.coins + r.bonus_coins} coins  +{r.xp.xp_gained} XP", True, white)
            screen.blit(summary, (SCREEN_WIDTH // 2 - summary.get_width() // 2, SCREEN_HEIGHT // 2 + 20))

        instr = self.font.render("Space = Tap | P = Pause | M = Mode | Esc = Quit", True, (200, 200, 200))
        screen.blit(instr, (10, SCREEN_HEIGHT - 30))
        pygame.display.flip()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Odd Gravity")
    parser.add_argument("--api", default=API_BASE_URL, help="backend base URL")
    parser.add_argument("--offline", action="store_true", help="skip the backend entirely")
    parser.add_argument("--db", default=LOCAL_DB_FILE)
    parser.add_argument("--mode", default=None, choices=get_mode_names())
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    api = None if args.offline else ApiClient(args.api)
    client = OddGravityClient(api, db_file=args.db, mode_name=args.mode)
    client.run()


if __name__ == "__main__":
    main()
