import dataclasses
import datetime
import random

import pytest
from conftest import FixedRng, clear_hazards
from fakes import FakeApi

from oddgravity.api_client import ScoreSubmitter
from oddgravity.constants import DEFAULT_MODE_NAME
from oddgravity.data_models import DailyConfig, GamePhase
from oddgravity.game import BestScores, Game
from oddgravity.missions import generate_daily_missions
from oddgravity.services import FeedbackService, Preferences, RecordingSink
from oddgravity.storage import BEST_SCORES, LAST_MODE, MISSIONS, PROGRESSION, MemoryStore

DAY = datetime.date(2026, 10, 19)


def make_game(store=None, **kw):
    sink = RecordingSink()
    kw.setdefault("mode_name", "Classic")
    game = Game(store=store or MemoryStore(), feedback=FeedbackService(Preferences(), sink),
                rng=random.Random(3), today=DAY, **kw)
    return game, sink


def crash(game, now, score=0):
    game.run.score = score
    game.run.player.y = 0.0
    game.run.player.vy = 0.0
    return game.update(now)


def test_ready_press_starts_run():
    game, _ = make_game()
    assert game.phase == GamePhase.READY
    assert game.update(16) is None
    assert game.press(100)
    assert game.phase == GamePhase.PLAYING
    assert game.run.start_time == 100


def test_press_while_playing_taps():
    game, sink = make_game()
    game.press(0)
    game.run.player.vy = 0.0
    game.press(10)
    assert game.run.player.vy < 0
    assert sink.beeps[0][0] == 520
    assert sink.vibrations == [(10,)]


def test_pause_and_resume_shift_the_clock():
    game, _ = make_game()
    game.press(0)
    assert game.toggle_pause(200)
    assert game.phase == GamePhase.PAUSED
    assert not game.press(300)
    assert game.update(400) is None
    assert game.toggle_pause(1200)
    assert game.phase == GamePhase.PLAYING
    assert game.run.start_time == 1000
    assert game.run.last_frame == 1000


def test_pause_does_nothing_when_not_playing():
    game, _ = make_game()
    assert not game.toggle_pause(0)
    assert game.phase == GamePhase.READY


def test_hidden_window_pauses_and_stays_paused():
    game, _ = make_game()
    game.press(0)
    game.set_visible(False, 50)
    assert game.phase == GamePhase.PAUSED
    game.set_visible(True, 80)
    assert game.phase == GamePhase.PAUSED


def test_game_over_settles_once():
    game, sink = make_game()
    game.press(0)
    events = crash(game, 16, score=30)
    assert events.game_over
    assert game.phase == GamePhase.GAMEOVER
    report = game.report
    assert report.score == 30
    assert report.cause == "top"
    assert report.new_best
    assert report.xp.xp_gained >= 300
    assert any(b.text == "New Best! 30" for b in game.banners)
    assert game.game_over(20) is None
    assert game.progression.stats.total_games == 1
    assert game.achievements.stats.games_played == 1


def test_game_over_saves_ledgers():
    store = MemoryStore()
    game, _ = make_game(store)
    game.press(0)
    crash(game, 16, score=12)
    assert store.load(BEST_SCORES)["allTime"] == 12
    assert store.load(BEST_SCORES)["perSeed"] == {"classic": 12}
    assert store.load(PROGRESSION)["stats"]["totalGames"] == 1

    again, _ = make_game(store)
    assert again.best.all_time == 12
    assert again.progression.xp == game.progression.xp


def test_press_after_game_over_resets():
    game, _ = make_game()
    game.press(0)
    crash(game, 16)
    old_run = game.run
    assert game.press(500)
    assert game.phase == GamePhase.READY
    assert game.run is not old_run
    assert game.report is None


def test_second_run_is_not_a_new_best():
    game, _ = make_game()
    game.press(0)
    crash(game, 16, score=20)
    game.press(100)
    game.press(200)
    crash(game, 216, score=5)
    assert not game.report.new_best
    assert game.best.all_time == 20


def test_select_mode_rules():
    store = MemoryStore()
    game, _ = make_game(store)
    assert not game.select_mode("Bouncy", 0)
    assert not game.select_mode("Nope", 0)
    assert game.select_mode("Odd Gravity", 0)
    assert store.load(LAST_MODE) == "Odd Gravity"
    game.press(0)
    assert not game.select_mode("Classic", 10)


def test_purchase_unlocks_mode():
    store = MemoryStore()
    game, _ = make_game(store)
    game.progression.coins = 150
    assert game.purchase("mode", "bouncy").success
    assert store.load(PROGRESSION)["coins"] == 50
    assert game.select_mode("Bouncy", 0)
    assert game.active.behaviors.bouncy


def test_equip_saves():
    store = MemoryStore()
    game, _ = make_game(store)
    game.progression.coins = 100
    assert game.purchase("skin", "blue").success
    assert game.equip("skin", "blue")
    assert store.load(PROGRESSION)["equippedSkin"] == "blue"
    assert not game.equip("trail", "fire")


def test_last_mode_is_restored():
    store = MemoryStore()
    store.save(LAST_MODE, "Odd Gravity")
    game = Game(store=store, rng=random.Random(1), today=DAY)
    assert game.mode_name == "Odd Gravity"


@pytest.mark.parametrize("blob", [["x"], {"mode": "Classic"}, 7, "Nope"])
def test_corrupt_last_mode_falls_back_to_default(blob):
    store = MemoryStore()
    store.save(LAST_MODE, blob)
    game = Game(store=store, rng=random.Random(1), today=DAY)
    assert game.mode_name == DEFAULT_MODE_NAME
    assert game.phase == GamePhase.READY


def test_locked_last_mode_falls_back_to_default():
    store = MemoryStore()
    store.save(LAST_MODE, "Bouncy")
    game = Game(store=store, rng=random.Random(1), today=DAY)
    assert game.mode_name == DEFAULT_MODE_NAME


def test_locked_mode_argument_falls_back_to_default():
    game, _ = make_game(mode_name="Chaotic")
    assert game.mode_name == DEFAULT_MODE_NAME
    assert not game.active.behaviors.chaos


def test_locked_daily_mode_falls_back_to_default():
    game, _ = make_game(mode_name=None, daily=DailyConfig(seed="20261019", mode_name="Bouncy"))
    assert game.mode_name == DEFAULT_MODE_NAME
    unlocked, _ = make_game(mode_name=None, daily=DailyConfig(seed="20261019", mode_name="Classic"))
    assert unlocked.mode_name == "Classic"


def test_corrupt_progression_blob_loads_defaults():
    store = MemoryStore()
    store.put_raw(PROGRESSION, "{not json")
    game, _ = make_game(store)
    assert game.progression.coins == 0
    assert game.progression.level == 1


def test_score_is_submitted_at_game_over():
    api = FakeApi()
    store = MemoryStore()
    submitter = ScoreSubmitter(api, store, background=False)
    game, _ = make_game(store, submitter=submitter, player_id="p1")
    game.press(0)
    crash(game, 16, score=7)
    assert [(e.player_id, e.score, e.mode_name) for e in api.sent] == [("p1", 7, "Classic")]
    assert submitter.status == "sent"


def test_failed_submit_is_queued():
    api = FakeApi(down=True)
    store = MemoryStore()
    submitter = ScoreSubmitter(api, store, background=False)
    game, _ = make_game(store, submitter=submitter, player_id="p1")
    game.press(0)
    crash(game, 16, score=7)
    assert submitter.status == "queued"
    assert submitter.pending() == 1
    assert game.render_model(20).hud.sync_status == "queued"


def test_render_model_snapshot():
    game, _ = make_game()
    model = game.render_model(0)
    assert model.phase == GamePhase.READY
    assert model.hud.score == 0
    assert model.hud.level == 1
    assert model.hud.world == "Clouds"
    assert model.hud.mode_name == "Classic"
    assert len(model.hazards) >= 9
    assert model.player.skin == "default"


def test_chaos_flip_plays_its_own_cue():
    game, sink = make_game()
    game.progression.unlocked_modes.add("chaotic")
    assert game.select_mode("Chaotic", 0)
    game.press(0)
    clear_hazards(game.run)
    game.run.rng = FixedRng(0.0)
    game.run.player.y = 320.0
    events = game.update(500)
    assert events.chaos_flip
    freqs = [b[0] for b in sink.beeps]
    assert 460 in freqs
    assert 360 not in freqs


def test_missions_roll_over_on_reset_after_midnight():
    store = MemoryStore()
    game, _ = make_game(store)
    assert game.missions.last_daily_date == 20261019
    game.today = DAY + datetime.timedelta(days=1)
    game.press(0)
    crash(game, 16)
    game.press(500)
    assert game.missions.last_daily_date == 20261020
    assert store.load(MISSIONS)["lastDailyDate"] == 20261020
    expected = [m.id for m in generate_daily_missions(game.today)]
    assert [m.id for m in game.missions.active] == expected


def test_hud_difficulty_percent_is_unscaled():
    game, _ = make_game()
    assert game.render_model(0).hud.difficulty_pct == 0
    game.run.tunables = dataclasses.replace(game.run.tunables, difficulty=1.5)
    assert game.render_model(0).hud.difficulty_pct == 150


def test_best_scores_record():
    best = BestScores()
    assert best.record(10, "a") == (True, True)
    assert best.record(5, "b") == (False, True)
    assert best.record(5, "b") == (False, False)
    assert BestScores.from_dict(best.to_dict()) == best


@pytest.mark.parametrize("blob", [None, "x", {"allTime": "high"}])
def test_best_scores_bad_blob(blob):
    assert BestScores.from_dict(blob) == BestScores()
