from conftest import FixedRng, clear_hazards, gap_at, make_run

from oddgravity.constants import COMBO_MESSAGE_MS, LEVEL_SIZE, PLAYER_RADIUS, SHIELD_GRACE_MS
from oddgravity.data_models import Banner


def test_top_boundary_without_bounce_or_shield_ends_run(classic):
    sim, run = classic
    run.player.y = 0.0
    run.player.vy = 0.0
    events = sim.step(run, 16)
    assert events.game_over
    assert run.dead
    assert run.death_cause == "top"


def test_bottom_boundary_ends_run(classic):
    sim, run = classic
    run.player.y = sim.height
    events = sim.step(run, 16)
    assert events.game_over
    assert run.death_cause == "bottom"


def test_bouncy_top_boundary_reflects_downward():
    sim, run = make_run("Bouncy")
    clear_hazards(run)
    run.player.y = 0.0
    run.player.vy = -50.0
    events = sim.step(run, 16)
    assert events.bounced
    assert not run.dead
    assert run.player.y == PLAYER_RADIUS + 1
    assert run.player.vy > 0


def test_shield_absorbs_boundary_and_keeps_player_inside(classic):
    sim, run = classic
    run.powerups.has_shield = True
    run.player.y = 0.0
    events = sim.step(run, 16)
    assert events.shield_used
    assert not run.dead
    assert run.player.y == PLAYER_RADIUS + 1
    assert run.player.vy == 0.0
    assert run.powerups.has_shield is False


def test_shield_used_on_boundary_does_not_cover_hazard_in_same_frame(classic):
    sim, run = classic
    run.powerups.has_shield = True
    run.player.y = 0.0
    # bar overlapping the player column with the gap far below
    run.obstacles.obstacles = [gap_at(run.player.x - 10, gap_y=400, gap_h=120)]
    events = sim.step(run, 16)
    assert events.game_over
    assert run.death_cause == "obstacle"
    assert run.shields_used == 1


def test_shield_grace_starts_on_following_frame(classic):
    sim, run = classic
    run.powerups.has_shield = True
    run.player.y = 320.0
    run.obstacles.obstacles = [gap_at(run.player.x - 10, gap_y=100, gap_h=120)]
    first = sim.step(run, 16)
    assert first.shield_used and not run.dead
    second = sim.step(run, 32)
    assert not second.game_over
    assert run.in_shield_grace(32)
    assert not run.in_shield_grace(16 + SHIELD_GRACE_MS)


def test_ghost_phases_through_hazards(classic):
    sim, run = classic
    run.powerups.activate("ghost", 0)
    run.player.y = 320.0
    run.obstacles.obstacles = [gap_at(run.player.x - 10, gap_y=100, gap_h=120)]
    events = sim.step(run, 16)
    assert not events.game_over


def test_overdue_flip_happens_once_per_frame():
    sim, run = make_run("Chaotic")
    clear_hazards(run)
    run.player.y = 320.0
    run.gravity.last_flip = -100000
    sign = run.gravity.sign
    events = sim.step(run, 16)
    assert events.flipped
    assert not events.chaos_flip
    assert run.gravity.flips == 1
    assert run.gravity.sign == -sign
    again = sim.step(run, 17)
    assert not again.flipped
    assert run.gravity.flips == 1


def test_chaos_flip_is_reported_apart_from_scheduled_flips():
    sim, run = make_run("Chaotic")
    clear_hazards(run)
    run.rng = FixedRng(0.0)
    run.player.y = 320.0
    events = sim.step(run, 500)
    assert events.flipped
    assert events.chaos_flip
    assert run.gravity.last_flip == 500


def test_scheduled_flip_waits_for_interval(classic):
    sim, run = classic
    run.player.y = 320.0
    sim.step(run, 16)
    assert run.gravity.flips == 0
    flip_ms = run.tunables.flip_ms
    run.player.y = 320.0
    run.player.vy = 0.0
    events = sim.step(run, flip_ms + 1)
    assert events.flipped
    assert run.gravity.flips == 1


def test_gravity_lock_holds_flip_timer(classic):
    sim, run = classic
    run.powerups.activate("gravity_lock", 0)
    run.player.y = 320.0
    run.gravity.last_flip = -100000
    events = sim.step(run, 16)
    assert not events.flipped
    assert run.gravity.last_flip == 16


def test_passing_scores_once(classic):
    sim, run = classic
    run.player.y = 320.0
    obs = gap_at(30, gap_y=320, gap_h=200)
    run.obstacles.obstacles = [obs]
    events = sim.step(run, 16)
    assert obs.passed
    assert events.points == 1
    assert run.score == 1
    assert run.passed_obstacles == 1
    sim.step(run, 32)
    assert run.score == 1
    assert run.passed_obstacles == 1


def test_near_miss_adds_point_and_coins(classic):
    sim, run = classic
    run.player.y = 320.0
    run.obstacles.obstacles = [gap_at(30, gap_y=320, gap_h=PLAYER_RADIUS * 2 + 10)]
    events = sim.step(run, 16)
    assert events.near_misses == 1
    assert run.score == 2
    assert run.collectibles.session_coins == 2
    assert run.collectibles.near_misses == 1


def test_every_fifth_combo_step_adds_bonus(classic):
    sim, run = classic
    run.player.y = 320.0
    run.obstacles.obstacles = [gap_at(30 - i, gap_y=320, gap_h=200) for i in range(5)]
    events = sim.step(run, 16)
    assert run.collectibles.combo.count == 5
    assert events.points == 5 + 2


def test_level_up_after_level_size_obstacles(classic):
    sim, run = classic
    run.player.y = 320.0
    run.passed_obstacles = LEVEL_SIZE - 1
    run.obstacles.obstacles = [gap_at(30, gap_y=320, gap_h=200)]
    events = sim.step(run, 16)
    assert events.level_up == 1
    assert run.level_index == 1
    assert run.level_start_score == run.score
    assert run.level_start_passed == LEVEL_SIZE
    assert run.banners and "Caverns" in run.banners[-1].text


def test_freeze_holds_hazards(classic):
    sim, run = classic
    run.player.y = 320.0
    run.obstacles.obstacles = [gap_at(300, gap_y=320)]
    sim.apply_tap(run, 0)
    sim.step(run, 16)
    assert run.obstacles.obstacles[0].x == 300
    assert run.player.vy < 0


def test_frame_dt_is_capped(classic):
    sim, run = classic
    run.player.y = 320.0
    sim.step(run, 5000)
    # one capped frame of gravity from rest, in whichever direction applies
    assert abs(abs(run.player.vy) - sim.gravity * 0.033) < 1e-6


def test_shift_clock_moves_timers(classic):
    sim, run = classic
    run.powerups.activate("magnet", 0)
    sim.shift_clock(run, 1000)
    assert run.start_time == 1000
    assert run.gravity.last_flip == 1000
    assert run.powerups.active["magnet"].expires_at == 7000


def test_shift_clock_moves_banner_and_combo_message(classic):
    sim, run = classic
    run.banners = [Banner("Level 2: Caverns", 2500)]
    for t in (100, 200, 300):
        run.collectibles.combo.hit(t)
    assert run.collectibles.combo.message == "Nice!"
    sim.shift_clock(run, 1000)
    assert run.banners == [Banner("Level 2: Caverns", 3500)]
    assert run.collectibles.combo.message_at == 1300
    run.collectibles.combo.update(1300 + COMBO_MESSAGE_MS - 1)
    assert run.collectibles.combo.message == "Nice!"


def test_window_stays_full(classic):
    sim, run = classic
    run.player.y = 320.0
    sim.step(run, 16)
    assert len(run.obstacles.obstacles) >= 10
