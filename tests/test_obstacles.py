import random

from oddgravity.constants import INITIAL_OBSTACLES, OBSTACLE_WINDOW, SCREEN_WIDTH, SPAWN_OFFSET_X
from oddgravity.data_models import GapObstacle
from oddgravity.difficulty import tunables
from oddgravity.modes import WORLDS
from oddgravity.obstacles import ObstacleField, landmark_pool, moving_chance, spawn_distance


def easy():
    return tunables(0, 3000, 3, WORLDS[0])


def test_spacing_bonus_for_early_walls():
    assert spawn_distance(0, 0) == 330
    assert spawn_distance(0, 7) == 290
    assert spawn_distance(0, 12) == 240
    assert spawn_distance(1, 12) == 200


def test_landmark_pool_grows_with_score():
    assert landmark_pool(0) == ["pillar", "tower"]
    assert len(landmark_pool(25)) == 6
    assert "lighthouse" in landmark_pool(50)


def test_no_moving_obstacles_at_start():
    assert moving_chance(0) == 0
    assert moving_chance(1.5) == 0.6


def test_initial_spawn():
    f = ObstacleField(random.Random(3))
    obs = f.spawn_initial(easy())
    assert len(obs) == INITIAL_OBSTACLES
    assert obs[0].x == SCREEN_WIDTH + SPAWN_OFFSET_X
    assert all(o.pattern == "static" for o in obs)
    assert f.rightmost_x == obs[-1].x


def test_refill_tops_up_the_window():
    f = ObstacleField(random.Random(3))
    f.spawn_initial(easy())
    last = f.obstacles[-1].x
    created = f.refill(easy(), 0, 0)
    assert len(f.obstacles) == OBSTACLE_WINDOW
    assert len(created) == 1
    assert created[0].x == last + 330


def test_advance_and_cull():
    f = ObstacleField(random.Random(3))
    f.obstacles = [GapObstacle(x=-30, gap_y=300, gap_h=200, width=20),
                   GapObstacle(x=100, gap_y=300, gap_h=200, width=20)]
    f.rightmost_x = 100
    f.advance(5)
    assert f.obstacles[1].x == 95
    assert f.rightmost_x == 95
    assert f.cull() == 1
    assert len(f.obstacles) == 1


def test_zigzag_reverses_at_the_margin():
    f = ObstacleField(random.Random(3))
    obs = GapObstacle(x=100, gap_y=81, gap_h=200, width=20, pattern="zigzag", drift_dir=-1)
    f.obstacles = [obs]
    f.update_patterns(0.1)
    assert obs.gap_y == 80
    assert obs.drift_dir == 1


def test_gap_geometry_is_fixed_per_obstacle():
    f = ObstacleField(random.Random(3))
    f.spawn_initial(easy())
    hard = tunables(1.0, 3000, 3, WORLDS[0])
    f.refill(hard, 0, 0)
    assert f.obstacles[0].gap_h == easy().gap_h
    assert f.obstacles[-1].gap_h == hard.gap_h
