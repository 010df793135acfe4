import random

import pytest

from oddgravity.data_models import GapObstacle
from oddgravity.engine import Simulation
from oddgravity.modes import MODE_PRESETS, apply_mode


def make_run(mode="Classic", seed=7, now=0.0):
    sim = Simulation()
    run = sim.new_run(apply_mode(None, MODE_PRESETS[mode]), now, random.Random(seed))
    sim.start(run, now)
    return sim, run


def clear_hazards(run):
    run.obstacles.obstacles = []
    run.creatures.creatures = []
    run.collectibles.items = []


def gap_at(x, gap_y, gap_h=200.0, width=40.0):
    return GapObstacle(x=x, gap_y=gap_y, gap_h=gap_h, width=width)


@pytest.fixture
def classic():
    sim, run = make_run("Classic")
    clear_hazards(run)
    return sim, run


class FixedRng(random.Random):
    """random() always returns the same value; everything else is seeded."""

    def __init__(self, value, seed=1):
        super().__init__(seed)
        self.value = value

    def random(self):
        return self.value
