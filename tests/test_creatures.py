import random

from oddgravity.creatures import (
    CREATURE_KINDS, CreatureContext, CreatureField, available_kinds, clearance,
    create_creature, pick_kind, spawn_interval,
)


def test_nothing_unlocked_before_level_one():
    assert pick_kind(0, random.Random(1)) is None
    assert available_kinds(1) == ["bubble", "fish"]
    assert set(available_kinds(8)) == set(CREATURE_KINDS)


def test_pick_kind_respects_unlocks():
    rng = random.Random(5)
    for _ in range(50):
        assert CREATURE_KINDS[pick_kind(3, rng)].unlock_level <= 3


def test_spawn_interval_floor():
    assert spawn_interval(0) == 4200
    assert spawn_interval(1) == 1800
    assert spawn_interval(2) == 1800


def test_spawn_timer():
    field = CreatureField(random.Random(2))
    field.reset(0)
    assert field.maybe_spawn(100, 0, 1) is None
    c = field.maybe_spawn(4200, 0, 1)
    assert c is not None and c.kind in ("bubble", "fish")
    assert field.next_spawn_at == 8400
    assert field.creatures == [c]


def test_locked_level_still_advances_timer():
    field = CreatureField(random.Random(2))
    field.reset(0)
    assert field.maybe_spawn(4200, 0, 0) is None
    assert field.next_spawn_at == 8400
    assert field.creatures == []


def test_lightning_strike_window():
    rng = random.Random(4)
    c = create_creature("lightning", 100, 300, 0, rng)
    c.state["strike_timer"] = 10
    ctx = CreatureContext(now=0, player_y=300, rng=rng)
    kind = CREATURE_KINDS["lightning"]
    assert not kind.collides(c, 100, 300, 12, 0)
    kind.update(c, 0.016, ctx)
    assert c.state["striking"]
    assert kind.collides(c, 110, 300, 12, 0)
    assert not kind.collides(c, 130, 300, 12, 0)
    kind.update(c, 0.25, ctx)
    assert not c.state["striking"]
    assert not kind.collides(c, 100, 300, 12, 0)


def test_ghost_is_only_solid_when_visible():
    c = create_creature("ghost", 100, 300, 0, random.Random(1))
    field = CreatureField()
    assert field.collides(c, 100, 300, 12, 0)
    c.state["alpha"] = 0.3
    assert not field.collides(c, 100, 300, 12, 0)


def test_dragon_fire_reaches_ahead():
    c = create_creature("dragon", 300, 300, 0, random.Random(1))
    field = CreatureField()
    assert not field.collides(c, 220, 300, 12, 0)
    c.state["breathing"] = True
    assert field.collides(c, 220, 300, 12, 0)
    assert not field.collides(c, 220, 360, 12, 0)


def test_cull_uses_trailing_edge():
    field = CreatureField(random.Random(1))
    c = create_creature("bubble", 10, 300, 0, random.Random(1))
    field.creatures = [c]
    field.advance(5)
    assert c.x == 5
    assert field.cull() == 0
    field.advance(100)
    assert field.cull() == 1


def test_clearance_needs_a_body_height():
    rng = random.Random(1)
    fish = create_creature("fish", 100, 300, 0, rng)
    assert clearance(fish, 300, 12) < 0
    assert clearance(create_creature("lightning", 100, 300, 0, rng), 300, 12) is None


def test_every_kind_renders():
    rng = random.Random(9)
    field = CreatureField(rng)
    ctx = CreatureContext(now=1000, player_y=300, rng=rng)
    for kind in CREATURE_KINDS:
        c = create_creature(kind, 200, 300, 0, rng)
        CREATURE_KINDS[kind].update(c, 0.016, ctx)
        assert field.render(c)
