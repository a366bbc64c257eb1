import pytest

from sim.core.types import Role, Team
from sim.entities import make_tower
from tactics import CombatAgent, FireSupportPositioner


@pytest.fixture
def lure_setup(world, spawn):
    towers = [make_tower(Team.BLUE, (14, 14)), make_tower(Team.BLUE, (16, 14))]
    for tower in towers:
        world.add_entity(tower)
    unit = spawn(Team.BLUE, (15, 20), Role.RANGED, ticks_to_live=1500)
    spawn(Team.RED, (15, 26), Role.MELEE, ticks_to_live=1500)
    return CombatAgent(unit, world), towers


def test_lure_cell_is_deterministic(lure_setup):
    agent, _ = lure_setup
    positioner = FireSupportPositioner(search_radius=8)

    first = positioner.find_position(agent)
    assert first is not None
    for _ in range(3):
        assert positioner.find_position(agent) == first


def test_lure_cell_is_best_scoring_passable_cell(lure_setup):
    agent, towers = lure_setup
    world = agent.world
    positioner = FireSupportPositioner(search_radius=8)
    hostiles = agent.intel.hostiles()

    best = positioner.find_position(agent)

    assert not world.grid.is_edge(best)
    assert world.is_passable(best)
    assert best not in [t.pos for t in towers]
    best_score = positioner.score(agent, best, towers, hostiles)
    for y in range(14 - 8, 14 + 9):
        for x in range(15 - 8, 15 + 9):
            pos = (x, y)
            if world.grid.is_edge(pos) or not world.is_passable(pos):
                continue
            assert positioner.score(agent, pos, towers, hostiles) <= best_score


def test_no_lure_without_towers(world, spawn):
    unit = spawn(Team.BLUE, (15, 20), Role.RANGED)
    spawn(Team.RED, (15, 26), Role.MELEE)
    agent = CombatAgent(unit, world)
    positioner = FireSupportPositioner()

    assert positioner.find_position(agent) is None
    assert positioner.lure(agent) is None


def test_uncharged_towers_do_not_count(world, spawn):
    world.add_entity(make_tower(Team.BLUE, (14, 14), energy=5))
    unit = spawn(Team.BLUE, (15, 20), Role.RANGED)
    spawn(Team.RED, (15, 26), Role.MELEE)

    assert FireSupportPositioner().find_position(CombatAgent(unit, world)) is None


def test_kite_range_depends_on_nearest_hostile(world, spawn):
    unit = spawn(Team.BLUE, (15, 15), Role.RANGED)
    agent = CombatAgent(unit, world)
    positioner = FireSupportPositioner()

    shooter = spawn(Team.RED, (15, 18), Role.RANGED)
    assert positioner.kite_range(agent, [shooter]) == 3

    brawler = spawn(Team.RED, (15, 17), Role.MELEE)
    assert positioner.kite_range(agent, [shooter, brawler]) == 2


def test_negative_radius_rejected():
    with pytest.raises(ValueError):
        FireSupportPositioner(search_radius=-1)
