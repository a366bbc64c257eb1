import pytest

from sim.core.types import BodyPart, Role, StructureKind, Team
from sim.entities import Structure, Unit, make_body, make_tower
from sim.world import WorldState
from sim.world.grid import Grid
from tactics import (
    CombatAgent,
    Squad,
    SquadTacticalCoordinator,
    TheaterContext,
    pincer_positions,
    should_regroup,
)
from tactics.memory import SquadMemory

CAPS = {Role.MELEE: 2, Role.RANGED: 1, Role.HEALER: 1}


@pytest.fixture
def big_world():
    return WorldState(width=50, height=50, seed=1)


def _two_assembled_squads(world):
    roles = [Role.MELEE, Role.MELEE, Role.RANGED, Role.HEALER] * 2
    for i, role in enumerate(roles):
        world.add_entity(Unit(
            team=Team.BLUE, pos=(10 + i, 10), role=role,
            body=make_body(tough=2, attack=2, ranged_attack=2, heal=2, move=2),
            ticks_to_live=1500,
        ))
    context = TheaterContext(world, Team.BLUE)
    squads = context.make_squads(context.agents(), CAPS)
    for squad in squads.values():
        squad.memory.assembly_complete = True
        squad.memory.designed_size = len(squad.members)
    return context, list(squads.values())


def test_pincer_points_around_target():
    grid = Grid(50, 50)
    assert pincer_positions(4, (25, 25), grid, radius=5) == [(30, 25), (25, 30), (20, 25), (25, 20)]


def test_single_squad_uses_target_itself():
    assert pincer_positions(1, (25, 25), Grid(50, 50)) == [(25, 25)]


def test_pincer_points_are_clamped_inside_the_map():
    assert pincer_positions(2, (1, 1), Grid(50, 50), radius=5) == [(6, 2), (2, 2)]


def test_regroup_on_hits_ratio(world):
    units = [
        Unit(team=Team.BLUE, pos=(5 + i, 5), role=Role.MELEE, body=make_body(tough=5, move=5))
        for i in range(4)
    ]
    for unit in units:
        world.add_entity(unit)
    squad = Squad("000000", [CombatAgent(u, world) for u in units], {Role.MELEE: 4}, SquadMemory())
    assert squad.hits_max == 4000

    for unit, hits in zip(units, [400, 500, 500, 500]):
        unit.hits = hits
    assert squad.hits == 1900
    assert should_regroup(squad)

    units[0].hits = 600
    assert squad.hits == 2100
    assert not should_regroup(squad)


def test_regroup_when_short_of_designed_size(world, spawn):
    unit = spawn(Team.BLUE, (5, 5), Role.MELEE)
    squad = Squad("000000", [CombatAgent(unit, world)], {Role.MELEE: 2}, SquadMemory(designed_size=2))
    assert should_regroup(squad)


def test_not_ready_until_every_squad_assembled(big_world):
    context, squads = _two_assembled_squads(big_world)
    squads[1].memory.assembly_complete = False

    report = SquadTacticalCoordinator(context).coordinate(squads)

    assert not report.ready
    assert report.targets == {}


def test_focus_fire_lands_on_wounded_healer(big_world):
    context, squads = _two_assembled_squads(big_world)
    # Front parts are lost first: at 200/1000 only the two heal parts still work
    healer = Unit(
        team=Team.RED, pos=(30, 20), role=Role.HEALER,
        body=[BodyPart.MOVE] * 8 + [BodyPart.HEAL] * 2, hits=200,
    )
    big_world.add_entity(healer)
    bruiser = Unit(
        team=Team.RED, pos=(31, 20), role=Role.MELEE, body=make_body(attack=4, move=4), hits=720,
    )
    big_world.add_entity(bruiser)
    for pos in [(32, 20), (30, 22), (32, 22)]:
        big_world.add_entity(Unit(
            team=Team.RED, pos=pos, role=Role.MELEE, body=make_body(attack=4, move=4),
        ))
    assert len(context.intel.hostiles()) == 5
    assert bruiser.hits_ratio == 0.9

    report = SquadTacticalCoordinator(context).coordinate(squads)

    assert report.ready
    assert report.mode == "focus"
    assert set(report.targets.values()) == {healer.id}
    assert all(s.memory.target == healer.id for s in squads)


def test_structures_are_distributed_across_squads(big_world):
    context, squads = _two_assembled_squads(big_world)
    spawn_ = Structure(team=Team.RED, pos=(40, 40), kind=StructureKind.SPAWN)
    tower = make_tower(Team.RED, (30, 40))
    big_world.add_entity(spawn_)
    big_world.add_entity(tower)

    report = SquadTacticalCoordinator(context).coordinate(squads)

    assert report.mode == "distribute"
    first, second = sorted(report.targets)
    assert report.targets[first] == spawn_.id
    assert report.targets[second] == tower.id


def test_staging_gate_releases_after_timeout(big_world):
    context, squads = _two_assembled_squads(big_world)
    big_world.add_entity(Unit(
        team=Team.RED, pos=(40, 40), role=Role.MELEE, body=make_body(attack=4, move=4),
    ))
    coordinator = SquadTacticalCoordinator(context, staging_timeout=25)

    report = coordinator.coordinate(squads)
    assert not report.engage
    assert len(report.pincer_points) == 2

    big_world.tick = 24
    assert not coordinator.coordinate(squads).engage

    big_world.tick = 25
    report = coordinator.coordinate(squads)
    assert report.engage
    assert all(s.memory.staged for s in squads)


def test_single_squad_engages_without_staging(big_world):
    roles = [Role.MELEE, Role.MELEE, Role.RANGED, Role.HEALER]
    for i, role in enumerate(roles):
        big_world.add_entity(Unit(
            team=Team.BLUE, pos=(10 + i, 10), role=role,
            body=make_body(attack=2, move=2), ticks_to_live=1500,
        ))
    big_world.add_entity(Unit(
        team=Team.RED, pos=(40, 40), role=Role.MELEE, body=make_body(attack=4, move=4),
    ))
    context = TheaterContext(big_world, Team.BLUE)
    squads = list(context.make_squads(context.agents(), CAPS).values())
    squads[0].memory.assembly_complete = True

    report = SquadTacticalCoordinator(context).coordinate(squads)

    assert report.engage
    assert report.pincer_points == {}
