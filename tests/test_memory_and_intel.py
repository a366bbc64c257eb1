import logging

from sim.core.types import BodyPart, Role, Team
from sim.entities import Unit, make_tower
from tactics import CombatAgent, CombatIntel, TheaterContext
from tactics.memory import THEATER_KEY, load_theater_memory


def test_agent_relations_are_written_through(world, spawn):
    unit = spawn(Team.BLUE, (5, 5), Role.MELEE)
    agent = CombatAgent(unit, world)

    agent.partner_id = 42
    agent.squad_ref = "00000a"

    assert unit.memory["partner"] == 42
    assert unit.memory["squad"] == "00000a"
    assert CombatAgent(unit, world).squad_ref == "00000a"


def test_corrupted_unit_memory_leaves_agent_unassigned(world, spawn, caplog):
    unit = spawn(Team.BLUE, (5, 5), Role.MELEE)
    unit.memory.update({"partner": "2", "squad": None})

    with caplog.at_level(logging.ERROR):
        agent = CombatAgent(unit, world)

    assert agent.partner_id is None
    assert agent.squad_ref is None
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_corrupted_squad_entry_only_drops_that_squad(caplog):
    segment = {THEATER_KEY: {
        "next_squad": 3,
        "squads": {
            "000000": {"assembly_complete": True, "designed_size": 4},
            "000001": {"assembly_complete": "yes"},
        },
    }}

    with caplog.at_level(logging.ERROR):
        theater = load_theater_memory(segment)

    assert theater.next_squad == 3
    assert list(theater.squads) == ["000000"]
    assert theater.squads["000000"].designed_size == 4
    assert "000001" in caplog.text


def test_theater_memory_survives_commit(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE)
    context = TheaterContext(world, Team.BLUE)
    squads = context.make_squads(context.agents(), {Role.MELEE: 2})
    ref = next(iter(squads))
    squads[ref].memory.assembly_complete = True
    context.commit()

    reloaded = TheaterContext(world, Team.BLUE)
    assert reloaded.theater.next_squad == 1
    assert reloaded.squad_memory(ref).assembly_complete


def test_threat_at_sums_melee_ranged_towers_and_healing(world, spawn):
    world.add_entity(make_tower(Team.RED, (10, 5)))
    spawn(Team.RED, (5, 6), Role.MELEE)  # adjacent: 6 attack
    spawn(Team.RED, (5, 8), Role.RANGED)  # range 3: 5 ranged
    spawn(Team.BLUE, (6, 5), Role.HEALER)  # adjacent healer: 6 heal

    threat = CombatIntel(world, Team.BLUE).threat_at((5, 5))

    assert threat.melee == 180
    assert threat.ranged == 50
    assert threat.structure == 600
    assert threat.healing == 72
    assert threat.incoming == 830


def test_mass_attack_damage_by_range(world, spawn):
    shooter = spawn(Team.BLUE, (10, 10), Role.RANGED)  # 5 ranged parts: 50 power
    spawn(Team.RED, (11, 10), Role.MELEE)
    spawn(Team.RED, (12, 10), Role.MELEE)
    spawn(Team.RED, (13, 10), Role.MELEE)
    spawn(Team.RED, (14, 10), Role.MELEE)

    assert CombatIntel(world, Team.BLUE).mass_attack_damage(shooter) == 50 + 20 + 5


def test_damaged_parts_are_inactive(world, spawn):
    unit = spawn(Team.BLUE, (5, 5), Role.RANGED)  # tough, tough, ranged x5, heal, move x8
    unit.hits = unit.hits_max - 250
    assert unit.get_active_bodyparts(BodyPart.TOUGH) == 0
    assert unit.get_active_bodyparts(BodyPart.RANGED_ATTACK) == 5


def test_needed_squads(world, spawn):
    intel = CombatIntel(world, Team.BLUE)
    assert intel.needed_squads(100) == 0

    spawn(Team.RED, (20, 20), Role.HEALER)  # 72 healing
    assert intel.needed_squads(100) == 3  # ceil(0.5 + 2.5 * 72 / 101)
    assert intel.needed_squads(10000) == 1


def test_one_intent_per_pipeline(world, spawn):
    unit = world.add_entity(Unit(
        team=Team.BLUE, pos=(5, 5), role=Role.RANGED,
        body=[BodyPart.RANGED_ATTACK, BodyPart.HEAL, BodyPart.MOVE],
    ))
    agent = CombatAgent(world.get_unit(unit), world)
    first = spawn(Team.RED, (6, 5), Role.MELEE)
    second = spawn(Team.RED, (7, 5), Role.MELEE)

    assert agent.ranged_attack(first)
    assert agent.ranged_attack(second)
    assert agent.heal(agent)
    assert agent.go_to((2, 5))

    orders = agent.orders()
    assert len(orders) == 3
    assert agent.intent("ranged").target_id == second.id


def test_invalid_intent_is_dropped(world, spawn):
    unit = spawn(Team.BLUE, (5, 5), Role.HEALER)
    agent = CombatAgent(unit, world)
    enemy = spawn(Team.RED, (6, 5), Role.MELEE)

    assert not agent.attack(enemy)  # no attack parts
    assert not agent.heal(enemy)  # heals only friendlies
    assert agent.orders() == []
