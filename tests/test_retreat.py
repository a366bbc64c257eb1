import logging

import pytest

from sim.core.types import Phase, Role, Team
from tactics import (
    CombatAgent,
    RetreatGovernor,
    RetreatThresholds,
    StaticRetreatGovernor,
    dynamic_thresholds,
    next_phase,
)
from tactics.memory import load_agent_memory


def test_thresholds_follow_damage_to_healing_ratio():
    assert dynamic_thresholds(100, 50) == RetreatThresholds(0.90, 1.0)
    assert dynamic_thresholds(120, 100) == RetreatThresholds(0.85, 0.95)
    assert dynamic_thresholds(80, 100) == RetreatThresholds(0.75, 0.85)
    assert dynamic_thresholds(0, 0) == RetreatThresholds(0.60, 0.70)


def test_hysteresis_sequence_at_fixed_thresholds():
    thresholds = dynamic_thresholds(100, 50)
    phase = Phase.ENGAGING

    phase = next_phase(phase, 900, 1000, thresholds)
    assert phase == Phase.ENGAGING

    phase = next_phase(phase, 899, 1000, thresholds)
    assert phase == Phase.RECOVERING

    phase = next_phase(phase, 999, 1000, thresholds)
    assert phase == Phase.RECOVERING

    phase = next_phase(phase, 1000, 1000, thresholds)
    assert phase == Phase.ENGAGING


def test_thresholds_reject_a_gap_below_epsilon():
    with pytest.raises(ValueError):
        RetreatThresholds(0.90, 0.92)
    with pytest.raises(ValueError):
        RetreatThresholds(0.0, 0.5)
    RetreatThresholds(0.90, 0.95)


def test_static_governor_persists_recovering_flag(world, spawn):
    unit = spawn(Team.BLUE, (10, 10), Role.MELEE)  # 16 parts, 1600 hits
    unit.hits = 1300
    governor = StaticRetreatGovernor(0.85, 1.0)

    assert governor.needs_to_recover(CombatAgent(unit, world))
    assert unit.memory["recovering"] is True

    # Still short of full health: stays recovering
    unit.hits = 1590
    assert governor.needs_to_recover(CombatAgent(unit, world))

    unit.hits = 1600
    assert not governor.needs_to_recover(CombatAgent(unit, world))
    assert unit.memory["recovering"] is False


def test_recover_moves_away_from_hostiles(world, spawn):
    unit = spawn(Team.BLUE, (15, 15), Role.MELEE)
    unit.hits = 400
    spawn(Team.RED, (17, 15), Role.MELEE)
    agent = CombatAgent(unit, world)
    governor = StaticRetreatGovernor()

    assert governor.needs_to_recover(agent)
    assert governor.recover(agent, rally=(5, 15))
    step = agent.intent("move").params["to"]
    assert step[0] < 15
    assert agent.last_in_danger == world.tick


def test_corrupted_agent_memory_is_logged_and_unassigned(caplog):
    raw = {"partner": "seven", "squad": 12}
    with caplog.at_level(logging.ERROR):
        memory = load_agent_memory("unit-1", raw)
    assert memory.partner is None
    assert memory.squad is None
    assert not memory.recovering
    assert "Corrupted memory for unit-1" in caplog.text


def _pinned_on_border(world, spawn, hostile_pos):
    """A hurt unit at (0, 15) with friendlies blocking both border neighbours."""
    unit = spawn(Team.BLUE, (0, 15), Role.MELEE)
    unit.hits = 400
    spawn(Team.BLUE, (0, 14), Role.MELEE)
    spawn(Team.BLUE, (0, 16), Role.MELEE)
    spawn(Team.RED, hostile_pos, Role.MELEE)
    return CombatAgent(unit, world)


def test_recover_steps_off_the_border_when_cornered(world, spawn):
    agent = _pinned_on_border(world, spawn, (4, 15))
    world.tick = 10

    # Any inward step brings the hostile closer than staying put, so the retreat itself is a no-op
    assert StaticRetreatGovernor().recover(agent, rally=(0, 15))
    assert agent.last_in_danger == 10
    assert agent.intent("move").params["to"][0] == 1


def test_recover_stays_on_the_border_once_danger_is_old(world, spawn):
    agent = _pinned_on_border(world, spawn, (9, 15))
    agent.last_in_danger = 7
    world.tick = 10

    assert not StaticRetreatGovernor().recover(agent, rally=(0, 15))
    assert agent.intent("move") is None


def test_recover_never_endangered_unit_keeps_its_border_cell(world, spawn):
    agent = _pinned_on_border(world, spawn, (9, 15))

    assert world.tick == 0
    assert agent.last_in_danger is None
    assert not StaticRetreatGovernor().recover(agent, rally=(0, 15))
    assert agent.intent("move") is None


def test_dynamic_governor_weighs_threat_against_local_healing(world, spawn):
    unit = spawn(Team.BLUE, (10, 10), Role.MELEE)
    spawn(Team.RED, (11, 10), Role.MELEE)  # 6 attack parts: 180 incoming
    governor = RetreatGovernor()

    assert governor.thresholds_for(CombatAgent(unit, world)) == RetreatThresholds(0.90, 1.0)

    spawn(Team.BLUE, (10, 11), Role.HEALER)  # 72 healing
    spawn(Team.BLUE, (9, 10), Role.HEALER)   # 144 healing
    assert governor.thresholds_for(CombatAgent(unit, world)) == RetreatThresholds(0.85, 0.95)
