import pytest

from sim.core.types import Role, StructureKind, Team
from sim.entities import Structure, make_tower
from sim.scenario import create_pair_skirmish
from runtime.events import extract_events
from runtime.runner import TickRunner


def test_losses_are_reported_with_severity(world, spawn):
    unit = spawn(Team.BLUE, (5, 5), Role.MELEE)
    tower = make_tower(Team.BLUE, (8, 8))
    extension = Structure(team=Team.BLUE, pos=(9, 9), kind=StructureKind.EXTENSION)
    world.add_entity(tower)
    world.add_entity(extension)
    before = world.clone()

    world.remove_entity(unit.id)
    world.remove_entity(tower.id)
    world.remove_entity(extension.id)
    world.tick = 1

    events = extract_events(prev_world=before, world=world, team=Team.BLUE, expired=[unit.id])
    by_type = {(e["type"], e["entity_id"]): e for e in events}

    assert by_type[("ALLY_LOST", unit.id)]["cause"] == "EXPIRED"
    assert by_type[("STRUCTURE_LOST", tower.id)]["severity"] == "CRITICAL"
    assert by_type[("STRUCTURE_LOST", extension.id)]["severity"] == "HIGH"
    assert extract_events(prev_world=before, world=world, team=Team.RED) == []


def test_mission_failure_on_game_over(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE)
    before = world.clone()
    world.game_over = True
    world.winner = Team.RED
    world.game_over_reason = "BLUE has no forces left"

    events = extract_events(prev_world=before, world=world, team=Team.BLUE)

    assert [e["type"] for e in events] == ["MISSION_FAILURE"]
    assert events[0]["winner"] == "RED"


def test_runner_frames_and_abort():
    runner = TickRunner(create_pair_skirmish())
    frame = runner.step()

    assert runner.tick == 1
    assert frame.world.tick == 0
    payload = frame.to_dict()
    assert set(payload["action_metadata"]) == {"blue", "red"}
    assert payload["step_info"]["tick"] == 1

    outcome = runner.abort_episode()
    assert runner.done
    assert outcome["type"] == "MANUAL_ABORT"
    with pytest.raises(RuntimeError):
        runner.step()
