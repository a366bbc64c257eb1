import pytest

from sim import TheaterEnv, WorldState
from sim.core.actions import Action
from sim.core.types import GameResult, Role, StructureKind, Team
from sim.entities import Structure, Unit, make_body, make_tower, make_unit
from sim.mechanics import CombatResolver, tower_damage
from sim.scenario import Scenario, create_squad_assault
from policies import PolicySpec
from runtime.runner import TickRunner


def _duel_scenario(**kwargs) -> Scenario:
    return Scenario(grid_width=20, grid_height=20, seed=5, **kwargs)


def test_tower_damage_falloff():
    assert tower_damage(0) == 600
    assert tower_damage(5) == 600
    assert tower_damage(10) == pytest.approx(450)
    assert tower_damage(20) == pytest.approx(150)
    assert tower_damage(21) == 0


def test_melee_and_heal_resolve_together(world, spawn):
    attacker = spawn(Team.BLUE, (5, 5), Role.MELEE)  # 6 attack parts
    target = spawn(Team.RED, (6, 5), Role.MELEE)
    medic = spawn(Team.RED, (7, 5), Role.HEALER)  # 6 heal parts

    report = CombatResolver().resolve_combat(world, {
        attacker.id: [Action.attack(target.id)],
        medic.id: [Action.heal(target.id)],
    })

    assert report.damage[target.id] == 180
    assert report.healing[target.id] == 72
    assert target.hits == 1600 - 180 + 72


def test_healing_caps_at_hits_max(world, spawn):
    hurt = spawn(Team.RED, (6, 5), Role.MELEE, hits=1580)
    medic = spawn(Team.RED, (7, 5), Role.HEALER)

    CombatResolver().resolve_combat(world, {medic.id: [Action.heal(hurt.id)]})

    assert hurt.hits == 1600


def test_out_of_range_attack_is_rejected(world, spawn):
    attacker = spawn(Team.BLUE, (5, 5), Role.MELEE)
    target = spawn(Team.RED, (9, 5), Role.MELEE)

    report = CombatResolver().resolve_combat(world, {attacker.id: [Action.attack(target.id)]})

    assert target.id not in report.damage
    assert any("rejected" in line for line in report.logs)


def test_tower_fires_at_closest_enemy_and_spends_energy(world, spawn):
    tower = make_tower(Team.BLUE, (5, 5))
    world.add_entity(tower)
    near = spawn(Team.RED, (5, 8), Role.MELEE)
    spawn(Team.RED, (5, 12), Role.MELEE)

    report = CombatResolver().resolve_combat(world, {})

    assert report.damage == {near.id: 600}
    assert near.hits == 1000
    assert tower.energy == 990


def test_step_requires_reset():
    with pytest.raises(RuntimeError):
        TheaterEnv().step({})


def test_expired_units_are_removed():
    scenario = _duel_scenario()
    doomed = scenario.add_entity(make_unit(Team.BLUE, (2, 2), Role.MELEE, ticks_to_live=1))
    scenario.add_entity(make_unit(Team.BLUE, (3, 2), Role.MELEE, ticks_to_live=100))
    scenario.add_entity(make_unit(Team.RED, (15, 15), Role.MELEE, ticks_to_live=100))

    env = TheaterEnv()
    env.reset(scenario)
    state, done, info = env.step({})

    assert info.expired == [doomed.id]
    assert state["world"].get_entity(doomed.id) is None
    assert not done


def test_destroying_last_enemy_ends_the_game():
    scenario = _duel_scenario()
    scenario.add_entity(make_tower(Team.BLUE, (5, 5)))
    scenario.add_entity(Unit(team=Team.RED, pos=(5, 7), role=Role.MELEE, body=make_body(move=1)))

    env = TheaterEnv()
    env.reset(scenario)
    state, done, info = env.step({})

    assert done
    assert info.result == GameResult.BLUE_WINS
    assert state["world"].winner == Team.BLUE
    with pytest.raises(RuntimeError):
        env.step({})


def test_tick_limit_is_a_draw():
    scenario = _duel_scenario(max_ticks=2)
    scenario.add_entity(make_unit(Team.BLUE, (2, 2), Role.MELEE))
    scenario.add_entity(make_unit(Team.RED, (17, 17), Role.MELEE))

    env = TheaterEnv()
    env.reset(scenario)
    _, done, _ = env.step({})
    assert not done
    _, done, info = env.step({})
    assert done
    assert info.result == GameResult.DRAW
    assert env.winner is None


def test_move_intent_is_applied():
    scenario = _duel_scenario()
    mover = scenario.add_entity(make_unit(Team.BLUE, (2, 2), Role.MELEE))
    scenario.add_entity(make_unit(Team.RED, (17, 17), Role.MELEE))

    env = TheaterEnv()
    env.reset(scenario)
    state, _, info = env.step({mover.id: [Action.move((3, 3))]})

    assert state["world"].get_unit(mover.id).pos == (3, 3)


def test_scenario_roundtrip_persist_and_load(tmp_path):
    scenario = create_squad_assault()
    scenario.walls = [(20, 20), (20, 21)]

    path = scenario.save_json(tmp_path / "assault.json")
    loaded = Scenario.load_json(path)

    assert loaded.to_dict() == scenario.to_dict()
    assert loaded.policy_for(Team.BLUE).init_params == {"objective": [35, 35], "rally": [8, 8]}
    rampart = [e for e in loaded.entities if isinstance(e, Structure) and e.kind == StructureKind.RAMPART]
    assert len(rampart) == 1


def test_scenario_rejects_two_policies_for_one_team():
    with pytest.raises(ValueError):
        Scenario(policies=[
            PolicySpec(type="greedy", team=Team.RED),
            PolicySpec(type="greedy", team=Team.RED),
        ])


def test_world_resume_reproduces_the_same_ticks(tmp_path):
    scenario = create_squad_assault()
    runner = TickRunner(scenario)
    for _ in range(3):
        runner.step()

    world_path = tmp_path / "world.json"
    runner.world.to_json(filepath=str(world_path))
    saved = WorldState.from_json(filepath=str(world_path))

    resumed = TickRunner(scenario, world=saved)
    reference = TickRunner(scenario, world=runner.world.clone())
    assert resumed.world.to_dict() == reference.world.to_dict()

    for _ in range(3):
        a = resumed.step()
        b = reference.step()
        assert {k: [x.to_dict() for x in v] for k, v in a.actions.items()} == \
            {k: [x.to_dict() for x in v] for k, v in b.actions.items()}
        assert resumed.world.to_dict() == reference.world.to_dict()
