import pytest

from infra.settings import TacticsSettings
from policies import (
    POLICY_REGISTRY,
    GreedyPolicy,
    PairDefensePolicy,
    PolicySpec,
    SquadAssaultPolicy,
    create_policy_from_spec,
    register_policy,
    resolve_policy_class,
)
from sim import TheaterEnv
from sim.core.types import Role, Team
from sim.entities import make_unit
from sim.world import WorldState
from sim.scenario import create_pair_skirmish, create_squad_assault, create_tower_defense
from runtime.runner import TickRunner


def test_policies_are_registered():
    assert {"greedy", "pair_defense", "fire_support", "squad_assault"} <= set(POLICY_REGISTRY)


def test_policy_from_spec_and_import_path():
    prepared = create_policy_from_spec(PolicySpec(type="greedy", team=Team.RED, act_params={"note": 1}))
    assert isinstance(prepared.policy, GreedyPolicy)
    assert prepared.policy.team == Team.RED
    assert prepared.act_params == {"note": 1}

    assert resolve_policy_class("policies.pair_defense.PairDefensePolicy") is PairDefensePolicy


def test_unknown_policy_type():
    with pytest.raises(ValueError):
        resolve_policy_class("nope")


def test_pair_defense_binds_pairs_by_lifetime():
    state = TheaterEnv().reset(create_pair_skirmish())
    policy = PairDefensePolicy(Team.BLUE, settings=TacticsSettings())

    orders, metadata = policy.get_actions(state)

    assert metadata["pairs"] == [(1, 2), (3, 4)]
    world = state["world"]
    assert world.get_unit(2).memory["partner"] == 1
    assert world.get_unit(4).memory["partner"] == 3
    assert set(orders) <= {1, 2, 3, 4}


def test_squad_assault_forms_two_squads_before_coordinating():
    state = TheaterEnv().reset(create_squad_assault())
    policy = SquadAssaultPolicy(
        Team.BLUE, objective=[35, 35], rally=[8, 8], settings=TacticsSettings(),
    )

    orders, metadata = policy.get_actions(state)

    assert metadata["squads"] == {"000000": [1, 2, 3, 4], "000001": [5, 6, 7, 8]}
    assert metadata["coordination"]["ready"] is False
    assert metadata["needed_squads"] >= 1
    assert orders


def test_squad_assault_caps_from_role_names():
    policy = SquadAssaultPolicy(Team.BLUE, max_per_role={"melee": 3}, settings=TacticsSettings())
    assert [r.value for r in policy.max_per_role] == ["melee"]


def test_fire_support_lures_with_charged_towers():
    runner = TickRunner(create_tower_defense())
    frame = runner.step()
    assert frame.action_metadata["blue"]["luring"] == [4, 5]


@pytest.mark.parametrize("factory", [create_pair_skirmish, create_tower_defense, create_squad_assault])
def test_scenarios_run_with_one_intent_per_pipeline(factory):
    runner = TickRunner(factory())
    for _ in range(40):
        frame = runner.step()
        for actions in frame.actions.values():
            pipelines = [a.type.pipeline for a in actions]
            assert len(pipelines) == len(set(pipelines))
        if frame.done:
            break
    assert runner.step_count >= 1


def test_registry_refuses_to_rebind_a_key():
    class Imposter(GreedyPolicy):
        pass

    with pytest.raises(ValueError):
        register_policy("greedy", Imposter)
    assert POLICY_REGISTRY["greedy"] is GreedyPolicy


def test_factory_shares_settings_and_checks_init_params():
    settings = TacticsSettings(partner_tick_difference=10)
    prepared = create_policy_from_spec(PolicySpec(type="pair_defense", team="BLUE"), settings)
    assert prepared.policy.settings is settings
    assert prepared.policy.team == Team.BLUE

    with pytest.raises(ValueError):
        create_policy_from_spec(PolicySpec(type="greedy", team=Team.RED, init_params={"bogus": 1}))


def test_squad_assault_leftover_squad_does_not_hold_back_the_rest():
    world = WorldState(width=50, height=50, seed=1)
    # Four gathered at the first assembly point (8, 8), the leftover melee at the second (12, 8)
    for pos, role in [((7, 8), Role.MELEE), ((8, 8), Role.MELEE), ((9, 8), Role.RANGED),
                      ((8, 9), Role.HEALER), ((12, 8), Role.MELEE)]:
        world.add_entity(make_unit(Team.BLUE, pos, role, ticks_to_live=1500))
    world.add_entity(make_unit(Team.RED, (40, 40), Role.MELEE, ticks_to_live=1500))
    policy = SquadAssaultPolicy(Team.BLUE, objective=[40, 40], rally=[8, 8], settings=TacticsSettings())

    _, metadata = policy.get_actions({"world": world})

    assert metadata["squads"] == {"000000": [1, 2, 3, 4], "000001": [5]}
    assert metadata["coordination"]["ready"] is True
    assert metadata["coordination"]["mode"] == "focus"
    squads = world.team_memory(Team.BLUE)["theater"]["squads"]
    assert squads["000000"]["designed_size"] == 4
    assert squads["000001"]["designed_size"] == 1
