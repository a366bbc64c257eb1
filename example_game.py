"""
Example script running the ready-made scenarios to completion.

This shows how to:
1. Create a scenario
2. Drive it tick by tick with a TickRunner
3. Read the outcome and the negative events along the way

Usage:
    python example_game.py [pair|tower|assault] [--save PATH]
"""

import argparse

from infra import SCENARIO_STORAGE_DIR, configure_logging
from runtime.runner import TickRunner
from sim.scenario import create_pair_skirmish, create_squad_assault, create_tower_defense

SCENARIOS = {
    "pair": create_pair_skirmish,
    "tower": create_tower_defense,
    "assault": create_squad_assault,
}


def run(name: str, save: bool = False) -> None:
    scenario = SCENARIOS[name]()
    if save:
        path = scenario.save_json(SCENARIO_STORAGE_DIR / f"{name}.json")
        print(f"Scenario saved to {path}")

    runner = TickRunner(scenario)
    losses = 0
    while not runner.done:
        frame = runner.step()
        losses += sum(1 for e in frame.events if e["type"] in ("ALLY_LOST", "STRUCTURE_LOST"))
        if runner.tick % 25 == 0:
            blue = frame.action_metadata["blue"]
            print(f"tick {runner.tick:4d}  blue intents: {blue['actions_count']}")

    world = runner.world
    print("=" * 60)
    print(f"{name}: finished at tick {world.tick}")
    print(f"  Winner: {world.winner.name if world.winner else 'none'} ({world.game_over_reason})")
    print(f"  Losses on both sides: {losses}")


def main():
    parser = argparse.ArgumentParser(description="Run a tactical scenario")
    parser.add_argument("scenario", nargs="?", default="assault", choices=sorted(SCENARIOS))
    parser.add_argument("--save", action="store_true", help="Save the scenario JSON before running")
    args = parser.parse_args()

    configure_logging("INFO", logfile=None)
    run(args.scenario, save=args.save)


if __name__ == "__main__":
    main()
