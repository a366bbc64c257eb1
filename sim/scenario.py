"""
Scenario - per-run configuration for a theater.

A scenario is the only way to configure the environment. It carries the
grid and terrain, the map owner, the seed, the tick limit, the starting
entities and one policy spec per team, and round-trips through JSON so
runs can be stored and replayed.

Usage:
    from sim.scenario import Scenario, create_squad_assault

    scenario = create_squad_assault()
    scenario.save_json(SCENARIO_STORAGE_DIR / "assault.json")
    same = Scenario.load_json(SCENARIO_STORAGE_DIR / "assault.json")
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from policies.spec import PolicySpec
from .core.types import GridPos, Role, StructureKind, Team
from .entities import Entity, Structure, make_tower, make_unit


@dataclass
class Scenario:
    """
    Serializable description of one engagement.

    Attributes:
        grid_width: Grid width in cells
        grid_height: Grid height in cells
        walls: Impassable terrain cells
        owner: Team whose territory the map is (None for neutral ground)
        seed: Random seed for movement resolution order
        max_ticks: Tick limit; the run ends in a draw when it is reached
        entities: Starting units and structures
        policies: One PolicySpec per team
    """
    grid_width: int = 50
    grid_height: int = 50
    walls: List[GridPos] = field(default_factory=list)
    owner: Optional[Team] = None
    seed: Optional[int] = None
    max_ticks: Optional[int] = 300
    entities: List[Entity] = field(default_factory=list)
    policies: List[PolicySpec] = field(default_factory=list)

    def __post_init__(self):
        if self.grid_width < 3 or self.grid_height < 3:
            raise ValueError(f"Grid must be at least 3x3: {self.grid_width}x{self.grid_height}")
        if self.max_ticks is not None and self.max_ticks <= 0:
            raise ValueError(f"max_ticks must be positive: {self.max_ticks}")
        self.walls = [tuple(w) for w in self.walls]
        ids = [e.id for e in self.entities]
        if len(ids) != len(set(ids)):
            raise ValueError("Scenario entities must have unique ids")
        teams = [spec.team for spec in self.policies]
        if len(teams) != len(set(teams)):
            raise ValueError("At most one policy per team")

    def add_entity(self, entity: Entity) -> Entity:
        if any(e.id == entity.id for e in self.entities):
            raise ValueError(f"Duplicate entity id: {entity.id}")
        self.entities.append(entity)
        return entity

    def policy_for(self, team: Team) -> Optional[PolicySpec]:
        for spec in self.policies:
            if spec.team == team:
                return spec
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": {
                "grid_width": self.grid_width,
                "grid_height": self.grid_height,
                "walls": [list(w) for w in self.walls],
                "owner": self.owner.name if self.owner else None,
                "seed": self.seed,
                "max_ticks": self.max_ticks,
            },
            "entities": [e.to_dict() for e in self.entities],
            "policies": [spec.to_dict() for spec in self.policies],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Scenario:
        if "config" not in data:
            raise ValueError("Scenario must contain 'config' dictionary")
        config = data["config"]
        owner = config.get("owner")
        return cls(
            grid_width=config["grid_width"],
            grid_height=config["grid_height"],
            walls=[tuple(w) for w in config.get("walls", [])],
            owner=Team[owner] if owner else None,
            seed=config.get("seed"),
            max_ticks=config.get("max_ticks"),
            entities=[Entity.from_dict(e) for e in data.get("entities", [])],
            policies=[PolicySpec.from_dict(p) for p in data.get("policies", [])],
        )

    def save_json(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        return path

    @classmethod
    def load_json(cls, path: str | Path) -> Scenario:
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    def clone(self) -> Scenario:
        """Independent deep copy (entities are rebuilt, IDs preserved)."""
        return Scenario.from_dict(self.to_dict())


# ============================================================================
# READY-MADE SCENARIOS
# ============================================================================

def create_pair_skirmish(seed: Optional[int] = 7) -> Scenario:
    """Two melee/healer pairs defending home ground against a raiding party."""
    scenario = Scenario(grid_width=30, grid_height=30, owner=Team.BLUE, seed=seed, max_ticks=200)
    for x, role, ttl in [(12, Role.MELEE, 1400), (13, Role.HEALER, 1350),
                         (16, Role.MELEE, 900), (17, Role.HEALER, 1000)]:
        scenario.add_entity(make_unit(Team.BLUE, (x, 8), role, ticks_to_live=ttl))
    for x in (10, 14, 18):
        scenario.add_entity(make_unit(Team.RED, (x, 22), Role.MELEE, ticks_to_live=1500))
    scenario.policies = [
        PolicySpec(type="pair_defense", team=Team.BLUE, name="Blue Pairs"),
        PolicySpec(type="greedy", team=Team.RED, name="Red Raiders"),
    ]
    return scenario


def create_tower_defense(seed: Optional[int] = 11) -> Scenario:
    """A ranged unit luring attackers into the fire of two towers."""
    scenario = Scenario(grid_width=40, grid_height=40, owner=Team.BLUE, seed=seed, max_ticks=250)
    scenario.add_entity(make_tower(Team.BLUE, (18, 18)))
    scenario.add_entity(make_tower(Team.BLUE, (22, 18)))
    scenario.add_entity(Structure(team=Team.BLUE, pos=(20, 16), kind=StructureKind.SPAWN))
    scenario.add_entity(make_unit(Team.BLUE, (20, 22), Role.RANGED, ticks_to_live=1500))
    scenario.add_entity(make_unit(Team.BLUE, (21, 22), Role.RANGED, ticks_to_live=1400))
    for x in (16, 20, 24):
        scenario.add_entity(make_unit(Team.RED, (x, 34), Role.MELEE, ticks_to_live=1500))
    scenario.policies = [
        PolicySpec(type="fire_support", team=Team.BLUE, name="Blue Lure"),
        PolicySpec(type="greedy", team=Team.RED, name="Red Chasers"),
    ]
    return scenario


def create_squad_assault(seed: Optional[int] = 3) -> Scenario:
    """Two squads assaulting a defended base on enemy ground."""
    scenario = Scenario(grid_width=50, grid_height=50, owner=Team.RED, seed=seed, max_ticks=400)
    roles = [Role.MELEE, Role.MELEE, Role.RANGED, Role.HEALER]
    for i, role in enumerate(roles * 2):
        scenario.add_entity(make_unit(Team.BLUE, (5 + i, 5), role, ticks_to_live=1500 - 10 * i))
    scenario.add_entity(Structure(team=Team.RED, pos=(35, 35), kind=StructureKind.SPAWN))
    scenario.add_entity(make_tower(Team.RED, (33, 37), energy=300))
    scenario.add_entity(Structure(team=Team.RED, pos=(37, 33), kind=StructureKind.EXTENSION))
    scenario.add_entity(Structure(team=Team.RED, pos=(36, 36), kind=StructureKind.RAMPART))
    scenario.add_entity(make_unit(Team.RED, (36, 36), Role.RANGED, ticks_to_live=1500))
    scenario.add_entity(make_unit(Team.RED, (34, 34), Role.HEALER, ticks_to_live=1500))
    scenario.policies = [
        PolicySpec(
            type="squad_assault",
            team=Team.BLUE,
            name="Blue Assault",
            init_params={"objective": [35, 35], "rally": [8, 8]},
        ),
        PolicySpec(type="greedy", team=Team.RED, name="Red Garrison", init_params={"hold_position": True}),
    ]
    return scenario
