"""
Structure entity - static objects on the map.

Structures:
- Cannot move
- Block movement unless walkable (ramparts)
- Towers are the static defense: they fire automatically each tick
  while they hold enough energy
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict

from .base import Entity
from ..core.constants import TOWER_CAPACITY, TOWER_ENERGY_COST
from ..core.types import StructureKind

DEFAULT_STRUCTURE_HITS = {
    StructureKind.SPAWN: 5000,
    StructureKind.TOWER: 3000,
    StructureKind.EXTENSION: 1000,
    StructureKind.RAMPART: 10000,
    StructureKind.WALL: 10000,
    StructureKind.STORAGE: 10000,
}


@dataclass
class Structure(Entity):
    """
    A static structure.

    Attributes:
        kind: Structure type (required)
        hits: Current hitpoints (defaults to hits_max)
        hits_max: Maximum hitpoints (defaults per kind)
        energy: Stored energy; towers spend TOWER_ENERGY_COST per shot
    """

    entity_type = "structure"

    kind: StructureKind = field(kw_only=True)
    hits: int | None = None
    hits_max: int | None = None
    energy: int = 0

    def __post_init__(self):
        """Validate structure-specific parameters."""
        super().__post_init__()
        if self.hits_max is None:
            self.hits_max = DEFAULT_STRUCTURE_HITS[self.kind]
        if self.hits is None:
            self.hits = self.hits_max
        if self.energy < 0:
            raise ValueError(f"Energy cannot be negative: {self.energy}")

    @property
    def walkable(self) -> bool:
        return self.kind.walkable

    @property
    def is_defense(self) -> bool:
        """Operational static defense: a tower that can afford a shot."""
        return self.kind == StructureKind.TOWER and self.energy >= TOWER_ENERGY_COST

    def to_dict(self) -> Dict[str, Any]:
        """Serialize structure to dictionary."""
        data = super().to_dict()
        data.update({
            "kind": self.kind.value,
            "hits": self.hits,
            "hits_max": self.hits_max,
            "energy": self.energy,
        })
        return data

    @classmethod
    def _from_dict_impl(cls, data: Dict[str, Any]) -> Structure:
        """Construct Structure from dictionary."""
        return cls(
            id=data["id"],
            team=cls._team_from(data["team"]),
            pos=tuple(data["pos"]),
            name=data.get("name"),
            kind=StructureKind(data["kind"]),
            hits=data["hits"],
            hits_max=data["hits_max"],
            energy=data.get("energy", 0),
        )


def make_tower(team, pos, energy: int = TOWER_CAPACITY, **kwargs: Any) -> Structure:
    """Convenience constructor for a charged tower."""
    return Structure(team=team, pos=pos, kind=StructureKind.TOWER, energy=energy, **kwargs)
