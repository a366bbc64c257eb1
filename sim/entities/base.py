"""
Entity base class.

Every object on the grid (units and structures) derives from Entity,
which owns identity, team, position, hitpoints and serialization.
Subclasses register themselves by `entity_type` so `Entity.from_dict`
can rebuild the right class.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Type

from ..core.types import GridPos, Team
from ..utils.id_generator import get_next_entity_id


@dataclass
class Entity:
    """
    Base class for everything placed on the grid.

    Attributes:
        team: Owning team (None for neutral terrain features)
        pos: Current grid position
        name: Display name (defaults to "<type>-<id>")
        id: Unique integer ID
    """

    entity_type: ClassVar[str] = "entity"
    _registry: ClassVar[Dict[str, Type["Entity"]]] = {}

    team: Optional[Team]
    pos: GridPos
    name: Optional[str] = None
    id: int = field(default_factory=get_next_entity_id)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        Entity._registry[cls.entity_type] = cls

    def __post_init__(self):
        """Normalize and validate base fields."""
        if len(self.pos) != 2:
            raise ValueError(f"Position must be (x, y): {self.pos}")
        self.pos = (int(self.pos[0]), int(self.pos[1]))
        if self.name is None:
            self.name = f"{self.entity_type}-{self.id}"

    @property
    def alive(self) -> bool:
        return getattr(self, "hits", 1) > 0

    def label(self) -> str:
        """Short label used in logs."""
        team = self.team.value if self.team else "NEUTRAL"
        return f"{self.name}#{self.id}[{team}]"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize base fields; subclasses extend the result."""
        return {
            "type": self.entity_type,
            "id": self.id,
            "team": self.team.name if self.team else None,
            "pos": list(self.pos),
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Entity:
        """
        Rebuild an entity of the registered subclass named in data["type"].

        Raises:
            ValueError: If the type is unknown
        """
        entity_cls = Entity._registry.get(data.get("type", ""))
        if entity_cls is None:
            raise ValueError(f"Unknown entity type: {data.get('type')!r}")
        return entity_cls._from_dict_impl(data)

    @classmethod
    def _from_dict_impl(cls, data: Dict[str, Any]) -> Entity:
        raise NotImplementedError

    @staticmethod
    def _team_from(raw: Optional[str]) -> Optional[Team]:
        return Team[raw] if raw else None
