"""
Unit entity - one independently controlled combat unit.

Units:
- Are built from body parts (100 hits each, damaged front to back)
- Have a finite remaining lifetime in ticks
- Carry a free-form `memory` dict that persists between ticks
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import Entity
from ..core.constants import BODYPART_HITS
from ..core.types import BodyPart, Role, Team


@dataclass
class Unit(Entity):
    """
    A mobile combat unit.

    Attributes:
        role: Tactical role (required)
        body: Ordered body parts (required, non-empty)
        hits: Current hitpoints (defaults to hits_max)
        hits_max: Maximum hitpoints (defaults to 100 per body part)
        ticks_to_live: Remaining lifetime; None while unknown (e.g. spawning)
        memory: Persisted per-unit fields, read and written by field name
    """

    entity_type = "unit"

    role: Role = field(kw_only=True)
    body: List[BodyPart] = field(kw_only=True)
    hits: Optional[int] = None
    hits_max: Optional[int] = None
    ticks_to_live: Optional[int] = None
    memory: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate unit-specific parameters."""
        super().__post_init__()
        if not self.body:
            raise ValueError(f"{self.label()} needs at least one body part")
        if self.hits_max is None:
            self.hits_max = len(self.body) * BODYPART_HITS
        if self.hits is None:
            self.hits = self.hits_max
        if self.hits_max <= 0:
            raise ValueError(f"hits_max must be positive: {self.hits_max}")
        if self.hits > self.hits_max:
            raise ValueError(f"hits {self.hits} exceed hits_max {self.hits_max}")
        if self.ticks_to_live is not None and self.ticks_to_live < 0:
            raise ValueError(f"ticks_to_live cannot be negative: {self.ticks_to_live}")

    def get_active_bodyparts(self, part: BodyPart) -> int:
        """
        Count body parts of a type that still have hits.

        Damage strips parts from the front of the body, so the first
        `(hits_max - hits) // 100` parts are inactive.
        """
        destroyed = max(0, (self.hits_max - max(self.hits, 0)) // BODYPART_HITS)
        return sum(1 for p in self.body[destroyed:] if p == part)

    def count_bodyparts(self, part: BodyPart) -> int:
        """Count body parts of a type regardless of damage."""
        return sum(1 for p in self.body if p == part)

    @property
    def hits_ratio(self) -> float:
        return self.hits / self.hits_max

    def to_dict(self) -> Dict[str, Any]:
        """Serialize unit to dictionary."""
        data = super().to_dict()
        data.update({
            "role": self.role.value,
            "body": [p.value for p in self.body],
            "hits": self.hits,
            "hits_max": self.hits_max,
            "ticks_to_live": self.ticks_to_live,
            "memory": dict(self.memory),
        })
        return data

    @classmethod
    def _from_dict_impl(cls, data: Dict[str, Any]) -> Unit:
        """Construct Unit from dictionary."""
        return cls(
            id=data["id"],
            team=cls._team_from(data["team"]),
            pos=tuple(data["pos"]),
            name=data.get("name"),
            role=Role(data["role"]),
            body=[BodyPart(p) for p in data["body"]],
            hits=data["hits"],
            hits_max=data["hits_max"],
            ticks_to_live=data.get("ticks_to_live"),
            memory=dict(data.get("memory") or {}),
        )


def make_body(**counts: int) -> List[BodyPart]:
    """
    Build a body from part counts, TOUGH first and MOVE last.

    Example:
        make_body(tough=2, ranged_attack=4, heal=2, move=8)
    """
    order = [BodyPart.TOUGH, BodyPart.WORK, BodyPart.ATTACK,
             BodyPart.RANGED_ATTACK, BodyPart.HEAL, BodyPart.MOVE]
    unknown = set(counts) - {p.value for p in order}
    if unknown:
        raise ValueError(f"Unknown body parts: {sorted(unknown)}")
    body: List[BodyPart] = []
    for part in order:
        body.extend([part] * counts.get(part.value, 0))
    return body


def make_unit(team: Team, pos, role: Role, **kwargs: Any) -> Unit:
    """Convenience constructor with a default body for the role."""
    defaults = {
        Role.MELEE: dict(tough=2, attack=6, move=8),
        Role.RANGED: dict(tough=2, ranged_attack=5, heal=1, move=8),
        Role.HEALER: dict(tough=2, heal=6, move=8),
        Role.DISMANTLER: dict(tough=2, work=6, move=8),
    }
    body = kwargs.pop("body", None) or make_body(**defaults[role])
    return Unit(team=team, pos=pos, role=role, body=body, **kwargs)
