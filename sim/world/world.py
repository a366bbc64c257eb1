"""
WorldState - Per-tick snapshot of one theater.

The WorldState:
- Holds the grid, terrain and every entity
- Tracks the tick counter and game-over state
- Owns the per-team persisted memory segments (opaque to the simulation)
- Serializes to/from JSON so a run can be paused and resumed
"""

from __future__ import annotations

import json
import random
from typing import Any, Dict, List, Optional

from .grid import Grid
from ..entities.base import Entity
from ..entities.structure import Structure
from ..entities.unit import Unit
from ..core.types import GridPos, StructureKind, Team


class WorldState:
    """
    The central simulation state.

    WorldState manages:
    - The spatial grid and terrain
    - All units and structures
    - Tick tracking and game-over state
    - Per-team memory (relation fields the tactics layer persists)

    It does NOT handle:
    - Movement resolution (delegated to MovementResolver)
    - Combat resolution (delegated to CombatResolver)
    - Any tactical decision making
    """

    def __init__(
            self,
            width: int,
            height: int,
            walls: Optional[List[GridPos]] = None,
            owner: Optional[Team] = None,
            seed: Optional[int] = None
    ):
        """
        Initialize a new world.

        Args:
            width: Grid width
            height: Grid height
            walls: Impassable terrain cells
            owner: Team whose territory this map is (None for neutral ground)
            seed: Random seed for reproducibility
        """
        self.grid = Grid(width, height, walls)
        self.owner = owner

        self._entities: List[Entity] = []
        self._entities_by_id: Dict[int, Entity] = {}

        self.tick: int = 0
        self.game_over: bool = False
        self.winner: Optional[Team] = None
        self.game_over_reason: str = ""

        # Persisted per-team memory segments, keyed by team name
        self.memory: Dict[str, Dict[str, Any]] = {}

        self.rng = random.Random(seed)

    # ========================================================================
    # ENTITY MANAGEMENT
    # ========================================================================

    def add_entity(self, entity: Entity) -> int:
        """
        Add an entity to the world.

        Args:
            entity: Entity to add

        Returns:
            Entity ID

        Raises:
            ValueError: If the position is invalid or blocked, or the ID is taken
        """
        if entity.id in self._entities_by_id:
            raise ValueError(f"Duplicate entity id: {entity.id}")
        if not self.grid.in_bounds(entity.pos):
            raise ValueError(f"Entity position out of bounds: {entity.pos}")
        if self.grid.is_wall(entity.pos):
            raise ValueError(f"Entity position is wall terrain: {entity.pos}")

        if isinstance(entity, Unit):
            if not self.is_passable(entity.pos):
                raise ValueError(f"Position blocked by a structure: {entity.pos}")
            if self.is_position_occupied(entity.pos):
                raise ValueError(f"Position already occupied: {entity.pos}")
        elif isinstance(entity, Structure) and not entity.walkable:
            if self.is_position_occupied(entity.pos) or not self.is_passable(entity.pos):
                raise ValueError(f"Position already occupied: {entity.pos}")

        self._entities.append(entity)
        self._entities_by_id[entity.id] = entity
        return entity.id

    def remove_entity(self, entity_id: int) -> Optional[Entity]:
        """Remove an entity (death, despawn). Returns it, or None if unknown."""
        entity = self._entities_by_id.pop(entity_id, None)
        if entity is not None:
            self._entities.remove(entity)
        return entity

    def get_entity(self, entity_id: int) -> Optional[Entity]:
        """Get entity by ID, or None if it no longer exists."""
        return self._entities_by_id.get(entity_id)

    def get_unit(self, entity_id: int) -> Optional[Unit]:
        entity = self._entities_by_id.get(entity_id)
        return entity if isinstance(entity, Unit) else None

    def get_structure(self, entity_id: int) -> Optional[Structure]:
        entity = self._entities_by_id.get(entity_id)
        return entity if isinstance(entity, Structure) else None

    def get_all_entities(self) -> List[Entity]:
        return self._entities.copy()

    def units(self, team: Optional[Team] = None) -> List[Unit]:
        """Living units, optionally filtered by team, in ID order."""
        found = [e for e in self._entities
                 if isinstance(e, Unit) and e.alive and (team is None or e.team == team)]
        return sorted(found, key=lambda e: e.id)

    def structures(
            self,
            team: Optional[Team] = None,
            kind: Optional[StructureKind] = None,
    ) -> List[Structure]:
        """Standing structures, optionally filtered by team and kind, in ID order."""
        found = [e for e in self._entities
                 if isinstance(e, Structure) and e.alive
                 and (team is None or e.team == team)
                 and (kind is None or e.kind == kind)]
        return sorted(found, key=lambda e: e.id)

    def structure_at(self, pos: GridPos, kind: Optional[StructureKind] = None) -> Optional[Structure]:
        for entity in self._entities:
            if isinstance(entity, Structure) and entity.pos == pos and (kind is None or entity.kind == kind):
                return entity
        return None

    # ========================================================================
    # SPATIAL QUERIES
    # ========================================================================

    def is_position_occupied(self, pos: GridPos, ignore_id: Optional[int] = None) -> bool:
        """Check if a position is occupied by a living unit."""
        return any(
            isinstance(e, Unit) and e.alive and e.pos == pos and e.id != ignore_id
            for e in self._entities
        )

    def is_passable(self, pos: GridPos) -> bool:
        """Terrain and structures allow standing here (units are not considered)."""
        if not self.grid.in_bounds(pos) or self.grid.is_wall(pos):
            return False
        return not any(
            isinstance(e, Structure) and e.pos == pos and not e.walkable
            for e in self._entities
        )

    # ========================================================================
    # MEMORY
    # ========================================================================

    def team_memory(self, team: Team) -> Dict[str, Any]:
        """The persisted memory segment for a team (created on first access)."""
        return self.memory.setdefault(team.name, {})

    # ========================================================================
    # UTILITY
    # ========================================================================
    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize world state to dictionary.

        Returns:
            JSON-serializable dictionary of complete state
        """
        return {
            "grid": {
                "width": self.grid.width,
                "height": self.grid.height,
                "walls": sorted(list(w) for w in self.grid.walls),
            },
            "owner": self.owner.name if self.owner else None,
            "entities": [entity.to_dict() for entity in self._entities],
            "tick": self.tick,
            "game_over": self.game_over,
            "winner": self.winner.name if self.winner else None,
            "game_over_reason": self.game_over_reason,
            "memory": json.loads(json.dumps(self.memory)),
            "rng_state": self.rng.getstate(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> WorldState:
        """
        Deserialize world state from dictionary.

        Args:
            data: Dictionary from to_dict()

        Returns:
            Reconstructed WorldState
        """
        grid = data["grid"]
        world = cls(
            width=grid["width"],
            height=grid["height"],
            walls=[tuple(w) for w in grid.get("walls", [])],
            owner=Team[data["owner"]] if data.get("owner") else None,
        )

        world.tick = data["tick"]
        world.game_over = data["game_over"]
        world.winner = Team[data["winner"]] if data["winner"] else None
        world.game_over_reason = data["game_over_reason"]
        world.memory = json.loads(json.dumps(data.get("memory", {})))

        # Random state is: (version, (624 integers..., position), gauss_next);
        # JSON turns the tuples into lists.
        rng_state = data["rng_state"]
        if isinstance(rng_state, list):
            inner_tuple = tuple(rng_state[1]) if isinstance(rng_state[1], list) else rng_state[1]
            rng_state = (rng_state[0], inner_tuple, rng_state[2])
        world.rng.setstate(rng_state)

        # Restored entities bypass placement validation
        for entity_data in data["entities"]:
            entity = Entity.from_dict(entity_data)
            world._entities.append(entity)
            world._entities_by_id[entity.id] = entity

        return world

    def to_json(self, filepath: Optional[str] = None, indent: int = 2) -> str:
        """
        Serialize to JSON.

        Args:
            filepath: If provided, write to file
            indent: JSON indentation (default: 2)

        Returns:
            JSON string
        """
        json_str = json.dumps(self.to_dict(), indent=indent, ensure_ascii=True)

        if filepath:
            with open(filepath, 'w') as f:
                f.write(json_str)

        return json_str

    @classmethod
    def from_json(cls, json_str: Optional[str] = None, filepath: Optional[str] = None) -> WorldState:
        """
        Deserialize from JSON.

        Raises:
            ValueError: If neither json_str nor filepath provided
        """
        if filepath:
            with open(filepath, 'r') as f:
                json_str = f.read()

        if not json_str:
            raise ValueError("Must provide either json_str or filepath")

        return cls.from_dict(json.loads(json_str))

    def clone(self) -> WorldState:
        """Create an independent deep copy of this world state."""
        return WorldState.from_dict(self.to_dict())

    def __str__(self) -> str:
        """String representation."""
        return f"WorldState(tick={self.tick}, units={len(self.units())}, grid={self.grid})"

    def __repr__(self) -> str:
        """Detailed representation."""
        return (f"WorldState(grid={self.grid}, entities={len(self._entities)}, "
                f"tick={self.tick}, game_over={self.game_over})")
