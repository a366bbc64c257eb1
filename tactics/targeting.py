"""
Target selection helpers shared by agents and squads.

All helpers are pure: they rank what is passed in and return the best
entity or None. Ties fall back to the lowest id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

from sim.core.types import BodyPart, StructureKind

if TYPE_CHECKING:
    from sim.entities import Structure, Unit
    from .agent import CombatAgent

# Lower is more urgent
STRUCTURE_PRIORITY = {
    StructureKind.TOWER: 0,
    StructureKind.SPAWN: 1,
    StructureKind.EXTENSION: 2,
    StructureKind.STORAGE: 3,
    StructureKind.RAMPART: 4,
    StructureKind.WALL: 5,
}


def find_best_unit_target_in_range(
    agent: CombatAgent,
    max_range: int,
    hostiles: Iterable[Unit],
) -> Optional[Unit]:
    """Healers first, then the most damaged, then the lowest id."""
    grid = agent.world.grid
    in_range = [h for h in hostiles if grid.range(agent.pos, h.pos) <= max_range]
    if not in_range:
        return None
    return min(
        in_range,
        key=lambda h: (h.get_active_bodyparts(BodyPart.HEAL) == 0, h.hits_ratio, h.id),
    )


def find_best_structure_target_in_range(
    agent: CombatAgent,
    max_range: int,
    structures: Iterable[Structure],
) -> Optional[Structure]:
    grid = agent.world.grid
    in_range = [s for s in structures if grid.range(agent.pos, s.pos) <= max_range]
    if not in_range:
        return None
    return min(in_range, key=lambda s: (STRUCTURE_PRIORITY[s.kind], s.hits, s.id))


def find_best_healing_target_in_range(
    agent: CombatAgent,
    max_range: int,
    friendlies: Iterable[Unit],
) -> Optional[Unit]:
    """The most damaged friendly in range, the agent itself included."""
    grid = agent.world.grid
    hurt = [f for f in friendlies
            if f.hits < f.hits_max and grid.range(agent.pos, f.pos) <= max_range]
    if not hurt:
        return None
    return min(hurt, key=lambda f: (f.hits_ratio, f.id))


def find_closest_hurt_friendly(agent: CombatAgent, friendlies: Iterable[Unit]) -> Optional[Unit]:
    grid = agent.world.grid
    hurt = [f for f in friendlies if f.id != agent.id and f.hits < f.hits_max]
    if not hurt:
        return None
    return min(hurt, key=lambda f: (grid.range(agent.pos, f.pos), f.id))


def find_target(
    agent: CombatAgent,
    hostiles: Iterable[Unit],
    structures: Iterable[Structure] = (),
) -> Optional[Unit | Structure]:
    """Closest hostile unit, else the closest hostile structure."""
    grid = agent.world.grid
    hostiles = list(hostiles)
    if hostiles:
        return min(hostiles, key=lambda h: (grid.range(agent.pos, h.pos), h.id))
    structures = [s for s in structures if s.kind != StructureKind.WALL]
    if structures:
        return min(structures, key=lambda s: (grid.range(agent.pos, s.pos), s.id))
    return None
