from typing import Any, Dict, Iterable, List

from sim.core.types import StructureKind, Team
from sim.entities import Structure
from sim.world import WorldState

CRITICAL_STRUCTURES = {StructureKind.TOWER, StructureKind.SPAWN}
IRREVERSIBLE_SEVERITIES = {"HIGH", "CRITICAL"}


def extract_events(
    *,
    prev_world: WorldState,
    world: WorldState,
    team: Team,
    expired: Iterable[int] = (),
) -> List[Dict[str, Any]]:
    """
    Extract ONLY negative events for `team` between two ticks.
    """
    events: List[Dict[str, Any]] = []
    expired = set(expired)

    # ---------------------------------------------------------
    # 1. ALLY LOSS (irreversible)
    # ---------------------------------------------------------
    for unit in prev_world.units(team):
        if world.get_entity(unit.id) is None:
            events.append({
                "type": "ALLY_LOST",
                "team": team.name,
                "tick": world.tick,
                "entity_id": unit.id,
                "role": unit.role.value,
                "last_position": unit.pos,
                "cause": "EXPIRED" if unit.id in expired else "DESTROYED",
                "irreversible": True,
                "severity": "HIGH",
            })

    # ---------------------------------------------------------
    # 2. STRUCTURE LOSS
    # ---------------------------------------------------------
    for structure in prev_world.structures(team):
        if world.get_entity(structure.id) is None:
            events.append(_structure_lost(structure, team, world.tick))

    # ---------------------------------------------------------
    # 3. TERMINAL FAILURE
    # ---------------------------------------------------------
    if world.game_over and not prev_world.game_over and world.winner != team:
        events.append({
            "type": "MISSION_FAILURE",
            "team": team.name,
            "tick": world.tick,
            "winner": world.winner.name if world.winner else None,
            "reason": world.game_over_reason,
            "severity": "CRITICAL",
            "irreversible": True,
        })

    return events


def _structure_lost(structure: Structure, team: Team, tick: int) -> Dict[str, Any]:
    critical = structure.kind in CRITICAL_STRUCTURES
    return {
        "type": "STRUCTURE_LOST",
        "team": team.name,
        "tick": tick,
        "entity_id": structure.id,
        "kind": structure.kind.value,
        "last_position": structure.pos,
        "irreversible": True,
        "severity": "CRITICAL" if critical else "HIGH",
    }
