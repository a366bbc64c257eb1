"""
CombatIntel - read-only combat estimates for one team.

Every query is computed from the world as it is right now. Nothing is
cached between calls, so a fresh instance per tick (or per call) always
reflects the current hostile composition.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional

from sim.core.constants import (
    ATTACK_POWER,
    DISMANTLE_POWER,
    HEAL_POWER,
    RANGED_ATTACK_POWER,
    RANGED_HEAL_POWER,
    RANGED_MASS_ATTACK_MULTIPLIERS,
)
from sim.core.types import BodyPart, GridPos, StructureKind, Team
from sim.mechanics.combat import tower_damage

if TYPE_CHECKING:
    from sim.entities import Structure, Unit
    from sim.world import WorldState


@dataclass(frozen=True)
class ThreatSnapshot:
    """
    Damage and healing that can reach one cell this tick.

    Attributes:
        melee: Hostile melee damage from adjacent hostiles
        ranged: Hostile ranged damage from hostiles within 3
        structure: Hostile tower damage
        healing: Friendly healing that can reach the cell
    """
    melee: float = 0.0
    ranged: float = 0.0
    structure: float = 0.0
    healing: float = 0.0

    @property
    def incoming(self) -> float:
        return self.melee + self.ranged + self.structure


# ============================================================================
# BODY POTENTIALS
# ============================================================================

def attack_damage(unit: Unit) -> float:
    return ATTACK_POWER * unit.get_active_bodyparts(BodyPart.ATTACK)


def ranged_attack_damage(unit: Unit) -> float:
    return RANGED_ATTACK_POWER * unit.get_active_bodyparts(BodyPart.RANGED_ATTACK)


def heal_potential(unit: Unit) -> float:
    return HEAL_POWER * unit.get_active_bodyparts(BodyPart.HEAL)


def ranged_heal_potential(unit: Unit) -> float:
    return RANGED_HEAL_POWER * unit.get_active_bodyparts(BodyPart.HEAL)


def dismantle_damage(unit: Unit) -> float:
    return DISMANTLE_POWER * unit.get_active_bodyparts(BodyPart.WORK)


class CombatIntel:
    """
    Combat estimates from the point of view of `team`.

    Args:
        world: Current world state (never modified)
        team: The friendly side
    """

    def __init__(self, world: WorldState, team: Team):
        self.world = world
        self.team = team

    # ------------------------------------------------------------------
    # Visible forces
    # ------------------------------------------------------------------
    def friendlies(self) -> List[Unit]:
        return self.world.units(self.team)

    def hostiles(self) -> List[Unit]:
        return self.world.units(self.team.opponent)

    def hostile_structures(self) -> List[Structure]:
        return self.world.structures(self.team.opponent)

    def friendly_defenses(self) -> List[Structure]:
        """Friendly towers with enough energy to fire."""
        return [s for s in self.world.structures(self.team, StructureKind.TOWER) if s.is_defense]

    def hostile_defenses(self) -> List[Structure]:
        return [s for s in self.world.structures(self.team.opponent, StructureKind.TOWER) if s.is_defense]

    def on_hostile_rampart(self, unit: Unit) -> bool:
        rampart = self.world.structure_at(unit.pos, StructureKind.RAMPART)
        return rampart is not None and rampart.team == unit.team and rampart.team != self.team

    # ------------------------------------------------------------------
    # Damage and healing
    # ------------------------------------------------------------------
    def tower_damage_at(self, pos: GridPos, towers: Iterable[Structure]) -> float:
        """Summed damage the given towers would deal to a unit at `pos`."""
        return sum(tower_damage(self.world.grid.range(pos, t.pos)) for t in towers)

    def mass_attack_damage(self, unit: Unit, targets: Optional[Iterable[Unit]] = None) -> float:
        """Damage a ranged mass attack from `unit` would spread over `targets`."""
        targets = self.hostiles() if targets is None else targets
        power = ranged_attack_damage(unit)
        total = 0.0
        for target in targets:
            distance = self.world.grid.range(unit.pos, target.pos)
            total += power * RANGED_MASS_ATTACK_MULTIPLIERS.get(distance, 0.0)
        return total

    def healing_at(self, pos: GridPos, healers: Iterable[Unit]) -> float:
        """Healing that `healers` could put on a unit at `pos` this tick."""
        total = 0.0
        for healer in healers:
            distance = self.world.grid.range(healer.pos, pos)
            if distance <= 1:
                total += heal_potential(healer)
            elif distance <= 3:
                total += ranged_heal_potential(healer)
        return total

    def max_hostile_healing_to(self, hostile: Unit) -> float:
        """Healing the hostile's own side can sustain on it."""
        return self.healing_at(hostile.pos, self.world.units(hostile.team))

    def threat_at(self, pos: GridPos) -> ThreatSnapshot:
        """Aggregate hostile damage and friendly healing reaching a position."""
        melee = ranged = 0.0
        for hostile in self.hostiles():
            distance = self.world.grid.range(pos, hostile.pos)
            if distance <= 1:
                melee += attack_damage(hostile)
            if distance <= 3:
                ranged += ranged_attack_damage(hostile)

        return ThreatSnapshot(
            melee=melee,
            ranged=ranged,
            structure=self.tower_damage_at(pos, self.hostile_defenses()),
            healing=self.healing_at(pos, self.friendlies()),
        )

    # ------------------------------------------------------------------
    # Force estimates
    # ------------------------------------------------------------------
    def threat_level(self) -> float:
        """Total hostile firepower plus the healing backing it."""
        return sum(attack_damage(h) + ranged_attack_damage(h) + heal_potential(h) for h in self.hostiles())

    def needed_squads(self, squad_damage: float) -> int:
        """
        Squads of `squad_damage` needed to break through hostile healing.

        Always at least one while any hostile remains.
        """
        hostiles = self.hostiles()
        if not hostiles and not self.hostile_structures():
            return 0
        healing = sum(heal_potential(h) for h in hostiles)
        towers = self.tower_damage_at(hostiles[0].pos, self.friendly_defenses()) if hostiles else 0.0
        return max(1, math.ceil(0.5 + 2.5 * healing / (squad_damage + towers + 1)))
