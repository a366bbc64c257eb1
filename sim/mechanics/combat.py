"""
CombatResolver - attack, heal, dismantle and tower resolution.

All damage and healing for a tick is accumulated first and applied
together, so resolution order between units does not matter. Entities
that drop to zero hits are removed from the world; their IDs simply stop
resolving, which is how every other subsystem learns about the death.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Sequence

from ..core.actions import Action, normalize_orders
from ..core.constants import (
    ATTACK_POWER,
    DISMANTLE_POWER,
    HEAL_POWER,
    RANGED_ATTACK_POWER,
    RANGED_HEAL_POWER,
    RANGED_MASS_ATTACK_MULTIPLIERS,
    TOWER_ENERGY_COST,
    TOWER_FALLOFF,
    TOWER_FALLOFF_RANGE,
    TOWER_OPTIMAL_RANGE,
    TOWER_POWER_ATTACK,
)
from ..core.types import ActionType, BodyPart
from ..core.validation import validate_action_in_world

if TYPE_CHECKING:
    from ..world.world import WorldState


def tower_damage(distance: int, power: float = TOWER_POWER_ATTACK) -> float:
    """
    Tower damage at a Chebyshev distance.

    Full power up to TOWER_OPTIMAL_RANGE, then falls off linearly by
    TOWER_FALLOFF until TOWER_FALLOFF_RANGE; beyond that a tower deals
    nothing.
    """
    if distance <= TOWER_OPTIMAL_RANGE:
        return float(power)
    if distance > TOWER_FALLOFF_RANGE:
        return 0.0
    falloff = (distance - TOWER_OPTIMAL_RANGE) / (TOWER_FALLOFF_RANGE - TOWER_OPTIMAL_RANGE)
    return power * (1 - TOWER_FALLOFF * falloff)


@dataclass
class CombatReport:
    """
    Outcome of a combat phase.

    Attributes:
        damage: target_id -> total damage received
        healing: target_id -> total healing received
        destroyed: IDs removed from the world this tick
        logs: Human-readable log lines
    """
    damage: Dict[int, float] = field(default_factory=dict)
    healing: Dict[int, float] = field(default_factory=dict)
    destroyed: List[int] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "damage": {str(k): v for k, v in self.damage.items()},
            "healing": {str(k): v for k, v in self.healing.items()},
            "destroyed": list(self.destroyed),
            "logs": list(self.logs),
        }


class CombatResolver:
    """Stateless resolver for combat intents and automatic tower fire."""

    def resolve_combat(
        self,
        world: WorldState,
        orders: Mapping[int, Sequence[Action] | Action],
    ) -> CombatReport:
        damage: Dict[int, float] = defaultdict(float)
        healing: Dict[int, float] = defaultdict(float)
        logs: List[str] = []

        for unit_id in sorted(orders):
            unit = world.get_unit(unit_id)
            if unit is None:
                continue
            for action in normalize_orders(orders[unit_id]):
                if action.type in (ActionType.MOVE, ActionType.WAIT):
                    continue
                validation = validate_action_in_world(world, unit, action)
                if not validation.valid:
                    logs.append(f"{action} rejected: {validation.message}")
                    continue

                if action.type == ActionType.RANGED_MASS_ATTACK:
                    power = RANGED_ATTACK_POWER * unit.get_active_bodyparts(BodyPart.RANGED_ATTACK)
                    for entity in world.get_all_entities():
                        if entity.team is None or entity.team == unit.team or not entity.alive:
                            continue
                        distance = world.grid.range(unit.pos, entity.pos)
                        multiplier = RANGED_MASS_ATTACK_MULTIPLIERS.get(distance, 0.0) if distance > 0 else 0.0
                        if multiplier:
                            damage[entity.id] += power * multiplier
                    logs.append(f"{unit.label()} mass attacks")
                    continue

                target_id = action.params["target_id"]
                if action.type == ActionType.ATTACK:
                    damage[target_id] += ATTACK_POWER * unit.get_active_bodyparts(BodyPart.ATTACK)
                elif action.type == ActionType.RANGED_ATTACK:
                    damage[target_id] += RANGED_ATTACK_POWER * unit.get_active_bodyparts(BodyPart.RANGED_ATTACK)
                elif action.type == ActionType.DISMANTLE:
                    damage[target_id] += DISMANTLE_POWER * unit.get_active_bodyparts(BodyPart.WORK)
                elif action.type == ActionType.HEAL:
                    healing[target_id] += HEAL_POWER * unit.get_active_bodyparts(BodyPart.HEAL)
                elif action.type == ActionType.RANGED_HEAL:
                    healing[target_id] += RANGED_HEAL_POWER * unit.get_active_bodyparts(BodyPart.HEAL)
                logs.append(f"{unit.label()} {action}")

        self._resolve_towers(world, damage, logs)
        destroyed = self._apply(world, damage, healing, logs)

        return CombatReport(
            damage=dict(damage),
            healing=dict(healing),
            destroyed=destroyed,
            logs=logs,
        )

    def _resolve_towers(self, world: WorldState, damage: Dict[int, float], logs: List[str]) -> None:
        """Every charged tower fires at the closest enemy unit (lowest ID on ties)."""
        for tower in world.structures():
            if not tower.is_defense or tower.team is None:
                continue
            enemies = world.units(tower.team.opponent)
            if not enemies:
                continue
            target = min(enemies, key=lambda u: (world.grid.range(tower.pos, u.pos), u.id))
            amount = tower_damage(world.grid.range(tower.pos, target.pos))
            if amount <= 0:
                continue
            tower.energy -= TOWER_ENERGY_COST
            damage[target.id] += amount
            logs.append(f"{tower.label()} fires at {target.label()} for {amount:.0f}")

    def _apply(
        self,
        world: WorldState,
        damage: Dict[int, float],
        healing: Dict[int, float],
        logs: List[str],
    ) -> List[int]:
        destroyed: List[int] = []
        for entity_id in sorted(set(damage) | set(healing)):
            entity = world.get_entity(entity_id)
            if entity is None:
                continue
            delta = healing.get(entity_id, 0.0) - damage.get(entity_id, 0.0)
            entity.hits = min(entity.hits_max, int(entity.hits + delta))
            if entity.hits <= 0:
                world.remove_entity(entity_id)
                destroyed.append(entity_id)
                logs.append(f"{entity.label()} destroyed")
        return destroyed
