"""
CombatAgent - one controllable combat unit, as seen by the tactics layer.

The agent wraps a simulation `Unit` and adds:
- Typed access to its persisted relation fields (partner, squad,
  recovering, last_in_danger), written through to the unit's memory
- Intent bookkeeping: at most one intent per action pipeline per tick
- The elementary combat behaviours the policies compose

Agents never mutate the world. They only queue intents that the
simulation resolves after every policy has run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence

from sim.core.actions import Action
from sim.core.constants import CREEP_LIFE_TIME
from sim.core.types import BodyPart, Goal, GridPos, Role, Team
from sim.core.validation import validate_action_in_world
from sim.mechanics.movement import CombatMovement
from infra.logger import get_logger

from .intel import CombatIntel, attack_damage, ranged_attack_damage
from .memory import AgentMemory, load_agent_memory, save_agent_memory
from .targeting import (
    find_best_healing_target_in_range,
    find_best_structure_target_in_range,
    find_best_unit_target_in_range,
    find_closest_hurt_friendly,
    find_target,
)

if TYPE_CHECKING:
    from sim.entities import Entity, Unit
    from sim.world import WorldState
    from .retreat import RetreatGovernor

log = get_logger(__name__)


class CombatAgent:
    """
    A combat unit plus its tactical state for the current tick.

    Args:
        unit: The simulated unit
        world: Current world state (read only)
        intel: Shared intel for the unit's team (built if omitted)
        mover: Movement collaborator (default CombatMovement)
    """

    def __init__(
        self,
        unit: Unit,
        world: WorldState,
        *,
        intel: Optional[CombatIntel] = None,
        mover: Optional[CombatMovement] = None,
    ):
        self.unit = unit
        self.world = world
        self.intel = intel or CombatIntel(world, unit.team)
        self.mover = mover or CombatMovement()
        self.memory: AgentMemory = load_agent_memory(unit.label(), unit.memory)
        self._intents: Dict[str, Action] = {}

    # ------------------------------------------------------------------
    # Unit state
    # ------------------------------------------------------------------
    @property
    def id(self) -> int:
        return self.unit.id

    @property
    def team(self) -> Team:
        return self.unit.team

    @property
    def role(self) -> Role:
        return self.unit.role

    @property
    def pos(self) -> GridPos:
        return self.unit.pos

    @property
    def hits(self) -> int:
        return self.unit.hits

    @property
    def hits_max(self) -> int:
        return self.unit.hits_max

    @property
    def ticks_to_live(self) -> Optional[int]:
        return self.unit.ticks_to_live

    @property
    def lifetime(self) -> int:
        """Remaining lifetime; unknown counts as a full lifetime."""
        return self.unit.ticks_to_live if self.unit.ticks_to_live is not None else CREEP_LIFE_TIME

    @property
    def alive(self) -> bool:
        return self.world.get_unit(self.unit.id) is not None and self.unit.alive

    def active(self, part: BodyPart) -> int:
        return self.unit.get_active_bodyparts(part)

    # ------------------------------------------------------------------
    # Persisted relation fields
    # ------------------------------------------------------------------
    def _write(self, **fields: Any) -> None:
        for name, value in fields.items():
            setattr(self.memory, name, value)
        save_agent_memory(self.memory, self.unit.memory)

    @property
    def partner_id(self) -> Optional[int]:
        return self.memory.partner

    @partner_id.setter
    def partner_id(self, value: Optional[int]) -> None:
        self._write(partner=value)

    @property
    def squad_ref(self) -> Optional[str]:
        return self.memory.squad

    @squad_ref.setter
    def squad_ref(self, value: Optional[str]) -> None:
        self._write(squad=value)

    @property
    def recovering(self) -> bool:
        return self.memory.recovering

    @recovering.setter
    def recovering(self, value: bool) -> None:
        self._write(recovering=value)

    @property
    def last_in_danger(self) -> Optional[int]:
        return self.memory.last_in_danger

    @last_in_danger.setter
    def last_in_danger(self, value: Optional[int]) -> None:
        self._write(last_in_danger=value)

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    def issue(self, action: Action) -> bool:
        """Queue an intent; it replaces any earlier intent in the same pipeline."""
        validation = validate_action_in_world(self.world, self.unit, action)
        if not validation.valid:
            log.debug("%s intent %s dropped: %s", self.unit.label(), action, validation.message)
            return False
        self._intents[action.type.pipeline] = action
        return True

    def pipeline_free(self, pipeline: str) -> bool:
        return pipeline not in self._intents

    def intent(self, pipeline: str) -> Optional[Action]:
        return self._intents.get(pipeline)

    def orders(self) -> List[Action]:
        return list(self._intents.values())

    def attack(self, target: Entity) -> bool:
        return self.issue(Action.attack(target.id))

    def ranged_attack(self, target: Entity) -> bool:
        return self.issue(Action.ranged_attack(target.id))

    def ranged_mass_attack(self) -> bool:
        return self.issue(Action.ranged_mass_attack())

    def heal(self, target: Entity | CombatAgent) -> bool:
        return self.issue(Action.heal(target.id))

    def ranged_heal(self, target: Entity | CombatAgent) -> bool:
        return self.issue(Action.ranged_heal(target.id))

    def dismantle(self, target: Entity) -> bool:
        return self.issue(Action.dismantle(target.id))

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------
    def combat_move(
        self,
        approach: Sequence[Goal] = (),
        avoid: Sequence[Goal] = (),
        *,
        allow_edge: bool = True,
    ) -> bool:
        """
        Ask the movement collaborator for one step.

        Returns False when no step results (NO_ACTION).
        """
        step = self.mover.plan(self.world, self.unit, approach, avoid, allow_edge=allow_edge)
        if step is None:
            return False
        return self.issue(Action.move(step))

    def go_to(self, pos: GridPos, range: int = 1) -> bool:
        return self.combat_move([Goal(pos, range)])

    def center_goal(self) -> Goal:
        """Loose goal toward the map center that keeps units clear of the border."""
        grid = self.world.grid
        return Goal(grid.center, max(1, min(grid.width, grid.height) // 2 - 5))

    def move_off_edge(self) -> bool:
        return self.combat_move([self.center_goal()], allow_edge=False)

    def park(self) -> bool:
        """Hold position, stepping off the map border if standing on it."""
        if self.world.grid.is_edge(self.pos):
            return self.move_off_edge()
        return False

    def kite_from_hostiles(self, hostiles: Iterable[Unit], range: int = 3) -> bool:
        """Keep every hostile at least `range` away without drifting onto the border."""
        avoid = [Goal(h.pos, range) for h in hostiles]
        approach = []
        if self.world.grid.edge_distance(self.pos) <= 2:
            approach.append(self.center_goal())
        return self.combat_move(approach, avoid)

    # ------------------------------------------------------------------
    # Standard action sequences
    # ------------------------------------------------------------------
    def auto_melee(self, hostiles: Optional[Iterable[Unit]] = None) -> bool:
        """Melee-attack the best unit in reach, else the best structure."""
        if self.active(BodyPart.ATTACK) == 0:
            return False
        hostiles = self.intel.hostiles() if hostiles is None else hostiles
        target = (find_best_unit_target_in_range(self, 1, hostiles)
                  or find_best_structure_target_in_range(self, 1, self.intel.hostile_structures()))
        if target is None:
            return False
        return self.attack(target)

    def auto_ranged(self, hostiles: Optional[Iterable[Unit]] = None, allow_mass_attack: bool = True) -> bool:
        """Ranged-attack the best target in range 3, or mass attack when that deals more."""
        if self.active(BodyPart.RANGED_ATTACK) == 0:
            return False
        hostiles = self.intel.hostiles() if hostiles is None else list(hostiles)
        target = (find_best_unit_target_in_range(self, 3, hostiles)
                  or find_best_structure_target_in_range(self, 3, self.intel.hostile_structures()))
        if target is None:
            return False
        if allow_mass_attack and self.intel.mass_attack_damage(self.unit, hostiles) > ranged_attack_damage(self.unit):
            return self.ranged_mass_attack()
        return self.ranged_attack(target)

    def auto_heal(self, allow_ranged_heal: bool = True, friendlies: Optional[Iterable[Unit]] = None) -> bool:
        """Heal the most damaged friendly in reach without displacing an attack."""
        if self.active(BodyPart.HEAL) == 0:
            return False
        friendlies = self.intel.friendlies() if friendlies is None else friendlies
        target = find_best_healing_target_in_range(self, 3 if allow_ranged_heal else 1, friendlies)
        if target is None:
            return False
        distance = self.world.grid.range(self.pos, target.pos)
        if distance <= 1 and self.pipeline_free("melee"):
            return self.heal(target)
        if allow_ranged_heal and distance <= 3 and self.pipeline_free("ranged"):
            return self.ranged_heal(target)
        return False

    def heal_self_if_possible(self) -> bool:
        """Heal self when hurt or under threat, unless that would displace an attack."""
        if self.active(BodyPart.HEAL) == 0 or not self.pipeline_free("melee"):
            return False
        threatened = any(self.world.grid.range(self.pos, h.pos) <= 3 for h in self.intel.hostiles())
        if self.hits < self.hits_max or threatened:
            return self.heal(self)
        return False

    def do_medic_actions(self) -> bool:
        """Follow and heal the closest hurt friendly, or park."""
        target = find_closest_hurt_friendly(self, self.intel.friendlies())
        if target is None:
            return self.park()
        distance = self.world.grid.range(self.pos, target.pos)
        if distance > 1:
            self.go_to(target.pos, 1)
        if distance <= 1:
            return self.heal(target)
        if distance <= 3:
            return self.ranged_heal(target)
        return False

    def auto_combat(
        self,
        objective: Optional[GridPos] = None,
        governor: Optional[RetreatGovernor] = None,
        rally: Optional[GridPos] = None,
    ) -> bool:
        """
        Fight whatever is closest, retreating when the governor says so.

        Ranged-leaning units hold range 3 and keep melee hostiles at 2;
        units without weapons fall back to medic duty. With nothing to
        fight the agent heads for `objective` if one is given.
        """
        if self.active(BodyPart.ATTACK) > 0:
            self.auto_melee()
        if self.active(BodyPart.RANGED_ATTACK) > 0:
            self.auto_ranged()
        if self.active(BodyPart.HEAL) > 0:
            self.auto_heal(allow_ranged_heal=True)

        if governor is not None and governor.needs_to_recover(self):
            log.debug("%s recovering", self.unit.label())
            return governor.recover(self, rally)

        if self.active(BodyPart.ATTACK) == 0 and self.active(BodyPart.RANGED_ATTACK) == 0:
            return self.do_medic_actions()

        hostiles = self.intel.hostiles()
        target = find_target(self, hostiles, self.intel.hostile_structures())
        if target is None:
            return self.go_to(objective, 1) if objective is not None else self.park()

        prefer_ranged = self.active(BodyPart.RANGED_ATTACK) > self.active(BodyPart.ATTACK)
        avoid: List[Goal] = []
        if prefer_ranged:
            avoid = [Goal(h.pos, 2) for h in hostiles if attack_damage(h) > 0]
        return self.combat_move([Goal(target.pos, 3 if prefer_ranged else 1)], avoid)

    def __repr__(self) -> str:
        return (f"CombatAgent(id={self.id}, role={self.role.value}, pos={self.pos}, "
                f"hits={self.hits}/{self.hits_max}, partner={self.partner_id}, squad={self.squad_ref})")
