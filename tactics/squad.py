"""
Squad - a capped group of agents that moves and fights together.

A squad is rebuilt from its members' refs every tick; its coordination
flags live in a persisted SquadMemory record. The shared target is stored
as an id and re-resolved on every read.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence

from sim.core.types import BodyPart, Goal, GridPos, Role
from sim.world.grid import round_half_up
from infra.logger import get_logger

from .intel import attack_damage, ranged_attack_damage
from .memory import SquadMemory
from .targeting import find_closest_hurt_friendly

if TYPE_CHECKING:
    from sim.entities import Entity
    from sim.world import WorldState
    from .agent import CombatAgent

log = get_logger(__name__)

ASSEMBLY_RANGE = 2
REGROUP_AVOID_RANGE = 4


class Squad:
    """
    Args:
        ref: Opaque squad token
        members: Live member agents (stored in id order)
        max_per_role: Per-role caps
        memory: Persisted coordination flags
    """

    def __init__(
        self,
        ref: str,
        members: Sequence[CombatAgent],
        max_per_role: Mapping[Role, int],
        memory: SquadMemory,
    ):
        if not members:
            raise ValueError(f"Squad {ref} needs at least one member")
        self.ref = ref
        self.members: List[CombatAgent] = sorted(members, key=lambda m: m.id)
        self.max_per_role: Dict[Role, int] = dict(max_per_role)
        self.memory = memory

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    @property
    def world(self) -> WorldState:
        return self.members[0].world

    @property
    def designed_size(self) -> int:
        if self.memory.designed_size is not None:
            return self.memory.designed_size
        return sum(self.max_per_role.values())

    @property
    def assembled(self) -> bool:
        return self.memory.assembly_complete

    @property
    def anchor(self) -> GridPos:
        """Rounded mean position of the members."""
        n = len(self.members)
        return (
            round_half_up(sum(m.pos[0] for m in self.members) / n),
            round_half_up(sum(m.pos[1] for m in self.members) / n),
        )

    @property
    def hits(self) -> int:
        return sum(m.hits for m in self.members)

    @property
    def hits_max(self) -> int:
        return sum(m.hits_max for m in self.members)

    @property
    def hits_ratio(self) -> float:
        return self.hits / self.hits_max

    @property
    def damage_output(self) -> float:
        """Combined melee and ranged damage per tick."""
        return sum(attack_damage(m.unit) + ranged_attack_damage(m.unit) for m in self.members)

    def role_counts(self) -> Counter:
        return Counter(m.role for m in self.members)

    def min_range_to(self, pos: GridPos) -> int:
        grid = self.world.grid
        return min(grid.range(m.pos, pos) for m in self.members)

    def within(self, pos: GridPos, range: int) -> bool:
        grid = self.world.grid
        return all(grid.range(m.pos, pos) <= range for m in self.members)

    # ------------------------------------------------------------------
    # Shared target
    # ------------------------------------------------------------------
    @property
    def target(self) -> Optional[Entity]:
        if self.memory.target is None:
            return None
        entity = self.world.get_entity(self.memory.target)
        if entity is None:
            log.debug("Squad %s target %s is gone", self.ref, self.memory.target)
            self.memory.target = None
        return entity

    @target.setter
    def target(self, entity: Optional[Entity]) -> None:
        target_id = entity.id if entity is not None else None
        if target_id != self.memory.target:
            self.memory.target = target_id
            self.memory.staged = False
            # A switch keeps the staging clock running; losing every target stops it
            if target_id is None:
                self.memory.staging_since = None

    # ------------------------------------------------------------------
    # Behaviours
    # ------------------------------------------------------------------
    def assemble(self, point: GridPos) -> bool:
        """
        Gather at `point`.

        Assembly completes once every member is within ASSEMBLY_RANGE. Refs
        are sticky, so a squad still short of its designed size at that
        point can never fill up; it assembles at the size it has, and that
        size becomes the designed size from then on.
        """
        if self.memory.assembly_complete:
            return True
        for member in self.members:
            member.auto_heal()
            member.go_to(point, ASSEMBLY_RANGE)
        if self.within(point, ASSEMBLY_RANGE):
            if len(self.members) < self.designed_size:
                log.info("Squad %s assembling short: %d of %d", self.ref, len(self.members), self.designed_size)
            self.memory.assembly_complete = True
            self.memory.designed_size = len(self.members)
            log.info("Squad %s assembled at %s with %d members", self.ref, point, len(self.members))
        return self.memory.assembly_complete

    def go_to(self, pos: GridPos, range: int = 1) -> None:
        for member in self.members:
            member.auto_melee()
            member.auto_ranged()
            member.auto_heal()
            member.go_to(pos, range)

    def regroup(self, rally: GridPos) -> None:
        """Fall back to the rally point, healing on the way."""
        hostiles = self.members[0].intel.hostiles()
        avoid = [Goal(h.pos, REGROUP_AVOID_RANGE) for h in hostiles]
        for member in self.members:
            member.auto_ranged()
            member.auto_heal()
            member.heal_self_if_possible()
            member.combat_move([Goal(rally, ASSEMBLY_RANGE)], avoid)

    def engage(self, target: Optional[Entity] = None, objective: Optional[GridPos] = None) -> None:
        """
        Fight together, hitting the shared target first when in reach.

        Without a target the squad advances on `objective`.
        """
        target = self.target if target is None else target
        grid = self.world.grid
        hostiles = self.members[0].intel.hostiles()
        member_units = [m.unit for m in self.members]

        for member in self.members:
            if target is not None:
                distance = grid.range(member.pos, target.pos)
                if distance <= 1 and member.active(BodyPart.WORK) > 0 and self.world.get_structure(target.id):
                    member.dismantle(target)
                elif distance <= 1 and member.active(BodyPart.ATTACK) > 0:
                    member.attack(target)
                if distance <= 3 and member.active(BodyPart.RANGED_ATTACK) > 0:
                    member.ranged_attack(target)

            if member.pipeline_free("melee"):
                member.auto_melee(hostiles)
            if member.pipeline_free("ranged"):
                member.auto_ranged(hostiles)
            member.auto_heal(friendlies=member_units)

            self._engage_move(member, target, objective, hostiles)

    def _engage_move(self, member: CombatAgent, target, objective, hostiles) -> None:
        if member.role == Role.HEALER:
            hurt = find_closest_hurt_friendly(member, [m.unit for m in self.members])
            member.go_to(hurt.pos if hurt is not None else self.anchor, 1)
            return
        if target is None:
            if objective is not None:
                member.go_to(objective, 1)
            return
        if member.role == Role.RANGED:
            avoid = [Goal(h.pos, 2) for h in hostiles if attack_damage(h) > 0]
            member.combat_move([Goal(target.pos, 3)], avoid)
        else:
            member.go_to(target.pos, 1)

    def __repr__(self) -> str:
        return (f"Squad(ref={self.ref!r}, members={[m.id for m in self.members]}, "
                f"assembled={self.memory.assembly_complete}, target={self.memory.target})")
