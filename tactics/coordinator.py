"""
SquadTacticalCoordinator - cross-squad decisions for one theater.

Runs once per tick, before any squad acts, and only after every squad
has finished assembling:

1. Pick targets and write them to every squad's memory:
   - hostile units present: one focus-fire target shared by all squads
   - only hostile structures: spawns / towers / extensions spread across
     squads round-robin
2. Flag squads that must regroup.
3. With two or more squads and a target, stage them on pincer points
   around it and release them together.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from sim.core.types import BodyPart, GridPos, StructureKind
from sim.world.grid import Grid, round_half_up
from infra.logger import get_logger

if TYPE_CHECKING:
    from sim.entities import Entity, Structure, Unit
    from .context import TheaterContext
    from .squad import Squad

log = get_logger(__name__)

REGROUP_HITS_RATIO = 0.5
PINCER_RADIUS = 5
PINCER_MARGIN = 2
STAGING_RANGE = 2
STAGING_TIMEOUT = 25

# Focus-fire scoring
OUTDAMAGE_BONUS = 1000.0
HEALER_BONUS = 500.0
HEAL_PART_BONUS = 30.0
CRITICAL_HITS_RATIO, CRITICAL_BONUS = 0.3, 400.0
WOUNDED_HITS_RATIO, WOUNDED_BONUS = 0.5, 200.0
DISTANCE_PENALTY = 15.0

TARGET_GROUPS = (StructureKind.SPAWN, StructureKind.TOWER, StructureKind.EXTENSION)


@dataclass
class CoordinationReport:
    """
    What the coordinator decided this tick.

    Attributes:
        ready: False while some squad is still assembling
        mode: "focus", "distribute" or None when there is nothing to hit
        targets: squad ref -> target id
        regroup: squad ref -> must fall back this tick
        pincer_points: squad ref -> staging cell
        engage: True once squads are cleared to attack
    """
    ready: bool
    mode: Optional[str] = None
    targets: Dict[str, Optional[int]] = field(default_factory=dict)
    regroup: Dict[str, bool] = field(default_factory=dict)
    pincer_points: Dict[str, GridPos] = field(default_factory=dict)
    engage: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ready": self.ready,
            "mode": self.mode,
            "targets": dict(self.targets),
            "regroup": dict(self.regroup),
            "pincer_points": {ref: list(p) for ref, p in self.pincer_points.items()},
            "engage": self.engage,
        }


def should_regroup(squad: Squad) -> bool:
    """Regroup when badly hurt overall or short of members."""
    return squad.hits_ratio < REGROUP_HITS_RATIO or len(squad.members) < squad.designed_size


def pincer_positions(n: int, target: GridPos, grid: Grid, radius: int = PINCER_RADIUS) -> List[GridPos]:
    """
    N staging points on a circle around `target`.

    Angles are 2*pi*i/N starting east, offsets rounded half up and
    clamped to stay PINCER_MARGIN cells inside the map. Fewer than two
    squads just use the target itself.
    """
    if n < 2:
        return [target]
    points = []
    for i in range(n):
        angle = 2 * math.pi * i / n
        x = target[0] + round_half_up(math.cos(angle) * radius)
        y = target[1] + round_half_up(math.sin(angle) * radius)
        points.append(grid.clamp((x, y), PINCER_MARGIN))
    return points


class SquadTacticalCoordinator:
    """
    Args:
        context: The theater being coordinated
        pincer_radius: Distance of staging points from the target
        staging_timeout: Ticks to wait for stragglers before engaging anyway
    """

    def __init__(
        self,
        context: TheaterContext,
        pincer_radius: int = PINCER_RADIUS,
        staging_timeout: int = STAGING_TIMEOUT,
    ):
        self.context = context
        self.pincer_radius = pincer_radius
        self.staging_timeout = staging_timeout

    # ------------------------------------------------------------------
    # Target selection
    # ------------------------------------------------------------------
    def focus_fire_target(self, squads: Sequence[Squad], hostiles: Sequence[Unit]) -> Optional[Unit]:
        intel = self.context.intel
        total_dps = sum(s.damage_output for s in squads)

        best: Optional[Unit] = None
        best_score = float("-inf")
        for hostile in sorted(hostiles, key=lambda h: h.id):
            if intel.on_hostile_rampart(hostile):
                continue
            score = 0.0
            if total_dps > intel.max_hostile_healing_to(hostile):
                score += OUTDAMAGE_BONUS
            heal_parts = hostile.get_active_bodyparts(BodyPart.HEAL)
            if heal_parts > 0:
                score += HEALER_BONUS + HEAL_PART_BONUS * heal_parts
            if hostile.hits_ratio < CRITICAL_HITS_RATIO:
                score += CRITICAL_BONUS
            elif hostile.hits_ratio < WOUNDED_HITS_RATIO:
                score += WOUNDED_BONUS
            score -= DISTANCE_PENALTY * sum(s.min_range_to(hostile.pos) for s in squads) / len(squads)

            if score > best_score:
                best, best_score = hostile, score
        return best

    def distribute_targets(self, squads: Sequence[Squad], structures: Sequence[Structure]) -> Dict[str, Structure]:
        grid = self.context.world.grid
        groups = [
            [s for s in structures if s.kind == kind]
            for kind in TARGET_GROUPS
        ]
        groups = [g for g in groups if g]
        if not groups:
            return {}
        assigned: Dict[str, Structure] = {}
        for i, squad in enumerate(squads):
            anchor = squad.anchor
            group = groups[i % len(groups)]
            assigned[squad.ref] = min(group, key=lambda s: (grid.range(anchor, s.pos), s.id))
        return assigned

    # ------------------------------------------------------------------
    # Main pass
    # ------------------------------------------------------------------
    def coordinate(self, squads: Sequence[Squad], objective: Optional[GridPos] = None) -> CoordinationReport:
        squads = sorted(squads, key=lambda s: s.ref)
        if not squads or not all(s.assembled for s in squads):
            return CoordinationReport(ready=False)

        intel = self.context.intel
        hostiles = intel.hostiles()
        structures = intel.hostile_structures()
        report = CoordinationReport(ready=True)

        shared: Optional[Entity] = None
        if hostiles:
            shared = self.focus_fire_target(squads, hostiles)
        if shared is not None:
            report.mode = "focus"
            for squad in squads:
                squad.target = shared
            log.debug("Focus fire on %s for %d squads", shared.label(), len(squads))
        elif structures:
            assigned = self.distribute_targets(squads, structures)
            report.mode = "distribute" if assigned else None
            for squad in squads:
                squad.target = assigned.get(squad.ref)
        else:
            for squad in squads:
                squad.target = None

        for squad in squads:
            report.targets[squad.ref] = squad.memory.target
            report.regroup[squad.ref] = should_regroup(squad)

        report.engage = self._stage(squads, shared, objective, report)
        return report

    def _stage(
        self,
        squads: Sequence[Squad],
        shared: Optional[Entity],
        objective: Optional[GridPos],
        report: CoordinationReport,
    ) -> bool:
        """Pincer staging gate. True once the squads may attack."""
        focus = shared.pos if shared is not None else objective
        if len(squads) < 2 or focus is None:
            return True

        if all(s.memory.staged for s in squads):
            return True

        tick = self.context.world.tick
        points = pincer_positions(len(squads), focus, self.context.world.grid, self.pincer_radius)
        for squad, point in zip(squads, points):
            report.pincer_points[squad.ref] = point
            if squad.memory.staging_since is None:
                squad.memory.staging_since = tick

        in_place = all(s.within(report.pincer_points[s.ref], STAGING_RANGE) for s in squads)
        started = min(s.memory.staging_since for s in squads)
        if in_place or tick - started >= self.staging_timeout:
            log.debug("Squads released from staging at tick %d (in place: %s)", tick, in_place)
            for squad in squads:
                squad.memory.staged = True
            return True
        return False
