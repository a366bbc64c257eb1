"""
Squad assault - several squads attacking one objective together.

Per tick:
1. Match units into squads (lifetime-aware, per-role caps)
2. Squads that are still forming gather at their assembly points
3. Once every squad is assembled the coordinator picks targets,
   flags squads for regroup and runs the pincer staging gate
4. Each squad regroups, moves to its pincer point, or engages

Units whose role has no squad seat fight on their own toward the objective.
"""

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from sim.core.types import GridPos, Role, Team
from tactics import (
    RetreatGovernor,
    Squad,
    SquadTacticalCoordinator,
    TheaterContext,
)
from tactics.coordinator import REGROUP_HITS_RATIO
from infra.logger import get_logger
from infra.settings import TacticsSettings
from .base_policy import BasePolicy, Orders
from .registry import register_policy

if TYPE_CHECKING:
    from sim.environment import StepInfo
    from sim.world.grid import Grid

log = get_logger(__name__)

DEFAULT_MAX_PER_ROLE = {Role.MELEE: 2, Role.RANGED: 1, Role.HEALER: 1}
ASSEMBLY_SPACING = 4
ASSEMBLY_MARGIN = 2
REFORM_RANGE = 2


def _as_pos(value: Optional[Sequence[int]]) -> Optional[GridPos]:
    if value is None:
        return None
    return (int(value[0]), int(value[1]))


def _parse_caps(raw: Optional[Mapping[Any, int]]) -> Dict[Role, int]:
    if raw is None:
        return dict(DEFAULT_MAX_PER_ROLE)
    return {role if isinstance(role, Role) else Role(role): int(cap) for role, cap in raw.items()}


@register_policy("squad_assault")
class SquadAssaultPolicy(BasePolicy):
    """
    Args:
        team: Team to control
        name: Optional policy name
        objective: Cell to advance on when no target is known
        rally: Assembly and regroup point (default: grid center)
        max_per_role: Per-role seat caps, keyed by role name
    """

    def __init__(
        self,
        team: Team,
        name: str | None = None,
        *,
        objective: Optional[Sequence[int]] = None,
        rally: Optional[Sequence[int]] = None,
        max_per_role: Optional[Mapping[Any, int]] = None,
        settings: Optional[TacticsSettings] = None,
    ):
        super().__init__(team, name, settings)
        self.objective = _as_pos(objective)
        self.rally = _as_pos(rally)
        self.max_per_role = _parse_caps(max_per_role)
        self.governor = RetreatGovernor()

    def assembly_point(self, index: int, rally: GridPos, grid: "Grid") -> GridPos:
        """Assembly cells fan out along x from the rally point."""
        return grid.clamp((rally[0] + index * ASSEMBLY_SPACING, rally[1]), ASSEMBLY_MARGIN)

    def get_actions(
        self,
        state: Dict[str, Any],
        step_info: Optional["StepInfo"] = None,
        **kwargs: Any,
    ) -> Tuple[Orders, Dict[str, Any]]:
        world = state["world"]
        context = TheaterContext(world, self.team)
        rally = self.rally or world.grid.center

        squads = context.make_squads(
            context.agents(), self.max_per_role, self.settings.squad_tick_difference
        )
        refs = sorted(squads)
        points = {ref: self.assembly_point(i, rally, world.grid) for i, ref in enumerate(refs)}

        for ref in refs:
            if not squads[ref].assembled:
                squads[ref].assemble(points[ref])

        coordinator = SquadTacticalCoordinator(
            context, self.settings.pincer_radius, self.settings.staging_timeout
        )
        report = coordinator.coordinate(list(squads.values()), self.objective)

        for ref in refs:
            squad = squads[ref]
            if not report.ready:
                # Assembled squads hold while the rest form up
                if squad.assembled:
                    squad.go_to(points[ref], REFORM_RANGE)
            elif report.regroup.get(ref):
                self._regroup(squad, rally)
            elif not report.engage and ref in report.pincer_points:
                squad.go_to(report.pincer_points[ref], 1)
            else:
                squad.engage(objective=self.objective)

        loners = [a for a in context.agents() if a.squad_ref is None]
        for agent in loners:
            agent.auto_combat(self.objective, self.governor, rally)

        intel = context.intel
        squad_damage = (
            sum(s.damage_output for s in squads.values()) / len(squads) if squads else 0.0
        )

        context.commit()
        orders = context.orders()
        metadata: Dict[str, Any] = {
            "policy": "squad_assault",
            "squads": {ref: [m.id for m in squads[ref].members] for ref in refs},
            "coordination": report.to_dict(),
            "threat_level": intel.threat_level(),
            "needed_squads": intel.needed_squads(squad_damage),
            "loners": [a.id for a in loners],
            "injections": {**kwargs},
            "actions_count": len(orders),
        }
        return orders, metadata

    def _regroup(self, squad: Squad, rally: GridPos) -> None:
        squad.regroup(rally)
        # A weakened squad that made it home healthy again fights on at its new size
        if squad.within(rally, REFORM_RANGE) and squad.hits_ratio >= REGROUP_HITS_RATIO \
                and len(squad.members) < squad.designed_size:
            log.info("Squad %s reformed at %s with %d members", squad.ref, rally, len(squad.members))
            squad.memory.designed_size = len(squad.members)
