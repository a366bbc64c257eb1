"""
Retreat governor - the per-agent ENGAGING / RECOVERING state machine.

The state is a single persisted flag (`recovering`) that is re-read and
re-evaluated every tick. Thresholds are fractions of hits_max:

    ENGAGING   -> RECOVERING  when hits <  hits_max * retreat
    RECOVERING -> ENGAGING    when hits >= hits_max * reengage

and reengage always sits at least HYSTERESIS_EPSILON above retreat, so a
unit cannot flip twice at the same hitpoint value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from sim.core.types import Goal, GridPos, Phase
from sim.world.grid import round_half_up
from infra.logger import get_logger

if TYPE_CHECKING:
    from .agent import CombatAgent

log = get_logger(__name__)

HYSTERESIS_EPSILON = 0.05
REENGAGE_MARGIN = 0.10

# Retreat avoidance radius, rally approach range and danger memory (ticks)
DANGER_RANGE = 5
RALLY_RANGE = 3
EDGE_DANGER_TICKS = 3

# (damage-to-healing ratio that must be exceeded, retreat threshold), highest first
RETREAT_TABLE = (
    (1.5, 0.90),
    (1.0, 0.85),
    (0.5, 0.75),
)
BASE_RETREAT = 0.60


@dataclass(frozen=True)
class RetreatThresholds:
    """A retreat / re-engage pair honouring the hysteresis gap."""
    retreat: float
    reengage: float

    def __post_init__(self):
        if not 0.0 < self.retreat <= 1.0:
            raise ValueError(f"retreat threshold must be in (0, 1]: {self.retreat}")
        if self.reengage > 1.0:
            raise ValueError(f"reengage threshold cannot exceed 1.0: {self.reengage}")
        # Rounded so that 0.95 >= 0.90 + 0.05 holds despite float error
        if round(self.reengage - self.retreat, 9) < HYSTERESIS_EPSILON:
            raise ValueError(
                f"reengage {self.reengage} must be at least {HYSTERESIS_EPSILON} above retreat {self.retreat}"
            )


def dynamic_thresholds(incoming_damage: float, healing_capacity: float) -> RetreatThresholds:
    """Pick thresholds from how far incoming damage outstrips available healing."""
    retreat = BASE_RETREAT
    for ratio, threshold in RETREAT_TABLE:
        if incoming_damage > healing_capacity * ratio:
            retreat = threshold
            break
    return RetreatThresholds(retreat, round(min(retreat + REENGAGE_MARGIN, 1.0), 2))


def next_phase(phase: Phase, hits: int, hits_max: int, thresholds: RetreatThresholds) -> Phase:
    if phase == Phase.RECOVERING:
        return Phase.RECOVERING if hits < hits_max * thresholds.reengage else Phase.ENGAGING
    return Phase.RECOVERING if hits < hits_max * thresholds.retreat else Phase.ENGAGING


class RetreatGovernor:
    """
    Dynamic-threshold governor.

    Thresholds follow the ratio of incoming damage (in-range hostile melee
    and ranged plus hostile towers) to the friendly healing that can
    reach the agent this tick.
    """

    def thresholds_for(self, agent: CombatAgent) -> RetreatThresholds:
        threat = agent.intel.threat_at(agent.pos)
        return dynamic_thresholds(threat.incoming, threat.healing)

    def update(self, agent: CombatAgent) -> Phase:
        """Advance the agent's state machine for this tick and persist it."""
        phase = Phase.RECOVERING if agent.recovering else Phase.ENGAGING
        thresholds = self.thresholds_for(agent)
        new_phase = next_phase(phase, agent.hits, agent.hits_max, thresholds)
        if new_phase != phase:
            log.debug(
                "%s %s -> %s at %d/%d (retreat %.2f, reengage %.2f)",
                agent.unit.label(), phase, new_phase, agent.hits, agent.hits_max,
                thresholds.retreat, thresholds.reengage,
            )
        agent.recovering = new_phase == Phase.RECOVERING
        return new_phase

    def needs_to_recover(self, agent: CombatAgent) -> bool:
        return self.update(agent) == Phase.RECOVERING

    def rally_point(self, agent: CombatAgent) -> GridPos:
        """Middle of the team's structures, or the map center when it has none."""
        structures = agent.world.structures(agent.team)
        if not structures:
            return agent.world.grid.center
        return (
            round_half_up(sum(s.pos[0] for s in structures) / len(structures)),
            round_half_up(sum(s.pos[1] for s in structures) / len(structures)),
        )

    def recover(self, agent: CombatAgent, rally: Optional[GridPos] = None) -> bool:
        """
        Fall back toward friendly ground to get healed.

        Hostiles within DANGER_RANGE (or any hostile tower) refresh the
        danger mark. If no retreat step exists and the agent stands on the
        map border shortly after being in danger, it steps back inside. A
        retreat step that slides along the border is taken as it is.
        """
        hostiles = agent.intel.hostiles()
        grid = agent.world.grid
        tick = agent.world.tick

        if any(grid.range(agent.pos, h.pos) <= DANGER_RANGE for h in hostiles) or agent.intel.hostile_defenses():
            agent.last_in_danger = tick

        approach: List[Goal] = [Goal(rally if rally is not None else self.rally_point(agent), RALLY_RANGE)]
        avoid = [Goal(h.pos, DANGER_RANGE) for h in hostiles]
        agent.heal_self_if_possible()
        moved = agent.combat_move(approach, avoid, allow_edge=True)

        if not moved and grid.is_edge(agent.pos) and self.recently_endangered(agent, tick):
            return agent.move_off_edge()
        return moved

    def recently_endangered(self, agent: CombatAgent, tick: int) -> bool:
        """A danger mark younger than EDGE_DANGER_TICKS; never marked means no."""
        return agent.last_in_danger is not None and tick < agent.last_in_danger + EDGE_DANGER_TICKS


class StaticRetreatGovernor(RetreatGovernor):
    """Governor with fixed thresholds (pair defense uses 0.85 / 1.0)."""

    def __init__(self, retreat: float = 0.85, reengage: float = 1.0):
        self.thresholds = RetreatThresholds(retreat, reengage)

    def thresholds_for(self, agent: CombatAgent) -> RetreatThresholds:
        return self.thresholds
