"""
Fire-support positioning.

A kiting unit leads chasers into friendly tower fire. The search is a flat
scan of a (2r+1) x (2r+1) box around the middle of the operational
towers; each cell is scored on tower damage, chaser distance, distance
from the map border and travel cost. The scan is row-major (y outer,
x inner) and only a strictly better score replaces the current best, so
identical snapshots always give the same cell.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from sim.core.types import GridPos
from sim.world.grid import round_half_up
from infra.logger import get_logger

from .intel import attack_damage

if TYPE_CHECKING:
    from sim.entities import Structure, Unit
    from .agent import CombatAgent

log = get_logger(__name__)

DEFAULT_SEARCH_RADIUS = 8

# Preferred band of ranges to the nearest hostile
KITE_BAND = (3, 4)
KITE_BONUS = 100.0
TOO_CLOSE_PENALTY = 50.0
TOO_FAR_RANGE = 6
TOO_FAR_PENALTY = 20.0
EDGE_WEIGHT = 2.0
TRAVEL_WEIGHT = 0.5


class FireSupportPositioner:
    """
    Scores cells around the friendly towers and picks the best lure spot.

    Args:
        search_radius: Half-width of the search box
    """

    def __init__(self, search_radius: int = DEFAULT_SEARCH_RADIUS):
        if search_radius < 0:
            raise ValueError(f"search_radius cannot be negative: {search_radius}")
        self.search_radius = search_radius

    def score(
        self,
        agent: CombatAgent,
        pos: GridPos,
        towers: Sequence[Structure],
        hostiles: Sequence[Unit],
    ) -> float:
        grid = agent.world.grid
        score = agent.intel.tower_damage_at(pos, towers)

        nearest = min(grid.range(pos, h.pos) for h in hostiles)
        if KITE_BAND[0] <= nearest <= KITE_BAND[1]:
            score += KITE_BONUS
        elif nearest < KITE_BAND[0]:
            score -= TOO_CLOSE_PENALTY * (KITE_BAND[0] - nearest)
        elif nearest > TOO_FAR_RANGE:
            score -= TOO_FAR_PENALTY * (nearest - TOO_FAR_RANGE)

        score += EDGE_WEIGHT * grid.edge_distance(pos)
        score -= TRAVEL_WEIGHT * grid.range(agent.pos, pos)
        return score

    def find_position(
        self,
        agent: CombatAgent,
        towers: Optional[Sequence[Structure]] = None,
        hostiles: Optional[Sequence[Unit]] = None,
    ) -> Optional[GridPos]:
        """
        Best lure cell for `agent`, or None without towers or hostiles.

        Border cells and cells blocked by terrain or solid structures are
        never candidates.
        """
        towers = agent.intel.friendly_defenses() if towers is None else list(towers)
        hostiles = agent.intel.hostiles() if hostiles is None else list(hostiles)
        if not towers or not hostiles:
            return None

        world = agent.world
        cx = round_half_up(sum(t.pos[0] for t in towers) / len(towers))
        cy = round_half_up(sum(t.pos[1] for t in towers) / len(towers))
        r = self.search_radius

        best: Optional[GridPos] = None
        best_score = float("-inf")
        for y in range(cy - r, cy + r + 1):
            for x in range(cx - r, cx + r + 1):
                pos = (x, y)
                if not world.grid.in_bounds(pos) or world.grid.is_edge(pos):
                    continue
                if not world.is_passable(pos):
                    continue
                score = self.score(agent, pos, towers, hostiles)
                if score > best_score:
                    best, best_score = pos, score

        return best

    def kite_range(self, agent: CombatAgent, hostiles: Sequence[Unit]) -> int:
        """3 when the nearest hostile has no melee power, else 2."""
        grid = agent.world.grid
        nearest = min(hostiles, key=lambda h: (grid.range(agent.pos, h.pos), h.id))
        return 3 if attack_damage(nearest) == 0 else 2

    def lure(self, agent: CombatAgent) -> Optional[bool]:
        """
        Move to the lure cell, or kite once there.

        Returns None when there is nothing to lure with or toward, so the
        caller can fall back to ordinary combat.
        """
        hostiles = agent.intel.hostiles()
        target = self.find_position(agent, hostiles=hostiles)
        if target is None:
            return None
        if agent.pos == target:
            agent.heal_self_if_possible()
            return agent.kite_from_hostiles(hostiles, self.kite_range(agent, hostiles))
        log.debug("%s heading to lure cell %s", agent.unit.label(), target)
        return agent.go_to(target, 0)
