"""
TheaterContext - everything one team's tactical pass needs for one tick.

The context is built fresh each tick from the world: it wraps the team's
live units as CombatAgents, loads the persisted theater record and hands
out squad refs. Nothing is global, so any number of theaters (or tests)
can run side by side.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional

from sim.core.actions import Action
from sim.core.constants import DEFAULT_SQUAD_TICK_DIFFERENCE
from sim.core.types import Role, Team
from sim.mechanics.movement import CombatMovement
from sim.utils.id_generator import format_squad_ref
from sim.world import WorldState
from infra.logger import get_logger

from .agent import CombatAgent
from .intel import CombatIntel
from .matching import find_squad
from .memory import SquadMemory, TheaterMemory, load_theater_memory, save_theater_memory
from .squad import Squad

log = get_logger(__name__)


class TheaterContext:
    """
    Per-tick tactical state for `team` in `world`.

    Args:
        world: Current world state
        team: Team being controlled
        mover: Movement collaborator shared by all agents
    """

    def __init__(self, world: WorldState, team: Team, mover: Optional[CombatMovement] = None):
        self.world = world
        self.team = team
        self.intel = CombatIntel(world, team)
        self.mover = mover or CombatMovement()
        self.theater: TheaterMemory = load_theater_memory(world.team_memory(team))
        self._agents: Dict[int, CombatAgent] = {
            unit.id: CombatAgent(unit, world, intel=self.intel, mover=self.mover)
            for unit in world.units(team)
        }

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------
    def agent(self, agent_id: Optional[int]) -> Optional[CombatAgent]:
        """Live agent by id; a stale id resolves to None."""
        if agent_id is None:
            return None
        return self._agents.get(agent_id)

    def agents(self, *roles: Role) -> List[CombatAgent]:
        """Live agents in id order, optionally filtered by role."""
        return [a for a in self._agents.values() if not roles or a.role in roles]

    # ------------------------------------------------------------------
    # Squads
    # ------------------------------------------------------------------
    def mint_ref(self) -> str:
        """Next unused squad ref from the persisted counter."""
        taken = set(self.theater.squads) | {a.squad_ref for a in self._agents.values() if a.squad_ref}
        while True:
            ref = format_squad_ref(self.theater.next_squad)
            self.theater.next_squad += 1
            if ref not in taken:
                return ref

    def squad_memory(self, ref: str) -> SquadMemory:
        return self.theater.squads.setdefault(ref, SquadMemory())

    def make_squads(
        self,
        agents: Iterable[CombatAgent],
        max_per_role: Mapping[Role, int],
        tolerance_ticks: int = DEFAULT_SQUAD_TICK_DIFFERENCE,
    ) -> Dict[str, Squad]:
        """
        Match every agent to a squad and build the Squad objects.

        Agents are matched in id order. Afterwards per-role caps are
        enforced: members over a cap (highest ids first) lose their ref and
        are matched once more. Agents whose role has no cap are left out.
        """
        pool = sorted(agents, key=lambda a: a.id)
        eligible = [a for a in pool if max_per_role.get(a.role, 0) > 0]
        for agent in pool:
            if agent not in eligible and agent.squad_ref is not None:
                agent.squad_ref = None

        for agent in eligible:
            find_squad(agent, eligible, max_per_role, tolerance_ticks, mint_ref=self.mint_ref)

        overflow = self._enforce_caps(eligible, max_per_role)
        for agent in overflow:
            find_squad(agent, eligible, max_per_role, tolerance_ticks, mint_ref=self.mint_ref)

        by_ref: Dict[str, List[CombatAgent]] = defaultdict(list)
        for agent in eligible:
            by_ref[agent.squad_ref].append(agent)

        for ref in sorted(set(self.theater.squads) - set(by_ref)):
            log.debug("Squad %s has no live members, dropping it", ref)
            del self.theater.squads[ref]

        return {
            ref: Squad(ref, by_ref[ref], max_per_role, self.squad_memory(ref))
            for ref in sorted(by_ref)
        }

    def _enforce_caps(self, agents: List[CombatAgent], max_per_role: Mapping[Role, int]) -> List[CombatAgent]:
        seats: Dict[tuple, int] = defaultdict(int)
        overflow: List[CombatAgent] = []
        for agent in agents:
            key = (agent.squad_ref, agent.role)
            seats[key] += 1
            if seats[key] > max_per_role.get(agent.role, 0):
                log.debug("Squad %s over its %s cap, releasing %s", agent.squad_ref, agent.role, agent.unit.label())
                agent.squad_ref = None
                overflow.append(agent)
        return overflow

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def commit(self) -> None:
        """Persist the theater record (agent fields are written as they change)."""
        save_theater_memory(self.theater, self.world.team_memory(self.team))

    def orders(self) -> Dict[int, List[Action]]:
        return {a.id: a.orders() for a in self._agents.values() if a.orders()}
