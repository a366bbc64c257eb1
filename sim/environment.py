"""
TheaterEnv - Main simulation interface.

This is the primary API for the tactical simulation. It provides a
gym-like interface for running a theater tick by tick.

Usage:
    from sim import TheaterEnv
    from sim.scenario import create_squad_assault

    env = TheaterEnv()
    state = env.reset(scenario=create_squad_assault())

    done = False
    while not done:
        orders = get_orders(state)  # Your policies here
        state, done, info = env.step(orders)

    print(f"Winner: {state['world'].winner}")

State Structure:
    {
        "world": WorldState,
        "config": {
            "max_ticks": int | None,
        }
    }
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple
from dataclasses import dataclass, field

from .core.actions import Action
from .core.types import GameResult, Team
from .entities.base import Entity
from .world import WorldState
from .mechanics import CombatReport, CombatResolver, MovementReport, MovementResolver
from infra.logger import get_logger

if TYPE_CHECKING:
    from .scenario import Scenario

log = get_logger(__name__)


@dataclass
class StepInfo:
    """
    Metadata returned at the end of each step.

    All game state is in the returned state dict; this only carries
    what happened during the tick.
    """
    tick: int
    combat: CombatReport
    movement: MovementReport
    expired: List[int] = field(default_factory=list)
    result: GameResult = GameResult.IN_PROGRESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "combat": self.combat.to_dict(),
            "movement": self.movement.to_dict(),
            "expired": list(self.expired),
            "result": self.result.value,
        }


class TheaterEnv:
    """
    Theater Environment - Main simulation interface.

    The environment manages:
    - World state (entities, positions, per-team memory)
    - Game mechanics (combat, tower fire, movement)
    - Lifetime expiry and deaths
    - End-of-game detection

    Attributes:
        world: Current world state
        verbose: Whether to log every resolver line
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.world: Optional[WorldState] = None
        self._max_ticks: Optional[int] = None

        # Mechanics modules (stateless, can be reused)
        self._movement = MovementResolver()
        self._combat = CombatResolver()

    def reset(
        self,
        scenario: Scenario,
        world: WorldState | Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """
        Reset the environment with a scenario.

        Args:
            scenario: Scenario providing grid, entities and rules
            world: Optional saved world to resume from instead of the
                scenario's starting entities

        Returns:
            Initial state (same structure as step())
        """
        self._max_ticks = scenario.max_ticks

        if world is not None:
            self.world = WorldState.from_dict(world) if isinstance(world, dict) else world.clone()
            return self._build_state()

        self.world = WorldState(
            width=scenario.grid_width,
            height=scenario.grid_height,
            walls=scenario.walls,
            owner=scenario.owner,
            seed=scenario.seed,
        )
        # Copies keep the scenario reusable across resets
        for entity in scenario.entities:
            self.world.add_entity(Entity.from_dict(entity.to_dict()))

        log.info("Environment reset: %s", self.world)
        return self._build_state()

    def step(
        self,
        orders: Mapping[int, Sequence[Action] | Action],
    ) -> Tuple[Dict[str, Any], bool, StepInfo]:
        """
        Execute one tick of the simulation.

        Tick order:
        1. Advance the tick counter
        2. Lifetime housekeeping (expired units are removed)
        3. Combat: intents and tower fire, deaths applied
        4. Movement
        5. End-of-game check

        Args:
            orders: Map of unit_id -> intents (at most one per pipeline)

        Returns:
            Tuple of (state, done, info)

        Raises:
            RuntimeError: If reset() hasn't been called or the game is over
        """
        if self.world is None:
            raise RuntimeError("Must call reset() before calling step()")
        if self.world.game_over:
            raise RuntimeError("Game is over; call reset() to start again")

        self.world.tick += 1

        expired = self._housekeeping()
        combat = self._combat.resolve_combat(self.world, orders)
        movement = self._movement.resolve_actions(self.world, orders)

        if self.verbose:
            for line in combat.logs + movement.logs:
                log.debug("[tick %d] %s", self.world.tick, line)

        result = self._check_game_over()
        info = StepInfo(
            tick=self.world.tick,
            combat=combat,
            movement=movement,
            expired=expired,
            result=result,
        )
        return self._build_state(), self.world.game_over, info

    def _build_state(self) -> Dict[str, Any]:
        return {
            "world": self.world,
            "config": {
                "max_ticks": self._max_ticks,
            },
        }

    def _housekeeping(self) -> List[int]:
        """Age every unit by one tick and remove the ones whose lifetime ran out."""
        expired: List[int] = []
        for unit in self.world.units():
            if unit.ticks_to_live is None:
                continue
            unit.ticks_to_live -= 1
            if unit.ticks_to_live <= 0:
                self.world.remove_entity(unit.id)
                expired.append(unit.id)
        if expired:
            log.debug("Units expired at tick %d: %s", self.world.tick, expired)
        return expired

    def _check_game_over(self) -> GameResult:
        world = self.world
        defeated = {
            team for team in Team
            if not world.units(team) and not world.structures(team)
        }

        if len(defeated) == 2:
            self._finish(None, "Both sides destroyed")
            return GameResult.DRAW
        if defeated:
            loser = defeated.pop()
            self._finish(loser.opponent, f"{loser.name} has no forces left")
            return GameResult.BLUE_WINS if loser == Team.RED else GameResult.RED_WINS
        if self._max_ticks is not None and world.tick >= self._max_ticks:
            self._finish(None, f"Tick limit {self._max_ticks} reached")
            return GameResult.DRAW
        return GameResult.IN_PROGRESS

    def _finish(self, winner: Optional[Team], reason: str) -> None:
        self.world.game_over = True
        self.world.winner = winner
        self.world.game_over_reason = reason
        log.info("Game over at tick %d: %s", self.world.tick, reason)

    def close(self) -> None:
        """Currently a no-op, provided for gym compatibility."""
        pass

    @property
    def is_game_over(self) -> bool:
        return self.world is not None and self.world.game_over

    @property
    def winner(self) -> Optional[Team]:
        """Get winner (None if draw or in progress)."""
        return self.world.winner if self.world else None
