"""
Movement - the movement collaborator.

This module handles:
- Turning approach/avoid goals into a single step (CombatMovement)
- Validating and applying MOVE intents (MovementResolver)
- Collision checks and movement logs

The tactics layer only ever hands over goals; it never computes paths.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple
from dataclasses import dataclass

from ..core.types import ActionType, BodyPart, Goal, GridPos
from ..core.actions import Action, normalize_orders
from ..core.validation import validate_action_in_world

if TYPE_CHECKING:
    from ..world.world import WorldState
    from ..entities.unit import Unit


class CombatMovement:
    """
    Greedy one-step mover honouring approach and avoid goals.

    Each tick the unit looks at its own cell and the eight neighbours and
    takes the cheapest one. Cost is the summed shortfall against approach
    goals plus a heavier penalty for every avoid goal it sits inside.
    Ties keep the unit in place, then fall back to row-major order.
    """

    def __init__(self, avoid_weight: float = 10.0):
        self.avoid_weight = avoid_weight

    def plan(
        self,
        world: WorldState,
        unit: Unit,
        approach: Sequence[Goal],
        avoid: Sequence[Goal] = (),
        *,
        allow_edge: bool = True,
    ) -> Optional[GridPos]:
        """
        Pick the next step for a unit.

        Args:
            world: Current world state (read only)
            unit: Unit to move
            approach: Goals to get within range of
            avoid: Goals to stay out of range of
            allow_edge: Whether the step may land on the outer map border

        Returns:
            The cell to step onto, or None when staying put is best
            (the NO_ACTION outcome).
        """
        if not approach and not avoid:
            return None
        if unit.get_active_bodyparts(BodyPart.MOVE) == 0:
            return None

        grid = world.grid
        best = unit.pos
        best_cost = self.cost(world, unit.pos, approach, avoid)

        for pos in grid.get_neighbors(unit.pos):
            if not world.is_passable(pos) or world.is_position_occupied(pos, ignore_id=unit.id):
                continue
            if not allow_edge and grid.is_edge(pos):
                continue
            cost = self.cost(world, pos, approach, avoid)
            if cost < best_cost:
                best, best_cost = pos, cost

        return None if best == unit.pos else best

    def cost(
        self,
        world: WorldState,
        pos: GridPos,
        approach: Sequence[Goal],
        avoid: Sequence[Goal],
    ) -> float:
        grid = world.grid
        shortfall = sum(max(0, grid.range(pos, g.pos) - g.range) for g in approach)
        intrusion = sum(max(0, g.range - grid.range(pos, g.pos)) for g in avoid)
        return shortfall + self.avoid_weight * intrusion


@dataclass
class MovementResult:
    """
    Result of resolving a single movement intent.

    Attributes:
        entity_id: ID of unit that moved (or tried to)
        success: Whether movement succeeded
        old_pos: Position before movement
        new_pos: Position after movement (same as old if failed)
        failure_reason: Optional machine-readable reason code when movement fails
    """
    entity_id: int
    success: bool
    old_pos: Tuple[int, int]
    new_pos: Tuple[int, int]
    failure_reason: str | None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize movement result to a plain dict."""
        return {
            "entity_id": self.entity_id,
            "success": self.success,
            "old_pos": list(self.old_pos),
            "new_pos": list(self.new_pos),
            "failure_reason": self.failure_reason,
        }


@dataclass
class MovementReport:
    """
    Complete result of resolving all movement intents for a tick.

    Attributes:
        movement_results: Results from all movement intents
        logs: Log lines in execution order (including skipped/invalid)
        movement_occurred: True if at least one unit successfully moved
    """
    movement_results: List[MovementResult]
    logs: List[str]
    movement_occurred: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "movement_results": [r.to_dict() for r in self.movement_results],
            "logs": self.logs,
            "movement_occurred": self.movement_occurred,
        }


class MovementResolver:
    """
    Stateless resolver for MOVE intents.

    Validates each step, checks collisions against units that already
    moved this tick, and applies position changes in place.
    """

    def resolve_actions(
        self,
        world: WorldState,
        orders: Mapping[int, Sequence[Action] | Action],
        randomize_order: bool = True
    ) -> MovementReport:
        """
        Resolve every MOVE intent for a tick.

        Args:
            world: Current world state (modified in-place)
            orders: Map of unit_id -> intents; non-MOVE intents are ignored here
            randomize_order: If True, shuffle resolution order with the world RNG
                to prevent ID bias

        Returns:
            MovementReport with all outcomes
        """
        queue: List[tuple[Unit, Action]] = []
        logs: List[str] = []

        for unit_id in sorted(orders):
            unit = world.get_unit(unit_id)
            if unit is None:
                logs.append(f"Orders provided for unknown or dead unit {unit_id}; ignoring")
                continue
            for action in normalize_orders(orders[unit_id]):
                if action.type == ActionType.MOVE:
                    queue.append((unit, action))

        if randomize_order:
            world.rng.shuffle(queue)

        results: List[MovementResult] = []
        for unit, action in queue:
            result, message = self.resolve_single(world, unit, action)
            results.append(result)
            logs.append(message)

        return MovementReport(
            movement_results=results,
            logs=logs,
            movement_occurred=any(r.success for r in results),
        )

    def resolve_single(
        self,
        world: WorldState,
        unit: Unit,
        action: Action
    ) -> Tuple[MovementResult, str]:
        """
        Resolve a single movement intent.

        Uses shared validation first (liveness, MOVE parts, bounds, adjacency,
        terrain), then the dynamic collision check.
        """
        old_pos = unit.pos

        validation = validate_action_in_world(world, unit, action)
        if not validation.valid:
            return MovementResult(unit.id, False, old_pos, old_pos, validation.error_code), validation.message

        new_pos = action.params["to"]
        # Occupancy is truly dynamic: another unit may have just stepped in
        if world.is_position_occupied(new_pos, ignore_id=unit.id):
            return (
                MovementResult(unit.id, False, old_pos, old_pos, "COLLISION"),
                f"{unit.label()} blocked by another unit at {new_pos}",
            )

        unit.pos = new_pos
        return (
            MovementResult(unit.id, True, old_pos, new_pos, None),
            f"{unit.label()} moves to {new_pos}",
        )
