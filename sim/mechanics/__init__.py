"""
Mechanics module - the simulation's collaborators.

This module provides stateless resolvers:
- CombatMovement: Turns approach/avoid goals into a single step
- MovementResolver: Resolves MOVE intents
- CombatResolver: Resolves attack/heal/dismantle intents and tower fire
- tower_damage: Static-defense damage falloff by range

All resolvers are stateless - they take WorldState and return results
without modifying their own state.
"""

from .movement import CombatMovement, MovementResolver, MovementReport, MovementResult
from .combat import CombatResolver, CombatReport, tower_damage

__all__ = [
    "CombatMovement",
    "MovementResolver",
    "MovementReport",
    "MovementResult",
    "CombatResolver",
    "CombatReport",
    "tower_damage",
]
