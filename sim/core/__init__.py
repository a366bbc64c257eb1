"""
Core types and constants for the tactical simulation.
"""

# Instead of from sim.core.types import GridPos, you can do: from sim.core import GridPos
from .types import (
    GridPos,
    Goal,
    Team,
    BodyPart,
    Role,
    Phase,
    StructureKind,
    ActionType,
    GameResult,
)


__all__ = [
    "GridPos",
    "Goal",
    "Team",
    "BodyPart",
    "Role",
    "Phase",
    "StructureKind",
    "ActionType",
    "GameResult",
]
