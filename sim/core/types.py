"""
Core type definitions for the tactical simulation.

This module contains all fundamental types, enums, and constants used
throughout the system. No logic, just pure data structures.
"""

from __future__ import annotations
from enum import Enum, auto
from typing import Tuple
from dataclasses import dataclass

# ============================================================================
# SPATIAL TYPES
# ============================================================================

# Grid position: (x, y) where:
# - X increases to the RIGHT
# - Y increases DOWNWARD (row-major scans walk y outer, x inner)
# - Origin (0, 0) is at TOP-LEFT
GridPos = Tuple[int, int]


@dataclass(frozen=True)
class Goal:
    """
    A movement goal handed to the movement collaborator.

    For approach goals the mover tries to get within `range` of `pos`;
    for avoid goals it tries to stay at least `range` away from `pos`.
    """
    pos: GridPos
    range: int = 1


class Team(Enum):
    """Team affiliation for entities."""
    BLUE = "BLUE"
    RED = "RED"

    def __str__(self) -> str:
        return self.value

    @property
    def opponent(self) -> Team:
        """Get the opposing team."""
        return Team.RED if self == Team.BLUE else Team.BLUE


# ============================================================================
# UNITS
# ============================================================================

class BodyPart(Enum):
    """Body parts a combat unit is built from; each part holds 100 hits."""
    MOVE = "move"
    ATTACK = "attack"
    RANGED_ATTACK = "ranged_attack"
    HEAL = "heal"
    WORK = "work"
    TOUGH = "tough"

    def __str__(self) -> str:
        return self.value


class Role(Enum):
    """Tactical role of a combat unit."""
    MELEE = "melee"
    RANGED = "ranged"
    HEALER = "healer"
    DISMANTLER = "dismantler"

    def __str__(self) -> str:
        return self.value


class Phase(Enum):
    """The two states of the per-agent retreat state machine."""
    ENGAGING = "engaging"
    RECOVERING = "recovering"

    def __str__(self) -> str:
        return self.value


# ============================================================================
# STRUCTURES
# ============================================================================

class StructureKind(Enum):
    """Types of static structures on the map."""
    SPAWN = "spawn"
    TOWER = "tower"
    EXTENSION = "extension"
    RAMPART = "rampart"
    WALL = "wall"
    STORAGE = "storage"

    def __str__(self) -> str:
        return self.value

    @property
    def walkable(self) -> bool:
        """Whether units may stand on a structure of this kind."""
        return self == StructureKind.RAMPART


# ============================================================================
# ACTIONS
# ============================================================================

class ActionType(Enum):
    """Types of intents an agent can issue."""
    WAIT = auto()  # Do nothing this tick
    MOVE = auto()  # Step to an adjacent cell
    ATTACK = auto()  # Melee attack, range 1
    RANGED_ATTACK = auto()  # Ranged attack, range 3
    RANGED_MASS_ATTACK = auto()  # Area ranged attack around self
    HEAL = auto()  # Melee heal, range 1
    RANGED_HEAL = auto()  # Ranged heal, range 3
    DISMANTLE = auto()  # Tear down a structure, range 1

    def __str__(self) -> str:
        return self.name

    @property
    def pipeline(self) -> str:
        """
        Action pipeline of this type.

        An agent issues at most one intent per pipeline per tick.
        """
        if self in (ActionType.ATTACK, ActionType.HEAL, ActionType.DISMANTLE):
            return "melee"
        if self in (ActionType.RANGED_ATTACK, ActionType.RANGED_MASS_ATTACK, ActionType.RANGED_HEAL):
            return "ranged"
        if self == ActionType.MOVE:
            return "move"
        return "idle"


class GameResult(Enum):
    """Possible outcomes of a simulated engagement."""
    IN_PROGRESS = "in_progress"
    BLUE_WINS = "blue_wins"
    RED_WINS = "red_wins"
    DRAW = "draw"

    def __str__(self) -> str:
        return self.value.replace("_", " ").title()


# ============================================================================
# ACTION VALIDATION
# ============================================================================

@dataclass
class ActionValidation:
    """
    Structured result of validating an action.

    Attributes:
        valid: Whether the action is valid
        error_code: Machine-readable error code (None if valid)
        message: Human-readable message explaining the result

    Error codes:
        - "ENTITY_DEAD": Unit is no longer in the world
        - "NO_CAPABILITY": Unit lacks the active body parts for the action
        - "INVALID_TARGET": Target ID is unknown or of the wrong kind
        - "OUT_OF_RANGE": Target is outside the action's range
        - "OUT_OF_BOUNDS": Movement would leave grid bounds
        - "NOT_ADJACENT": Movement step is not to a neighbouring cell
        - "IMPASSABLE": Movement step is onto a wall or solid structure
    """
    valid: bool
    error_code: str | None = None
    message: str = ""

    @staticmethod
    def success(message: str = "") -> ActionValidation:
        """Create a validation success result."""
        return ActionValidation(valid=True, error_code=None, message=message)

    @staticmethod
    def fail(error_code: str, message: str) -> ActionValidation:
        """Create a validation failure result."""
        return ActionValidation(valid=False, error_code=error_code, message=message)
