"""
Action definitions and utilities.

Actions represent intents issued by agents. This module provides:
- Action dataclass
- Action parameter validation
- Action factory methods
- Action serialization
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, Iterable, List
import json

from .types import ActionType

_TARGETED = (
    ActionType.ATTACK,
    ActionType.RANGED_ATTACK,
    ActionType.HEAL,
    ActionType.RANGED_HEAL,
    ActionType.DISMANTLE,
)


@dataclass
class Action:
    """
    An intent issued by an agent for the current tick.

    Actions consist of a type and optional parameters. The parameters
    are validated based on the action type.

    Use static factory methods for convenient construction:
        - Action.wait()
        - Action.move(to)
        - Action.attack(target_id)
        - Action.ranged_attack(target_id)
        - Action.ranged_mass_attack()
        - Action.heal(target_id)
        - Action.ranged_heal(target_id)
        - Action.dismantle(target_id)
    """

    type: ActionType
    params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate action parameters after initialization."""
        self._validate()

    def _validate(self) -> None:
        """
        Validate that parameters match the action type.

        Raises:
            ValueError: If parameters are invalid for the action type
        """
        if self.type in (ActionType.WAIT, ActionType.RANGED_MASS_ATTACK):
            if self.params:
                raise ValueError(f"{self.type.name} action should have no parameters")

        elif self.type == ActionType.MOVE:
            if "to" not in self.params:
                raise ValueError("MOVE action requires 'to' parameter")
            to = self.params["to"]
            if not (isinstance(to, tuple) and len(to) == 2 and all(isinstance(c, int) for c in to)):
                raise ValueError(f"'to' must be an (x, y) tuple of ints, got {to!r}")

        elif self.type in _TARGETED:
            if "target_id" not in self.params:
                raise ValueError(f"{self.type.name} action requires 'target_id' parameter")
            if not isinstance(self.params["target_id"], int):
                raise ValueError(f"'target_id' must be an int, got {type(self.params['target_id'])}")

    @property
    def target_id(self) -> int | None:
        return self.params.get("target_id")

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert action to a JSON-serializable dictionary.

        Returns:
            Dictionary representation of the action
        """
        params_dict = {}
        for key, value in self.params.items():
            if isinstance(value, tuple):
                params_dict[key] = list(value)
            else:
                params_dict[key] = value

        return {
            "type": self.type.name,
            "params": params_dict
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Action:
        """
        Create an action from a dictionary.

        Args:
            data: Dictionary containing 'type' and 'params'

        Returns:
            Action instance

        Raises:
            ValueError: If dictionary format is invalid
        """
        if "type" not in data:
            raise ValueError("Action dictionary must contain 'type'")

        action_type = ActionType[data["type"]]
        params = dict(data.get("params", {}))

        # JSON turns tuples into lists
        if "to" in params and isinstance(params["to"], list):
            params["to"] = tuple(params["to"])

        return cls(type=action_type, params=params)

    def to_json(self) -> str:
        """Convert action to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> Action:
        """Create action from JSON string."""
        return cls.from_dict(json.loads(json_str))

    def __str__(self) -> str:
        """Human-readable string representation."""
        if self.type == ActionType.MOVE:
            return f"MOVE to={self.params['to']}"
        if self.type in _TARGETED:
            return f"{self.type.name} target={self.params['target_id']}"
        return self.type.name

    # FACTORY METHODS
    @staticmethod
    def wait() -> Action:
        """Create a WAIT action."""
        return Action(ActionType.WAIT)

    @staticmethod
    def move(to: tuple[int, int]) -> Action:
        """
        Create a MOVE action.

        Args:
            to: Adjacent cell to step onto

        Returns:
            Action that moves the agent one cell.
        """
        return Action(ActionType.MOVE, {"to": (int(to[0]), int(to[1]))})

    @staticmethod
    def attack(target_id: int) -> Action:
        """Create a melee ATTACK action against a unit or structure."""
        return Action(ActionType.ATTACK, {"target_id": target_id})

    @staticmethod
    def ranged_attack(target_id: int) -> Action:
        """Create a RANGED_ATTACK action against a unit or structure."""
        return Action(ActionType.RANGED_ATTACK, {"target_id": target_id})

    @staticmethod
    def ranged_mass_attack() -> Action:
        """Create a RANGED_MASS_ATTACK action hitting every hostile within 3."""
        return Action(ActionType.RANGED_MASS_ATTACK)

    @staticmethod
    def heal(target_id: int) -> Action:
        """Create a HEAL action on an adjacent friendly (or self)."""
        return Action(ActionType.HEAL, {"target_id": target_id})

    @staticmethod
    def ranged_heal(target_id: int) -> Action:
        """Create a RANGED_HEAL action on a friendly within 3."""
        return Action(ActionType.RANGED_HEAL, {"target_id": target_id})

    @staticmethod
    def dismantle(target_id: int) -> Action:
        """Create a DISMANTLE action against an adjacent structure."""
        return Action(ActionType.DISMANTLE, {"target_id": target_id})


def normalize_orders(orders: Action | Iterable[Action] | None) -> List[Action]:
    """
    Collapse an agent's orders to at most one action per pipeline.

    The last action given for a pipeline wins; WAIT is dropped when any
    other action is present.
    """
    if orders is None:
        return []
    if isinstance(orders, Action):
        orders = [orders]

    by_pipeline: Dict[str, Action] = {}
    for action in orders:
        if not isinstance(action, Action):
            raise TypeError(f"Expected Action, got {type(action)}")
        by_pipeline[action.type.pipeline] = action

    if len(by_pipeline) > 1:
        by_pipeline.pop("idle", None)
    return list(by_pipeline.values())
