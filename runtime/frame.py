from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sim.core.actions import Action
from sim.environment import StepInfo
from sim.world import WorldState


@dataclass
class Frame:
    """
    One UI-friendly snapshot of a tick.

    `world` is the state the policies saw when they chose `actions`.
    """
    world: WorldState
    actions: Dict[int, List[Action]]
    action_metadata: Dict[str, Any] = field(default_factory=dict)
    step_info: Optional[StepInfo] = None
    done: bool = False
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "world": self.world.to_dict(),
            "actions": {
                str(unit_id): [a.to_dict() for a in actions]
                for unit_id, actions in self.actions.items()
            },
            "action_metadata": self.action_metadata,
            "step_info": self.step_info.to_dict() if self.step_info else None,
            "done": self.done,
            "events": self.events,
        }
