"""
Greedy policy with simple local heuristics.

Decision logic:
- Attack and heal whatever is in reach every tick
- Chase the closest hostile unit, else the closest hostile structure
- Garrisons (`hold_position=True`) never leave their cells
"""

from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

from sim.core.types import Team
from tactics import TheaterContext
from infra.settings import TacticsSettings
from .base_policy import BasePolicy, Orders
from .registry import register_policy

if TYPE_CHECKING:
    from sim.environment import StepInfo
    from sim.world import WorldState


@register_policy("greedy")
class GreedyPolicy(BasePolicy):
    """
    Greedy policy: every unit fights on its own.
    """

    def __init__(
        self,
        team: Team,
        name: str | None = None,
        *,
        hold_position: bool = False,
        settings: Optional[TacticsSettings] = None,
    ):
        """
        Args:
            team: Team to control
            name: Optional policy name (default: "GreedyPolicy")
            hold_position: Only attack and heal, never move
        """
        super().__init__(team, name, settings)
        self.hold_position = hold_position

    def get_actions(
        self,
        state: Dict[str, Any],
        step_info: Optional["StepInfo"] = None,
        **kwargs: Any,
    ) -> Tuple[Orders, Dict[str, Any]]:
        world: "WorldState" = state["world"]
        context = TheaterContext(world, self.team)

        for agent in context.agents():
            if self.hold_position:
                agent.auto_melee()
                agent.auto_ranged()
                agent.auto_heal()
            else:
                agent.auto_combat()

        context.commit()
        orders = context.orders()
        metadata: Dict[str, Any] = {
            "policy": "greedy",
            "injections": {**kwargs},
            "actions_count": len(orders),
        }
        return orders, metadata
