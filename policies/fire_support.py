"""
Fire-support policy - lure attackers into friendly tower fire.

Every unit runs the tower-assisted combat loop:
1. Attack / heal whatever is in reach
2. Fall back when the dynamic retreat governor says so
3. With charged towers and hostiles around, hold the best lure cell and kite
4. Otherwise fight the closest target directly
"""

from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from sim.core.types import Team
from tactics import FireSupportPositioner, RetreatGovernor, TheaterContext
from infra.settings import TacticsSettings
from .base_policy import BasePolicy, Orders
from .registry import register_policy

if TYPE_CHECKING:
    from sim.environment import StepInfo


@register_policy("fire_support")
class FireSupportPolicy(BasePolicy):

    def __init__(self, team: Team, name: str | None = None, *, settings: Optional[TacticsSettings] = None):
        super().__init__(team, name, settings)
        self.governor = RetreatGovernor()
        self.positioner = FireSupportPositioner(self.settings.fire_support_search_radius)

    def get_actions(
        self,
        state: Dict[str, Any],
        step_info: Optional["StepInfo"] = None,
        **kwargs: Any,
    ) -> Tuple[Orders, Dict[str, Any]]:
        context = TheaterContext(state["world"], self.team)
        luring: List[int] = []
        recovering: List[int] = []

        for agent in context.agents():
            agent.auto_melee()
            agent.auto_ranged()
            agent.auto_heal()

            if self.governor.needs_to_recover(agent):
                self.governor.recover(agent)
                recovering.append(agent.id)
                continue

            if self.positioner.lure(agent) is not None:
                luring.append(agent.id)
                continue

            agent.auto_combat()

        context.commit()
        orders = context.orders()
        metadata: Dict[str, Any] = {
            "policy": "fire_support",
            "luring": luring,
            "recovering": recovering,
            "injections": {**kwargs},
            "actions_count": len(orders),
        }
        return orders, metadata
