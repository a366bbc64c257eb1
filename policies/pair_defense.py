"""
Pair defense - fighters paired with healers defending home ground.

Each fighter (melee or ranged) is bound to a healer with a compatible
remaining lifetime. A pair falls back together when either side drops
under the static retreat threshold; the healer follows its partner and
spends its heal on whichever of the two is hurt worse.
"""

from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from sim.core.types import Role, Team
from tactics import CombatAgent, StaticRetreatGovernor, TheaterContext, find_partner
from infra.logger import get_logger
from infra.settings import TacticsSettings
from .base_policy import BasePolicy, Orders
from .registry import register_policy

if TYPE_CHECKING:
    from sim.environment import StepInfo

log = get_logger(__name__)

FALLBACK_KITE_RANGE = 5


@register_policy("pair_defense")
class PairDefensePolicy(BasePolicy):
    """
    Args:
        team: Team to control
        name: Optional policy name
        retreat_threshold: Hits fraction under which a pair falls back
        reengage_threshold: Hits fraction at which it returns to the fight
    """

    def __init__(
        self,
        team: Team,
        name: str | None = None,
        *,
        retreat_threshold: float = 0.85,
        reengage_threshold: float = 1.0,
        settings: Optional[TacticsSettings] = None,
    ):
        super().__init__(team, name, settings)
        self.governor = StaticRetreatGovernor(retreat_threshold, reengage_threshold)

    def get_actions(
        self,
        state: Dict[str, Any],
        step_info: Optional["StepInfo"] = None,
        **kwargs: Any,
    ) -> Tuple[Orders, Dict[str, Any]]:
        context = TheaterContext(state["world"], self.team)
        fighters = context.agents(Role.MELEE, Role.RANGED)
        healers = context.agents(Role.HEALER)
        hostiles = context.intel.hostiles()

        pairs: List[Tuple[int, int]] = []
        for fighter in fighters:
            healer = self._handle_fighter(fighter, healers, hostiles)
            if healer is not None:
                pairs.append((fighter.id, healer.id))
        for healer in healers:
            self._handle_healer(healer, fighters)

        context.commit()
        orders = context.orders()
        metadata: Dict[str, Any] = {
            "policy": "pair_defense",
            "pairs": pairs,
            "recovering": [a.id for a in context.agents() if a.recovering],
            "injections": {**kwargs},
            "actions_count": len(orders),
        }
        return orders, metadata

    def _handle_fighter(
        self,
        fighter: CombatAgent,
        healers: List[CombatAgent],
        hostiles: list,
    ) -> Optional[CombatAgent]:
        healer = find_partner(fighter, healers, self.settings.partner_tick_difference)

        if healer is not None:
            hurt = self.governor.needs_to_recover(fighter)
            hurt = self.governor.needs_to_recover(healer) or hurt
            if hurt and hostiles:
                fighter.auto_melee()
                fighter.auto_ranged()
                fighter.kite_from_hostiles(hostiles, FALLBACK_KITE_RANGE)
                return healer

        if hostiles:
            fighter.auto_combat()
        else:
            fighter.do_medic_actions()
        return healer

    def _handle_healer(self, healer: CombatAgent, fighters: List[CombatAgent]) -> None:
        partner = find_partner(healer, fighters, self.settings.partner_tick_difference)

        if partner is None:
            if healer.hits < healer.hits_max:
                healer.heal(healer)
            healer.park()
            return

        if partner.hits_max - partner.hits > healer.hits_max - healer.hits:
            if healer.world.grid.range(healer.pos, partner.pos) <= 1:
                healer.heal(partner)
            else:
                healer.ranged_heal(partner)
        else:
            healer.heal(healer)

        if healer.world.grid.range(healer.pos, partner.pos) > 1:
            healer.go_to(partner.pos, 1)
