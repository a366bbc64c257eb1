"""
Team policies for the tactical simulation.

This module provides:
- BasePolicy: Abstract interface for all policies
- PolicySpec / create_policy_from_spec: config-driven construction
- GreedyPolicy: every unit fights on its own
- PairDefensePolicy: fighters paired with healers
- FireSupportPolicy: lure attackers into tower fire
- SquadAssaultPolicy: coordinated multi-squad assault
"""

from .base_policy import BasePolicy, Orders
from .spec import PolicySpec
from .registry import POLICY_REGISTRY, register_policy, resolve_policy_class
from .factory import PreparedPolicy, create_policy_from_spec

# Concrete policies register themselves on import
from .greedy_policy import GreedyPolicy
from .pair_defense import PairDefensePolicy
from .fire_support import FireSupportPolicy
from .squad_assault import SquadAssaultPolicy

__all__ = [
    "BasePolicy",
    "Orders",
    "PolicySpec",
    "POLICY_REGISTRY",
    "register_policy",
    "resolve_policy_class",
    "PreparedPolicy",
    "create_policy_from_spec",
    "GreedyPolicy",
    "PairDefensePolicy",
    "FireSupportPolicy",
    "SquadAssaultPolicy",
]
