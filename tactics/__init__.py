"""
Combat coordination core.

- CombatAgent: one combat unit plus its persisted tactical state
- find_partner / find_squad: lifetime-aware pair and squad matching
- RetreatGovernor: hysteretic ENGAGING / RECOVERING state machine
- FireSupportPositioner: lure cells inside friendly tower fire
- Squad / SquadTacticalCoordinator: multi-squad targeting and staging
- TheaterContext: the per-tick state one team's pass runs against
"""

from .agent import CombatAgent
from .context import TheaterContext
from .coordinator import (
    CoordinationReport,
    SquadTacticalCoordinator,
    pincer_positions,
    should_regroup,
)
from .intel import CombatIntel, ThreatSnapshot
from .matching import find_partner, find_squad
from .memory import AgentMemory, SquadMemory, TheaterMemory
from .positioning import FireSupportPositioner
from .retreat import (
    RetreatGovernor,
    RetreatThresholds,
    StaticRetreatGovernor,
    dynamic_thresholds,
    next_phase,
)
from .squad import Squad

__all__ = [
    "CombatAgent",
    "TheaterContext",
    "CoordinationReport",
    "SquadTacticalCoordinator",
    "pincer_positions",
    "should_regroup",
    "CombatIntel",
    "ThreatSnapshot",
    "find_partner",
    "find_squad",
    "AgentMemory",
    "SquadMemory",
    "TheaterMemory",
    "FireSupportPositioner",
    "RetreatGovernor",
    "RetreatThresholds",
    "StaticRetreatGovernor",
    "dynamic_thresholds",
    "next_phase",
    "Squad",
]
