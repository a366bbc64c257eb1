"""
Base policy interface for the tactical simulation.

A policy controls every unit of one team. It is called once per tick and
returns intents for its units plus free-form metadata for the UI.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from sim.core.actions import Action
from sim.core.types import Team
from infra.settings import TacticsSettings, load_settings

if TYPE_CHECKING:
    from sim.environment import StepInfo

Orders = Dict[int, List[Action]]


class BasePolicy(ABC):
    """
    Abstract base class for all team policies.

    Subclasses must implement:
    - get_actions(): Produce intents for all controlled units

    Attributes:
        team: The team this policy controls (BLUE or RED)
        name: Policy name for logging/identification
        settings: Tunables (loaded from the environment when omitted)
    """

    def __init__(self, team: Team, name: str = None, settings: Optional[TacticsSettings] = None):
        self.team = team
        self.name = name or self.__class__.__name__
        self.settings = settings or load_settings()

    @abstractmethod
    def get_actions(
        self,
        state: Dict[str, Any],
        step_info: Optional["StepInfo"] = None,
        **kwargs: Any,
    ) -> Tuple[Orders, Dict[str, Any]]:
        """
        Get intents for all controlled units.

        Called once per tick with the shared state:
            {
                "world": WorldState,
                "config": {"max_ticks": int | None}
            }

        Returns:
            (orders, metadata) where orders maps unit_id to at most one
            intent per action pipeline. Units without orders idle.
        """
        pass

    def reset(self) -> None:
        """
        Reset policy state between episodes.

        Tactical state is persisted in world memory, so most policies
        keep nothing here.
        """
        pass

    def __str__(self) -> str:
        return f"{self.name} ({self.team.name})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(team={self.team.name}, name='{self.name}')"
