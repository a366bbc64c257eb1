from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sim.core.types import Team


@dataclass
class PolicySpec:
    """
    Serializable description of one team's policy.

    Attributes:
        type: Registry key or import path of the policy class
        team: Team the policy controls
        name: Display name
        init_params: Constructor keyword arguments (JSON values)
        act_params: Keyword arguments passed to every get_actions() call
    """
    type: str
    team: Team
    name: Optional[str] = None
    init_params: Dict[str, Any] = field(default_factory=dict)
    act_params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.type:
            raise ValueError("PolicySpec requires a policy type")
        if isinstance(self.team, str):
            self.team = Team[self.team]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "team": self.team.name,
            "name": self.name,
            "init_params": dict(self.init_params),
            "act_params": dict(self.act_params),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PolicySpec:
        """Construct from a dict (e.g., loaded from JSON)."""
        if data.get("team") is None:
            raise ValueError("PolicySpec requires 'team'")
        return cls(
            type=data.get("type", ""),
            team=data["team"],
            name=data.get("name"),
            init_params=dict(data.get("init_params") or {}),
            act_params=dict(data.get("act_params") or {}),
        )
