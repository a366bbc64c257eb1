from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

from infra.settings import TacticsSettings
from .base_policy import BasePolicy, Orders
from .registry import resolve_policy_class
from .spec import PolicySpec

if TYPE_CHECKING:
    from sim.environment import StepInfo


@dataclass
class PreparedPolicy:
    """Policy instance paired with its static per-tick keyword arguments."""
    policy: BasePolicy
    act_params: Dict[str, Any]

    def act(
        self,
        state: Dict[str, Any],
        step_info: Optional["StepInfo"] = None,
        injections: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Orders, Dict[str, Any]]:
        """Run the policy; per-tick injections override the static act_params."""
        return self.policy.get_actions(state, step_info=step_info, **{**self.act_params, **(injections or {})})


def create_policy_from_spec(spec: PolicySpec, settings: Optional[TacticsSettings] = None) -> PreparedPolicy:
    """
    Instantiate the policy a spec describes.

    `settings` is shared with the policy unless the spec's init_params
    already carry their own.
    """
    cls = resolve_policy_class(spec.type)

    init_kwargs = dict(spec.init_params)
    init_kwargs["team"] = spec.team
    if spec.name is not None:
        init_kwargs.setdefault("name", spec.name)
    if settings is not None:
        init_kwargs.setdefault("settings", settings)

    try:
        policy = cls(**init_kwargs)
    except TypeError as exc:
        raise ValueError(f"Bad init_params for policy '{spec.type}': {exc}") from exc

    return PreparedPolicy(policy=policy, act_params=dict(spec.act_params))
