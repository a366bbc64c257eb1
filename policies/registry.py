"""
Policy registry.

Scenarios name their policies by key ("greedy", "squad_assault", ...);
the registry maps those keys to classes. Anything else is treated as an
import path so experimental policies can live outside this package.
"""

from __future__ import annotations

import importlib
from typing import Callable, Dict, List, Type, TypeVar

from .base_policy import BasePolicy

POLICY_REGISTRY: Dict[str, Type[BasePolicy]] = {}
PolicyType = TypeVar("PolicyType", bound=Type[BasePolicy])


def register_policy(key: str, cls: PolicyType | None = None) -> PolicyType | Callable[[PolicyType], PolicyType]:
    """
    Register a policy class under `key`.

    Works as `@register_policy("foo")` or `register_policy("foo", FooPolicy)`.

    Raises:
        ValueError: If `key` is already taken by a different class
    """
    def decorator(target_cls: PolicyType) -> PolicyType:
        existing = POLICY_REGISTRY.get(key)
        if existing is not None and existing is not target_cls:
            raise ValueError(f"Policy key '{key}' already registered to {existing.__qualname__}")
        POLICY_REGISTRY[key] = target_cls
        return target_cls

    return decorator if cls is None else decorator(cls)


def available_policies() -> List[str]:
    return sorted(POLICY_REGISTRY)


def resolve_policy_class(type_ref: str) -> Type[BasePolicy]:
    """
    Resolve a registry key, or an import path like "pkg.module.Class".

    Raises:
        ValueError: Unknown key that is not an import path
        TypeError: The path does not name a BasePolicy subclass
    """
    if type_ref in POLICY_REGISTRY:
        return POLICY_REGISTRY[type_ref]

    if "." not in type_ref:
        raise ValueError(
            f"Unknown policy type '{type_ref}'. Registered: {', '.join(available_policies()) or 'none'}"
        )

    module_name, class_name = type_ref.rsplit(".", 1)
    cls = getattr(importlib.import_module(module_name), class_name, None)
    if not isinstance(cls, type) or not issubclass(cls, BasePolicy):
        raise TypeError(f"{type_ref} is not a BasePolicy subclass")
    return cls
