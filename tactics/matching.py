"""
Pair and squad matching.

Both matchers are greedy and local: they look at the candidates they are
given, in a fixed order, and take the first acceptable answer. Relations
are plain ids stored on the agents; an id that no longer resolves to a
live unit simply means "no relation" and is cleared on sight.

Deterministic tie-breaks:
- partners: smallest lifetime difference, then lowest id
- squads: groups are tried in ascending ref order
"""

from __future__ import annotations

import secrets
from collections import defaultdict
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Mapping, Optional

from sim.core.constants import DEFAULT_PARTNER_TICK_DIFFERENCE, DEFAULT_SQUAD_TICK_DIFFERENCE
from sim.core.types import Role
from sim.utils.id_generator import SQUAD_REF_WIDTH
from infra.logger import get_logger

if TYPE_CHECKING:
    from .agent import CombatAgent

log = get_logger(__name__)


def lifetime_difference(a: CombatAgent, b: CombatAgent) -> int:
    return abs(a.lifetime - b.lifetime)


def bind_partners(a: CombatAgent, b: CombatAgent) -> None:
    """Write the pair relation on both sides."""
    a.partner_id = b.id
    b.partner_id = a.id
    log.debug("Paired %s with %s", a.unit.label(), b.unit.label())


def _claims_live_partner(agent: CombatAgent) -> bool:
    """True when the agent's partner id still resolves to a live unit."""
    return agent.partner_id is not None and agent.world.get_unit(agent.partner_id) is not None


def find_partner(
    agent: CombatAgent,
    candidates: Iterable[CombatAgent],
    tolerance_ticks: int = DEFAULT_PARTNER_TICK_DIFFERENCE,
) -> Optional[CombatAgent]:
    """
    Find (or confirm) this agent's partner among `candidates`.

    Args:
        agent: The agent looking for a partner
        candidates: Agents it may pair with; the agent itself is ignored
        tolerance_ticks: Largest acceptable remaining-lifetime difference

    Returns:
        The partner, or None when nobody qualifies
    """
    pool: Dict[int, CombatAgent] = {c.id: c for c in candidates if c.id != agent.id}

    if agent.partner_id is not None:
        partner = pool.get(agent.partner_id)
        if partner is not None:
            if partner.partner_id != agent.id:
                if _claims_live_partner(partner):
                    log.debug("%s lost %s to another pair", agent.unit.label(), partner.unit.label())
                    agent.partner_id = None
                    return find_partner(agent, pool.values(), tolerance_ticks)
                bind_partners(agent, partner)
            return partner
        log.debug("%s partner %s is gone", agent.unit.label(), agent.partner_id)
        agent.partner_id = None
        return find_partner(agent, pool.values(), tolerance_ticks)

    claimants = sorted((c for c in pool.values() if c.partner_id == agent.id), key=lambda c: c.id)
    if claimants:
        bind_partners(agent, claimants[0])
        return claimants[0]

    eligible = [
        c for c in pool.values()
        if not _claims_live_partner(c) and lifetime_difference(agent, c) <= tolerance_ticks
    ]
    if not eligible:
        return None
    partner = min(eligible, key=lambda c: (lifetime_difference(agent, c), c.id))
    bind_partners(agent, partner)
    return partner


def _random_ref() -> str:
    return secrets.token_hex(SQUAD_REF_WIDTH // 2)


def find_squad(
    agent: CombatAgent,
    candidates: Iterable[CombatAgent],
    max_per_role: Mapping[Role, int],
    tolerance_ticks: int = DEFAULT_SQUAD_TICK_DIFFERENCE,
    mint_ref: Optional[Callable[[], str]] = None,
) -> str:
    """
    Find (or confirm) this agent's squad ref.

    An existing ref is kept unconditionally. Otherwise the agent joins the
    first group (ascending ref) whose every member is within
    `tolerance_ticks` and which still has room for the agent's role; a
    role without a cap entry has no room. Failing that, a fresh ref is
    minted and the agent becomes its only member.
    """
    if agent.squad_ref is not None:
        return agent.squad_ref

    groups: Dict[str, List[CombatAgent]] = defaultdict(list)
    for candidate in candidates:
        if candidate.id != agent.id and candidate.squad_ref is not None:
            groups[candidate.squad_ref].append(candidate)

    for ref in sorted(groups):
        members = groups[ref]
        if not all(lifetime_difference(agent, m) <= tolerance_ticks for m in members):
            continue
        same_role = sum(1 for m in members if m.role == agent.role)
        if same_role < max_per_role.get(agent.role, 0):
            agent.squad_ref = ref
            log.debug("%s joined squad %s", agent.unit.label(), ref)
            return ref

    ref = (mint_ref or _random_ref)()
    agent.squad_ref = ref
    log.debug("%s formed squad %s", agent.unit.label(), ref)
    return ref
