"""
Persisted memory schemas for the tactics layer.

Relation fields live in plain dicts owned by the simulation (a unit's
`memory`, a team's memory segment). These models give them a shape:
values are validated in strict mode on every read so that a wrong type is
caught instead of silently coerced. A corrupted record is logged and the
owner is treated as unassigned for the tick.
"""

from __future__ import annotations

from typing import Any, Dict, MutableMapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from infra.logger import get_logger

log = get_logger(__name__)

THEATER_KEY = "theater"


class AgentMemory(BaseModel):
    """Per-agent relation fields."""

    model_config = ConfigDict(strict=True, extra="ignore")

    partner: Optional[int] = Field(default=None, description="ID of the paired agent")
    squad: Optional[str] = Field(default=None, description="Ref of the squad this agent belongs to")
    recovering: bool = Field(default=False, description="Retreat state machine is in RECOVERING")
    last_in_danger: Optional[int] = Field(default=None, description="Last tick a threat was seen while recovering")


class SquadMemory(BaseModel):
    """Per-squad coordination flags."""

    model_config = ConfigDict(strict=True, extra="ignore")

    assembly_complete: bool = False
    designed_size: Optional[int] = None
    target: Optional[int] = None
    staged: bool = False
    staging_since: Optional[int] = None


class TheaterMemory(BaseModel):
    """Team-wide squad bookkeeping."""

    model_config = ConfigDict(strict=True, extra="ignore")

    next_squad: int = 0
    squads: Dict[str, SquadMemory] = Field(default_factory=dict)


def load_agent_memory(owner: str, raw: MutableMapping[str, Any]) -> AgentMemory:
    """
    Read an agent's relation fields.

    Returns a blank (unassigned) record when the stored data is corrupted.
    """
    try:
        return AgentMemory.model_validate(dict(raw))
    except ValidationError as exc:
        log.error("Corrupted memory for %s, treating as unassigned: %s", owner, exc)
        return AgentMemory()


def save_agent_memory(memory: AgentMemory, raw: MutableMapping[str, Any]) -> None:
    raw.update(memory.model_dump())


def load_theater_memory(segment: MutableMapping[str, Any]) -> TheaterMemory:
    """
    Read the theater record from a team memory segment.

    A corrupted squad entry only drops that squad; a corrupted counter
    or container resets the whole record.
    """
    raw = segment.get(THEATER_KEY)
    if raw is None:
        return TheaterMemory()
    if not isinstance(raw, dict):
        log.error("Corrupted theater memory (%s), starting fresh", type(raw).__name__)
        return TheaterMemory()

    squads: Dict[str, SquadMemory] = {}
    raw_squads = raw.get("squads", {})
    if isinstance(raw_squads, dict):
        for ref, data in raw_squads.items():
            try:
                squads[ref] = SquadMemory.model_validate(data)
            except ValidationError as exc:
                log.error("Corrupted memory for squad %s, treating as unassigned: %s", ref, exc)
    else:
        log.error("Corrupted squad table in theater memory, dropping it")

    try:
        theater = TheaterMemory.model_validate({"next_squad": raw.get("next_squad", 0)})
    except ValidationError as exc:
        log.error("Corrupted squad counter in theater memory: %s", exc)
        theater = TheaterMemory()
    theater.squads = squads
    return theater


def save_theater_memory(theater: TheaterMemory, segment: MutableMapping[str, Any]) -> None:
    segment[THEATER_KEY] = theater.model_dump()
