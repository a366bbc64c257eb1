"""
ID generation utilities.

Entities get monotonic integer IDs; squads get opaque hex tokens minted
from a counter that the caller persists.
"""

import itertools
from typing import Iterator

SQUAD_REF_WIDTH = 6


class IDGenerator:
    """
    Sequential integer IDs backed by itertools.count.

    Tests reset or replace the generator to get reproducible IDs.
    """

    def __init__(self, start: int = 1):
        self._counter: Iterator[int] = itertools.count(start)

    def next_id(self) -> int:
        """Generate the next unique ID."""
        return next(self._counter)

    def reset(self, start: int = 1) -> None:
        """Restart the sequence at `start`."""
        self._counter = itertools.count(start)


_entity_ids = IDGenerator()


def get_next_entity_id() -> int:
    """Get the next unique entity ID from the module-level generator."""
    return _entity_ids.next_id()


def reset_entity_ids(start: int = 1) -> None:
    """
    Reset the module-level entity ID generator.

    Args:
        start: The new starting ID
    """
    _entity_ids.reset(start)


def format_squad_ref(counter: int) -> str:
    """
    Render a squad counter value as a fixed-width hex token.

    Args:
        counter: Non-negative counter value

    Returns:
        Lowercase hex string, zero padded (e.g. 10 -> "00000a")
    """
    if counter < 0:
        raise ValueError(f"Squad counter cannot be negative: {counter}")
    return f"{counter:0{SQUAD_REF_WIDTH}x}"
