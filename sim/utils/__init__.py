"""
Utility functions and helpers for the tactical simulation.
"""

from .id_generator import (
    IDGenerator,
    format_squad_ref,
    get_next_entity_id,
    reset_entity_ids,
)

__all__ = [
    "IDGenerator",
    "format_squad_ref",
    "get_next_entity_id",
    "reset_entity_ids",
]
