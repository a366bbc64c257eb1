"""
Entity definitions for the tactical simulation.

This module exports all entity types:
- Entity (base)
- Unit (mobile combat unit)
- Structure (static structure, including towers)
"""

from .base import Entity
from .unit import Unit, make_body, make_unit
from .structure import Structure, make_tower

__all__ = [
    "Entity",
    "Unit",
    "Structure",
    "make_body",
    "make_unit",
    "make_tower",
]
