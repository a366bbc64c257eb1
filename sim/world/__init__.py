"""
World state management for the tactical simulation.

This module provides:
- Grid: Spatial logic, terrain and geometry
- WorldState: Per-tick snapshot of one theater
"""

from .grid import Grid, round_half_up
from .world import WorldState

__all__ = [
    "Grid",
    "WorldState",
    "round_half_up",
]
