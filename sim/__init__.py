"""
Tactical grid simulation.

The world model and the collaborators the tactics layer relies on:
grid and terrain, units and structures, intents, the single-step
mover, combat and tower resolution, and the environment loop.
Scenarios live in `sim.scenario`.
"""

from .environment import StepInfo, TheaterEnv
from .world import WorldState

__all__ = [
    "TheaterEnv",
    "StepInfo",
    "WorldState",
]
