"""
Grid - Spatial logic for the tactical simulation.

The Grid handles:
- Coordinate validation
- Terrain (walls)
- Range calculations (Chebyshev, the game's notion of range)
- Map-edge queries and clamping

Coordinate System:
- X increases to the RIGHT
- Y increases DOWNWARD
- Origin (0, 0) is at TOP-LEFT
"""

from __future__ import annotations
import math
from typing import FrozenSet, Iterable, Optional
from ..core.types import GridPos


def round_half_up(value: float) -> int:
    """Round to the nearest int, halves toward +inf (stable for negative offsets)."""
    return int(math.floor(value + 0.5))


class Grid:
    """
    A 2D grid with optional wall terrain.

    Provides spatial queries and calculations without game logic or state.

    Attributes:
        width: Grid width (X dimension)
        height: Grid height (Y dimension)
        walls: Impassable terrain cells
    """

    def __init__(self, width: int, height: int, walls: Optional[Iterable[GridPos]] = None):
        """
        Initialize a grid.

        Args:
            width: Grid width (must be positive)
            height: Grid height (must be positive)
            walls: Optional impassable terrain cells

        Raises:
            ValueError: If dimensions are invalid or a wall is out of bounds
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive: {width}x{height}")

        self.width = width
        self.height = height
        self.walls: FrozenSet[GridPos] = frozenset((int(x), int(y)) for x, y in (walls or ()))
        for wall in self.walls:
            if not self.in_bounds(wall):
                raise ValueError(f"Wall out of bounds: {wall}")

    def in_bounds(self, pos: GridPos) -> bool:
        """Check if a position is within grid boundaries."""
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def is_wall(self, pos: GridPos) -> bool:
        """Check if a position is wall terrain."""
        return pos in self.walls

    def range(self, a: GridPos, b: GridPos) -> int:
        """
        Chebyshev distance: diagonal steps count as one.

        This is the range used for weapons, healing and movement goals.
        """
        return max(abs(a[0] - b[0]), abs(a[1] - b[1]))

    def edge_distance(self, pos: GridPos) -> int:
        """Number of cells between a position and the nearest map edge."""
        x, y = pos
        return min(x, y, self.width - 1 - x, self.height - 1 - y)

    def is_edge(self, pos: GridPos) -> bool:
        """Check if a position lies on the outer map border."""
        return self.in_bounds(pos) and self.edge_distance(pos) == 0

    def clamp(self, pos: GridPos, margin: int = 0) -> GridPos:
        """
        Clamp a position into [margin, size - 1 - margin] on both axes.

        The margin shrinks when the grid is too small to honour it.
        """
        mx = min(margin, (self.width - 1) // 2)
        my = min(margin, (self.height - 1) // 2)
        x = max(mx, min(self.width - 1 - mx, pos[0]))
        y = max(my, min(self.height - 1 - my, pos[1]))
        return (x, y)

    @property
    def center(self) -> GridPos:
        return (self.width // 2, self.height // 2)

    def get_neighbors(self, pos: GridPos, include_diagonals: bool = True) -> list[GridPos]:
        """
        Get in-bounds neighboring positions (8 or 4 directions).

        Args:
            pos: Center position
            include_diagonals: If True, include diagonal neighbors (8 total)

        Returns:
            List of valid neighboring positions, row-major order
        """
        x, y = pos
        neighbors = []
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                if not include_diagonals and dx != 0 and dy != 0:
                    continue
                candidate = (x + dx, y + dy)
                if self.in_bounds(candidate):
                    neighbors.append(candidate)
        return neighbors

    def __str__(self) -> str:
        """String representation."""
        return f"Grid({self.width}x{self.height})"

    def __repr__(self) -> str:
        """Detailed representation."""
        return f"Grid(width={self.width}, height={self.height}, walls={len(self.walls)})"
