"""Grid storage for the grain simulation.

This module implements the spatial substrate shared by both update rules.
Cells are stored row-major in three numpy arrays (alive flags, markers and
disabled flags) so whole-grid queries stay vectorised, while single-cell
access goes through the immutable `Cell` value type.
"""

import numpy as np
from typing import Dict, Iterator, Tuple
import logging

from .cell import Cell, EMPTY_MARKER
from .exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class Grid:
    """Fixed-size 2D grid of cells, row-major, addressed as (x=column, y=row).

    Attributes:
        width: Grid width in cells
        height: Grid height in cells
        alive: 2D numpy boolean array of alive flags
        markers: 2D numpy int64 array of owning-grain markers
        disabled: 2D numpy boolean array of inclusion flags
    """

    def __init__(self, width: int, height: int):
        """Initialize grid with every cell empty.

        Args:
            width: Grid width (cells)
            height: Grid height (cells)

        Raises:
            InvalidConfigurationError: If dimensions are not positive
        """
        if width < 1 or height < 1:
            raise InvalidConfigurationError(
                f"Grid dimensions must be positive, got {width}x{height}",
                {"width": width, "height": height},
            )

        self.width = width
        self.height = height
        self.alive = np.zeros((height, width), dtype=bool)
        self.markers = np.full((height, width), EMPTY_MARKER, dtype=np.int64)
        self.disabled = np.zeros((height, width), dtype=bool)

    @property
    def shape(self) -> Tuple[int, int]:
        """(height, width), matching the numpy array layout."""
        return (self.height, self.width)

    def copy(self) -> 'Grid':
        """Create a deep copy of the grid."""
        new_grid = Grid(self.width, self.height)
        new_grid.alive[:] = self.alive
        new_grid.markers[:] = self.markers
        new_grid.disabled[:] = self.disabled
        return new_grid

    def fill_empty(self) -> None:
        """Reset all cells to the empty state."""
        self.alive.fill(False)
        self.markers.fill(EMPTY_MARKER)
        self.disabled.fill(False)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _check_bounds(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(f"Coordinates ({x}, {y}) out of bounds for {self.width}x{self.height} grid")

    def get(self, x: int, y: int) -> Cell:
        """Get cell at coordinates.

        Args:
            x: X coordinate (column)
            y: Y coordinate (row)

        Returns:
            Cell value at (x, y)

        Raises:
            IndexError: If coordinates are out of bounds
        """
        self._check_bounds(x, y)
        return Cell(bool(self.alive[y, x]), int(self.markers[y, x]), bool(self.disabled[y, x]))

    def set(self, x: int, y: int, cell: Cell) -> None:
        """Store cell at coordinates.

        Args:
            x: X coordinate (column)
            y: Y coordinate (row)
            cell: New cell value

        Raises:
            IndexError: If coordinates are out of bounds
        """
        self._check_bounds(x, y)
        self.alive[y, x] = cell.alive
        self.markers[y, x] = cell.marker
        self.disabled[y, x] = cell.disabled

    def marker_at(self, x: int, y: int) -> int:
        """Marker at (x, y) without building a Cell (hot path for rules)."""
        self._check_bounds(x, y)
        return int(self.markers[y, x])

    def set_marker(self, x: int, y: int, marker: int) -> None:
        """Replace the marker of a live cell in place."""
        self._check_bounds(x, y)
        self.markers[y, x] = marker

    def is_alive(self, x: int, y: int) -> bool:
        self._check_bounds(x, y)
        return bool(self.alive[y, x])

    def is_disabled(self, x: int, y: int) -> bool:
        self._check_bounds(x, y)
        return bool(self.disabled[y, x])

    def count_alive(self) -> int:
        """Count cells that are alive (grains and inclusions)."""
        return int(np.sum(self.alive))

    def count_disabled(self) -> int:
        """Count inclusion cells."""
        return int(np.sum(self.disabled))

    def is_empty(self) -> bool:
        """Check if all cells are dead."""
        return not np.any(self.alive)

    def unique_markers(self) -> set:
        """Set of grain markers owning at least one live, non-inclusion cell."""
        grains = self.alive & ~self.disabled
        return {int(m) for m in np.unique(self.markers[grains])}

    def grain_sizes(self) -> Dict[int, int]:
        """Number of cells per grain marker (inclusions and empty cells excluded)."""
        grains = self.alive & ~self.disabled
        values, counts = np.unique(self.markers[grains], return_counts=True)
        return {int(m): int(c) for m, c in zip(values, counts)}

    def marker_array(self) -> np.ndarray:
        """Get markers as numpy array (copy)."""
        return self.markers.copy()

    def coordinates(self) -> Iterator[Tuple[int, int]]:
        """Yield every (x, y) in row-major order."""
        for y in range(self.height):
            for x in range(self.width):
                yield x, y

    def __getitem__(self, key: Tuple[int, int]) -> Cell:
        """Access cell using grid[x, y] syntax."""
        x, y = key
        return self.get(x, y)

    def __setitem__(self, key: Tuple[int, int], value: Cell) -> None:
        """Set cell using grid[x, y] = cell syntax."""
        x, y = key
        self.set(x, y, value)

    def __eq__(self, other: object) -> bool:
        """Check equality with another grid."""
        if not isinstance(other, Grid):
            return False
        return (self.width == other.width and
                self.height == other.height and
                np.array_equal(self.alive, other.alive) and
                np.array_equal(self.markers, other.markers) and
                np.array_equal(self.disabled, other.disabled))

    __hash__ = None

    def __str__(self) -> str:
        """String representation: '.' empty, 'X' grain, '#' inclusion."""
        lines = []
        for y in range(min(10, self.height)):  # Show first 10 rows
            line = ''
            for x in range(min(20, self.width)):  # Show first 20 columns
                if self.disabled[y, x]:
                    line += '#'
                else:
                    line += 'X' if self.alive[y, x] else '.'
            if self.width > 20:
                line += '...'
            lines.append(line)

        if self.height > 10:
            lines.append('...')

        return '\n'.join(lines)

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (f"Grid({self.width}x{self.height}, alive={self.count_alive()}, "
                f"grains={len(self.unique_markers())}, inclusions={self.count_disabled()})")
