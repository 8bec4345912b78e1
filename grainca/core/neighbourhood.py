"""Neighbourhood shapes and boundary handling.

A neighbourhood answers every spatial question the update rules ask: which
coordinates surround a cell, what markers they hold, the Potts energy of a
candidate marker, and the next grain-growth state. Queries take the grid
explicitly because the engine replaces its grid object on every CA step.
"""

from abc import ABC
from enum import Enum
from typing import List, Tuple
import logging

from .cell import Cell
from .exceptions import InvalidConfigurationError
from .grid import Grid
from .growth_rules import boundary_energy, next_cell_state

logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]


class BoundaryMode(Enum):
    """How neighbours beyond the grid edge are resolved."""

    PERIODIC = "periodic"   # wrap toroidally
    BOUNDED = "bounded"     # drop out-of-range neighbours


def wrap(c: int, n: int) -> int:
    """Wrap coordinate `c` onto [0, n)."""
    return ((c + n) % n + n) % n


class Neighbourhood(ABC):
    """Base class for neighbourhood shapes.

    Subclasses only declare `offsets`, the (dx, dy) pairs of the shape in
    the fixed order every query reports them.
    """

    name = ""
    offsets: Tuple[Coordinate, ...] = ()

    def __init__(self, boundary: BoundaryMode = BoundaryMode.PERIODIC):
        self._boundary = BoundaryMode(boundary)

    @property
    def boundary(self) -> BoundaryMode:
        return self._boundary

    def is_periodic(self) -> bool:
        return self._boundary is BoundaryMode.PERIODIC

    def neighbour_coordinates(self, grid: Grid, x: int, y: int) -> List[Coordinate]:
        """Coordinates surrounding (x, y).

        Args:
            grid: Grid supplying the dimensions
            x: Cell x-coordinate
            y: Cell y-coordinate

        Returns:
            Neighbour coordinates in offset order
        """
        coords = []
        periodic = self.is_periodic()
        for dx, dy in self.offsets:
            nx, ny = x + dx, y + dy
            if periodic:
                coords.append((wrap(nx, grid.width), wrap(ny, grid.height)))
            elif 0 <= nx < grid.width and 0 <= ny < grid.height:
                coords.append((nx, ny))
        return coords

    def neighbour_markers(self, grid: Grid, x: int, y: int) -> List[int]:
        """Markers a cell at (x, y) could switch to.

        Only live grain cells are offered: empty cells and inclusions are
        skipped. Duplicates are kept so each neighbour cell is one equally
        likely pick.
        """
        return [grid.marker_at(nx, ny)
                for nx, ny in self.neighbour_coordinates(grid, x, y)
                if grid.is_alive(nx, ny) and not grid.is_disabled(nx, ny)]

    def energy_of(self, grid: Grid, x: int, y: int, candidate: int) -> int:
        """Boundary energy of (x, y) if it held marker `candidate`."""
        markers = [grid.marker_at(nx, ny) for nx, ny in self.neighbour_coordinates(grid, x, y)]
        return boundary_energy(markers, candidate)

    def next_cell_state(self, grid: Grid, x: int, y: int) -> Cell:
        """Grain-growth state of (x, y) for the next generation."""
        neighbours = [grid.get(nx, ny) for nx, ny in self.neighbour_coordinates(grid, x, y)]
        return next_cell_state(grid.get(x, y), neighbours)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(boundary={self._boundary.value})"


class MooreNeighbourhood(Neighbourhood):
    """Eight surrounding cells."""

    name = "moore"
    offsets = tuple((dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1)
                    if not (dx == 0 and dy == 0))


class VonNeumannNeighbourhood(Neighbourhood):
    """Four edge-sharing cells."""

    name = "von_neumann"
    offsets = ((0, -1), (-1, 0), (1, 0), (0, 1))


NEIGHBOURHOODS = {
    MooreNeighbourhood.name: MooreNeighbourhood,
    VonNeumannNeighbourhood.name: VonNeumannNeighbourhood,
}


def neighbourhood_from_name(name: str, periodic: bool = True) -> Neighbourhood:
    """Factory for neighbourhoods by name.

    Raises:
        InvalidConfigurationError: If the name is unknown
    """
    try:
        cls = NEIGHBOURHOODS[name]
    except KeyError:
        raise InvalidConfigurationError(f"Unknown neighbourhood {name!r}", {"name": name}) from None
    boundary = BoundaryMode.PERIODIC if periodic else BoundaryMode.BOUNDED
    return cls(boundary)
