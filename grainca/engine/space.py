"""Simulation engine for grain microstructure evolution.

`Space` owns the grid, the marker registry, the active neighbourhood and
the active update rule. It seeds grains and inclusions, finds grain
boundaries and advances the simulation one step at a time:

- GRAIN_GROWTH: deterministic CA growth into empty cells, computed against
  the previous grid and swapped in as a brand-new grid.
- MONTE_CARLO: Potts-model boundary flips applied in place, so later trials
  in the same pass see earlier flips.
"""

import math
import numpy as np
from typing import List, Optional, Tuple, Union
import logging

from ..config import (
    BOLTZMANN,
    DEFAULT_MC_GRAIN_COUNT,
    DEFAULT_TEMPERATURE,
    MC_PICK_MODULUS,
    SpaceConfig,
    TaskType,
)
from ..core.cell import Cell
from ..core.exceptions import InvalidConfigurationError, MarkerConsistencyError, UnsupportedModeError
from ..core.grid import Grid
from ..core.markers import Color, MarkerRegistry
from ..core.neighbourhood import BoundaryMode, MooreNeighbourhood, Neighbourhood

logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]

__all__ = ["BOLTZMANN", "Space", "TaskType"]


class Space:
    """2D grain simulation space.

    Attributes:
        height: Grid height in cells
        width: Grid width in cells
        registry: Marker registry owning every grain id in the grid
        rng: Random source for seeding and Monte Carlo trials
    """

    BOLTZMANN = BOLTZMANN

    def __init__(self, height: int, width: int,
                 task_type: TaskType = TaskType.GRAIN_GROWTH, *,
                 neighbourhood: Optional[Neighbourhood] = None,
                 temperature: float = DEFAULT_TEMPERATURE,
                 mc_grain_count: int = DEFAULT_MC_GRAIN_COUNT,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None):
        """Initialize space and populate it for the task type.

        Args:
            height: Grid height (cells)
            width: Grid width (cells)
            task_type: Update rule to run
            neighbourhood: Neighbourhood shape (periodic Moore if None)
            temperature: Temperature in Kelvin
            mc_grain_count: Number of grains generated for Monte Carlo runs
            seed: Seed for a fresh random generator (ignored if rng given)
            rng: Explicit random generator

        Raises:
            InvalidConfigurationError: If dimensions or counts are invalid
        """
        self._grid = Grid(width, height)
        self.height = height
        self.width = width
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.registry = MarkerRegistry(self.rng)
        self._neighbourhood = neighbourhood or MooreNeighbourhood(BoundaryMode.PERIODIC)
        self._task_type = TaskType(task_type)
        self._temperature = float(DEFAULT_TEMPERATURE)
        self._mc_grain_count = DEFAULT_MC_GRAIN_COUNT
        self.step_count = 0

        self.set_temperature(temperature)
        self.set_generated_grain_count(mc_grain_count)
        self.reset()

        logger.debug(f"Created {self._task_type.value} space {width}x{height} with {self._neighbourhood!r}")

    @classmethod
    def from_config(cls, config: SpaceConfig) -> 'Space':
        """Build a space from a validated configuration."""
        return cls(config.height, config.width, config.task_type,
                   neighbourhood=config.build_neighbourhood(),
                   temperature=config.temperature,
                   mc_grain_count=config.mc_grain_count,
                   seed=config.seed)

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Rebuild the grid for the current task type.

        Registry entries are never removed, so markers from earlier grids
        stay registered.
        """
        if self._task_type is TaskType.MONTE_CARLO:
            self._grid = self._generate_mc_grid()
        else:
            self._grid = Grid(self.width, self.height)
        self.step_count = 0

    def _generate_mc_grid(self) -> Grid:
        """Assign every cell one of `mc_grain_count` freshly allocated markers."""
        self._check_seed_count(self._mc_grain_count, "grain")
        markers = np.array(self.registry.allocate_markers(self._mc_grain_count), dtype=np.int64)
        picks = self.rng.integers(MC_PICK_MODULUS, size=(self.height, self.width)) % self._mc_grain_count

        grid = Grid(self.width, self.height)
        grid.alive.fill(True)
        grid.markers[:] = markers[picks]
        logger.debug(f"Generated Monte Carlo grid with {self._mc_grain_count} grains")
        return grid

    def _check_seed_count(self, count: int, what: str) -> None:
        if count < 1:
            raise InvalidConfigurationError(f"{what} count must be positive, got {count}", {what: count})
        if count > self.height * self.width:
            raise InvalidConfigurationError(
                f"{what} count {count} exceeds grid capacity {self.height * self.width}",
                {what: count},
            )

    def place_new_grain(self, x: int, y: int) -> int:
        """Place one seed with a fresh marker at (x, y).

        Returns:
            Marker of the new grain
        """
        if not self._grid.in_bounds(x, y):
            raise IndexError(f"Coordinates ({x}, {y}) out of bounds for {self.width}x{self.height} grid")
        marker = self.registry.allocate_marker()
        self._grid.set(x, y, Cell.grain(marker))
        return marker

    def random_placement(self, grain_count: int) -> List[int]:
        """Place seeds at uniformly random coordinates.

        Seeds may land on the same cell; the later one wins.

        Args:
            grain_count: Quantity of seeds to place

        Returns:
            Allocated markers in placement order
        """
        self._check_seed_count(grain_count, "grain")

        markers = []
        overlaps = 0
        for _ in range(grain_count):
            x = int(self.rng.integers(self.width))
            y = int(self.rng.integers(self.height))
            if self._grid.is_alive(x, y):
                overlaps += 1
            marker = self.registry.allocate_marker()
            self._grid.set(x, y, Cell.grain(marker))
            markers.append(marker)

        if overlaps:
            logger.warning(f"{overlaps} of {grain_count} random seeds landed on occupied cells")
        logger.debug(f"Randomly placed {grain_count} grains")
        return markers

    @staticmethod
    def tiling_for(grain_count: int) -> Tuple[int, int]:
        """Near-square (rows, cols) tiling holding at least `grain_count` tiles."""
        side = math.isqrt(grain_count)
        rows = cols = side
        remainder = grain_count - side * side
        if remainder:
            if remainder % 2 == 0:
                rows += remainder // 2
                cols += remainder // 2
            else:
                rows += remainder
        return rows, cols

    def uniform_placement(self, grain_count: int) -> List[int]:
        """Place seeds at the centres of a near-square tiling.

        Tiles are filled in row-major order until `grain_count` seeds exist.

        Args:
            grain_count: Quantity of seeds to place

        Returns:
            Allocated markers in placement order
        """
        self._check_seed_count(grain_count, "grain")
        rows, cols = self.tiling_for(grain_count)
        row_span = self.height // rows
        col_span = self.width // cols
        if row_span == 0 or col_span == 0:
            raise InvalidConfigurationError(
                f"{rows}x{cols} tiling does not fit a {self.width}x{self.height} grid",
                {"rows": rows, "cols": cols},
            )

        markers = []
        for i in range(rows):
            for j in range(cols):
                if len(markers) == grain_count:
                    break
                x = col_span // 2 + j * col_span
                y = row_span // 2 + i * row_span
                markers.append(self.place_new_grain(x, y))

        logger.debug(f"Uniformly placed {grain_count} grains on a {rows}x{cols} tiling")
        return markers

    def place_inclusions(self, inclusion_count: int) -> List[Coordinate]:
        """Turn random cells and their neighbourhoods into inclusions.

        Args:
            inclusion_count: Number of inclusion centres to place

        Returns:
            Centres of the placed inclusions
        """
        self._check_seed_count(inclusion_count, "inclusion")

        centres = []
        for _ in range(inclusion_count):
            x = int(self.rng.integers(self.width))
            y = int(self.rng.integers(self.height))
            self._grid.set(x, y, Cell.inclusion())
            for nx, ny in self._neighbourhood.neighbour_coordinates(self._grid, x, y):
                self._grid.set(nx, ny, Cell.inclusion())
            centres.append((x, y))

        logger.debug(f"Placed {inclusion_count} inclusions ({self._grid.count_disabled()} cells disabled)")
        return centres

    # ------------------------------------------------------------------
    # Evolution
    # ------------------------------------------------------------------

    def step(self) -> int:
        """Advance one step with the active rule.

        Returns:
            Number of cells whose state changed

        Raises:
            UnsupportedModeError: If the task type has no step rule
        """
        task_type = self._task_type
        if task_type is TaskType.GRAIN_GROWTH:
            changed = self._grain_growth_step()
        elif task_type is TaskType.MONTE_CARLO:
            changed = self._monte_carlo_step()
        else:
            raise UnsupportedModeError(f"No step rule for task type {task_type.value}",
                                       {"task_type": task_type.value})

        self.step_count += 1
        logger.debug(f"Step {self.step_count} ({task_type.value}): {changed} cells changed")
        return changed

    def step_multiple(self, steps: int) -> List[int]:
        """Run several steps, returning the changed-cell count of each."""
        return [self.step() for _ in range(steps)]

    def _grain_growth_step(self) -> int:
        """Compute the next CA generation into a new grid and swap it in."""
        old_grid = self._grid
        new_grid = Grid(self.width, self.height)

        for y in range(self.height):
            for x in range(self.width):
                new_grid.set(x, y, self._neighbourhood.next_cell_state(old_grid, x, y))

        changed = int(np.sum((new_grid.alive != old_grid.alive) |
                             (new_grid.markers != old_grid.markers)))
        self._grid = new_grid
        return changed

    def _monte_carlo_step(self) -> int:
        """One Potts sweep over the current boundary cells, flipping in place."""
        changed = 0
        for x, y in self.find_border_grains():
            if self.monte_carlo_trial(x, y):
                changed += 1
        return changed

    def monte_carlo_trial(self, x: int, y: int) -> bool:
        """Offer cell (x, y) one random neighbour marker.

        The candidate is adopted when it does not raise the cell's boundary
        energy. Empty cells and inclusions are never changed.

        Returns:
            True if the cell took a new marker
        """
        grid = self._grid
        if not grid.in_bounds(x, y):
            raise IndexError(f"Coordinates ({x}, {y}) out of bounds for {self.width}x{self.height} grid")
        if not grid.is_alive(x, y) or grid.is_disabled(x, y):
            return False

        neighbourhood = self._neighbourhood
        candidates = neighbourhood.neighbour_markers(grid, x, y)
        if not candidates:
            return False

        current = grid.marker_at(x, y)
        energy = neighbourhood.energy_of(grid, x, y, current)
        candidate = candidates[int(self.rng.integers(len(candidates)))]
        new_energy = neighbourhood.energy_of(grid, x, y, candidate)

        if new_energy - energy <= 0 and candidate != current:
            grid.set_marker(x, y, candidate)
            return True
        return False

    def find_border_grains(self) -> List[Coordinate]:
        """Live cells with unlike Moore neighbours, once per unlike neighbour.

        Always scans the Moore neighbourhood, using the configured
        neighbourhood's boundary mode.

        Returns:
            Coordinates in row-major order, duplicates included
        """
        grid = self._grid
        moore = MooreNeighbourhood(self._neighbourhood.boundary)
        points = []

        for y in range(self.height):
            for x in range(self.width):
                if not grid.is_alive(x, y):
                    continue
                marker = grid.marker_at(x, y)
                for nx, ny in moore.neighbour_coordinates(grid, x, y):
                    if grid.marker_at(nx, ny) != marker:
                        points.append((x, y))

        return points

    def total_boundary_energy(self) -> int:
        """Sum of boundary energies of all live grain cells."""
        grid = self._grid
        total = 0
        for x, y in grid.coordinates():
            if grid.is_alive(x, y) and not grid.is_disabled(x, y):
                total += self._neighbourhood.energy_of(grid, x, y, grid.marker_at(x, y))
        return total

    def check_consistency(self) -> None:
        """Verify every marker in the grid is registered.

        Raises:
            MarkerConsistencyError: For the first unregistered marker found
        """
        for marker in np.unique(self._grid.markers):
            if int(marker) not in self.registry:
                raise MarkerConsistencyError(int(marker))

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    @property
    def grid(self) -> Grid:
        """Current grid. Replaced each CA step, mutated by MC steps; do not modify."""
        return self._grid

    def snapshot(self) -> Grid:
        """Independent copy of the current grid."""
        return self._grid.copy()

    def restore(self, grid: Grid) -> None:
        """Replace the current grid with a copy of a saved one.

        Raises:
            InvalidConfigurationError: If the grid has different dimensions
            MarkerConsistencyError: If the grid holds unregistered markers
        """
        if grid.shape != self._grid.shape:
            raise InvalidConfigurationError(
                f"Cannot restore a {grid.width}x{grid.height} grid into a {self.width}x{self.height} space"
            )
        previous = self._grid
        self._grid = grid.copy()
        try:
            self.check_consistency()
        except MarkerConsistencyError:
            self._grid = previous
            raise

    def color_of(self, marker: int) -> Color:
        return self.registry.color_of(marker)

    @property
    def task_type(self) -> TaskType:
        return self._task_type

    def set_task_type(self, task_type: TaskType) -> None:
        """Select the update rule used by subsequent steps."""
        self._task_type = TaskType(task_type)
        logger.info(f"Task type set to {self._task_type.value}")

    def set_grain_growth(self) -> None:
        self.set_task_type(TaskType.GRAIN_GROWTH)

    def set_monte_carlo(self) -> None:
        self.set_task_type(TaskType.MONTE_CARLO)

    def set_srx(self) -> None:
        self.set_task_type(TaskType.SRX)

    @property
    def temperature(self) -> float:
        return self._temperature

    def set_temperature(self, temperature: Union[int, float]) -> None:
        """Set temperature in Kelvin."""
        if temperature < 0:
            raise InvalidConfigurationError(f"Temperature must be >= 0, got {temperature}")
        self._temperature = float(temperature)

    @property
    def mc_grain_count(self) -> int:
        return self._mc_grain_count

    def set_generated_grain_count(self, grain_count: int) -> None:
        """Set how many grains a Monte Carlo (re)population generates."""
        if grain_count < 1:
            raise InvalidConfigurationError(f"grain count must be positive, got {grain_count}",
                                            {"grain": grain_count})
        self._mc_grain_count = grain_count

    @property
    def neighbourhood(self) -> Neighbourhood:
        return self._neighbourhood

    def set_neighbourhood(self, neighbourhood: Neighbourhood) -> None:
        self._neighbourhood = neighbourhood
        logger.info(f"Neighbourhood set to {neighbourhood!r}")

    def __repr__(self) -> str:
        return (f"Space({self.width}x{self.height}, task={self._task_type.value}, "
                f"step={self.step_count}, markers={len(self.registry)})")
