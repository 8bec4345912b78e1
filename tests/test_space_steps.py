"""Tests for the grain growth and Monte Carlo step algorithms."""

import numpy as np
import pytest

from grainca.config import TaskType
from grainca.core.cell import Cell, EMPTY_MARKER, INCLUSION_MARKER
from grainca.core.exceptions import UnsupportedModeError
from grainca.core.neighbourhood import BoundaryMode, MooreNeighbourhood, VonNeumannNeighbourhood
from grainca.engine.space import Space


def bounded_space(height, width, **kwargs):
    return Space(height, width, neighbourhood=MooreNeighbourhood(BoundaryMode.BOUNDED), **kwargs)


def fill(space, rows):
    """Paint `rows` of registry markers onto the space grid."""
    for y, row in enumerate(rows):
        for x, marker in enumerate(row):
            space.grid[x, y] = Cell.grain(marker)


class ScriptedPicks:
    """Stand-in generator returning fixed candidate indices, recording each range."""

    def __init__(self, picks):
        self._picks = iter(picks)
        self.ranges = []

    def integers(self, low, high=None, size=None, dtype=None, endpoint=False):
        self.ranges.append(low)
        return next(self._picks)


class TestGrainGrowthStep:
    """Deterministic CA growth."""

    def test_single_seed_grows_one_ring(self):
        space = bounded_space(5, 5, seed=1)
        marker = space.place_new_grain(2, 2)

        assert space.step() == 8
        grown = {(x, y) for x, y in space.grid.coordinates() if space.grid.is_alive(x, y)}
        assert grown == {(x, y) for x in (1, 2, 3) for y in (1, 2, 3)}
        assert space.grid.unique_markers() == {marker}

        assert space.step() == 16
        assert space.grid.count_alive() == 25
        assert space.step() == 0

    def test_von_neumann_growth_is_diamond(self):
        space = Space(5, 5, neighbourhood=VonNeumannNeighbourhood(BoundaryMode.BOUNDED), seed=1)
        space.place_new_grain(2, 2)

        space.step()
        grown = {(x, y) for x, y in space.grid.coordinates() if space.grid.is_alive(x, y)}
        assert grown == {(2, 2), (2, 1), (1, 2), (3, 2), (2, 3)}

    def test_tie_goes_to_lowest_marker(self):
        space = bounded_space(5, 5, seed=6)
        a = space.place_new_grain(0, 2)
        b = space.place_new_grain(4, 2)

        space.step_multiple(2)
        assert space.grid.marker_at(2, 2) == min(a, b)

    def test_step_publishes_new_grid(self):
        space = Space(6, 6, seed=2)
        space.random_placement(3)
        before = space.grid

        space.step()
        assert space.grid is not before

    def test_step_is_pure(self):
        """Stepping from the same saved grid always gives the same result."""
        space = Space(25, 25, seed=12)
        space.random_placement(6)
        space.place_inclusions(2)
        saved = space.snapshot()

        space.step()
        first = space.snapshot()

        space.restore(saved)
        space.step()
        assert space.grid == first
        assert saved != first

    def test_step_does_not_touch_input_grid(self):
        space = Space(10, 10, seed=3)
        space.random_placement(4)
        before = space.grid
        saved = before.copy()

        space.step()
        assert before == saved

    def test_step_counter(self):
        space = Space(4, 4)
        assert space.step_multiple(3) == [0, 0, 0]
        assert space.step_count == 3


class TestMonteCarloStep:
    """Stochastic Potts boundary motion."""

    def test_surrounded_cell_flips_to_neighbour_marker(self):
        """A cell whose every candidate lowers its energy takes that candidate."""
        space = Space(5, 5, seed=1)
        a, b = space.registry.allocate_markers(2)
        fill(space, [[b] * 5] * 5)
        space.grid[2, 2] = Cell.grain(a)
        space.set_monte_carlo()

        grid = space.grid
        assert space.step() == 1
        assert space.grid is grid
        assert space.grid.marker_at(2, 2) == b
        assert space.grid.unique_markers() == {b}

    def test_uphill_moves_are_rejected(self):
        """Cells next to a lone foreign cell never adopt its marker."""
        space = Space(6, 6, seed=9)
        a, b = space.registry.allocate_markers(2)
        fill(space, [[a] * 6] * 6)
        space.grid[3, 3] = Cell.grain(b)
        space.set_monte_carlo()

        for _ in range(5):
            space.step()
            assert space.grid.unique_markers() == {a}

    def test_forced_uphill_picks_are_rejected(self):
        """Cells that draw the foreign marker keep theirs; the lone cell joins its neighbours."""
        space = bounded_space(2, 3, seed=9)
        a, b = space.registry.allocate_markers(2)
        fill(space, [[a, a, a],
                     [a, a, b]])
        space.set_monte_carlo()
        # border trials: (1,0), (2,0), (1,1), then (2,1) three times
        space.rng = ScriptedPicks([4, 2, 4, 0, 0, 0])

        assert space.step() == 1
        assert space.rng.ranges == [5, 3, 5, 3, 3, 3]
        assert space.grid.unique_markers() == {a}

    @pytest.fixture
    def mixed_space(self):
        """Centre `a` sees candidates [a, a, c, b, b, b, b, b]: c raises its energy, b lowers it."""
        space = bounded_space(3, 3, seed=2)
        a, b, c = space.registry.allocate_markers(3)
        fill(space, [[a, a, c],
                     [b, a, b],
                     [b, b, b]])
        space.set_monte_carlo()
        return space, (a, b, c)

    def test_trial_rejects_higher_energy_candidate(self, mixed_space):
        space, (a, b, c) = mixed_space
        space.rng = ScriptedPicks([2])

        hood = space.neighbourhood
        assert hood.energy_of(space.grid, 1, 1, c) > hood.energy_of(space.grid, 1, 1, a)
        assert not space.monte_carlo_trial(1, 1)
        assert space.grid.marker_at(1, 1) == a
        assert space.rng.ranges == [8]

    def test_trial_adopts_lower_energy_candidate(self, mixed_space):
        space, (a, b, c) = mixed_space
        space.rng = ScriptedPicks([3])

        assert space.monte_carlo_trial(1, 1)
        assert space.grid.marker_at(1, 1) == b

    def test_trial_ignores_empty_and_inclusion_cells(self):
        space = bounded_space(3, 3, seed=2)
        a = space.place_new_grain(0, 0)
        space.grid[2, 2] = Cell.inclusion()
        space.rng = ScriptedPicks([])

        assert not space.monte_carlo_trial(1, 1)
        assert not space.monte_carlo_trial(2, 2)
        assert not space.monte_carlo_trial(0, 0)  # only empty and inclusion neighbours
        assert space.grid.marker_at(0, 0) == a
        assert space.rng.ranges == []

    def test_trial_out_of_bounds(self):
        space = bounded_space(3, 3)
        with pytest.raises(IndexError):
            space.monte_carlo_trial(-1, 0)

    def test_partly_grown_grid_never_gains_empty_markers(self):
        """Switching to Monte Carlo before growth finishes keeps dead cells dead and live cells in grains."""
        space = Space(9, 9, seed=5)
        seeds = set(space.uniform_placement(4))
        space.step()
        alive_before = space.grid.alive.copy()
        space.set_monte_carlo()

        space.step_multiple(5)

        grid = space.grid
        assert not np.any(grid.alive & (grid.markers == EMPTY_MARKER))
        assert np.array_equal(grid.alive, alive_before)
        assert grid.unique_markers() <= seeds

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_local_moves_never_raise_total_energy(self, seed):
        space = Space(12, 12, TaskType.MONTE_CARLO, mc_grain_count=6, seed=seed)
        energies = [space.total_boundary_energy()]
        for _ in range(5):
            space.step()
            energies.append(space.total_boundary_energy())

        assert all(b <= a for a, b in zip(energies, energies[1:]))
        assert energies[-1] < energies[0]

    def test_markers_stay_registered(self):
        space = Space(15, 15, TaskType.MONTE_CARLO, mc_grain_count=8, seed=4)
        space.step_multiple(3)
        space.check_consistency()

    def test_seeded_runs_are_reproducible(self):
        runs = []
        for _ in range(2):
            space = Space(10, 10, TaskType.MONTE_CARLO, mc_grain_count=5, seed=21)
            space.step_multiple(3)
            runs.append(space.snapshot())
        assert runs[0] == runs[1]

    def test_uniform_grid_has_nothing_to_do(self):
        space = Space(6, 6, TaskType.MONTE_CARLO, mc_grain_count=1, seed=1)
        assert space.find_border_grains() == []
        assert space.step() == 0

    def test_temperature_does_not_change_result(self):
        grids = []
        for temperature in (0, 720, 5000):
            space = Space(10, 10, TaskType.MONTE_CARLO, mc_grain_count=5, seed=8,
                          temperature=temperature)
            space.step_multiple(2)
            grids.append(space.snapshot())
        assert grids[0] == grids[1] == grids[2]


class TestInclusionsAreInert:
    """Disabled cells survive any number of steps untouched."""

    @pytest.mark.parametrize("task_type", [TaskType.GRAIN_GROWTH, TaskType.MONTE_CARLO])
    def test_inclusions_unchanged(self, task_type):
        space = Space(20, 20, task_type, mc_grain_count=5, seed=17)
        if task_type is TaskType.GRAIN_GROWTH:
            space.random_placement(5)
        space.place_inclusions(3)
        mask = space.grid.disabled.copy()

        for _ in range(8):
            space.step()
            assert np.array_equal(space.grid.disabled, mask)
            assert np.all(space.grid.alive[mask])
            assert np.all(space.grid.markers[mask] == INCLUSION_MARKER)
            assert not np.any(space.grid.markers[~mask] == INCLUSION_MARKER)


class TestFindBorderGrains:
    """Boundary detection."""

    def test_two_halves(self):
        """Only the two columns either side of the boundary are reported."""
        space = bounded_space(6, 6, seed=3)
        a, b = space.registry.allocate_markers(2)
        fill(space, [[a, a, a, b, b, b]] * 6)

        border = space.find_border_grains()
        assert {(x, y) for x, y in border} == {(x, y) for x in (2, 3) for y in range(6)}
        assert border.count((2, 2)) == 3
        assert border.count((2, 0)) == 2

    def test_row_major_order(self):
        space = bounded_space(6, 6, seed=3)
        a, b = space.registry.allocate_markers(2)
        fill(space, [[a, a, a, b, b, b]] * 6)

        border = space.find_border_grains()
        assert border == sorted(border, key=lambda p: (p[1], p[0]))

    def test_periodic_boundary_wraps(self):
        space = Space(6, 6, seed=3)
        a, b = space.registry.allocate_markers(2)
        fill(space, [[a, a, a, b, b, b]] * 6)

        columns = {x for x, _ in space.find_border_grains()}
        assert columns == {0, 2, 3, 5}

    def test_checkerboard(self):
        space = bounded_space(4, 4, seed=3)
        a, b = space.registry.allocate_markers(2)
        fill(space, [[a if (x + y) % 2 == 0 else b for x in range(4)] for y in range(4)])

        border = space.find_border_grains()
        assert set(border) == set(space.grid.coordinates())
        assert border.count((1, 1)) == 4

    def test_always_moore(self):
        """A diagonal contact counts even with a Von Neumann neighbourhood."""
        space = Space(3, 3, neighbourhood=VonNeumannNeighbourhood(BoundaryMode.BOUNDED), seed=2)
        a, b = space.registry.allocate_markers(2)
        space.grid[0, 0] = Cell.grain(a)
        space.grid[1, 1] = Cell.grain(b)

        border = space.find_border_grains()
        assert border.count((0, 0)) == 3
        assert border.count((1, 1)) == 8

    def test_dead_cells_skipped(self):
        space = Space(4, 4, seed=1)
        space.place_new_grain(1, 1)
        assert set(space.find_border_grains()) == {(1, 1)}


class TestSrx:

    def test_srx_step_is_unsupported(self):
        space = Space(4, 4, TaskType.SRX)
        with pytest.raises(UnsupportedModeError):
            space.step()
        assert space.step_count == 0

    def test_unsupported_is_not_implemented(self):
        space = Space(4, 4)
        space.set_srx()
        with pytest.raises(NotImplementedError):
            space.step()
