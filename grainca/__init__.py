"""
grainca: 2D grain microstructure simulation

Cellular-automaton grain growth and Monte Carlo Potts grain boundary motion
on a discrete grid, with a background runner that publishes each completed
step to observers.
"""

from .config import BOLTZMANN, SpaceConfig, TaskType
from .core.cell import Cell, EMPTY_MARKER, INCLUSION_MARKER
from .core.exceptions import (
    GrainSimError,
    InvalidConfigurationError,
    MarkerConsistencyError,
    UnsupportedModeError,
)
from .core.grid import Grid
from .core.markers import MarkerRegistry
from .core.neighbourhood import (
    BoundaryMode,
    MooreNeighbourhood,
    Neighbourhood,
    VonNeumannNeighbourhood,
    neighbourhood_from_name,
)
from .engine.runner import RunnerState, SimulationRunner
from .engine.space import Space

__version__ = "0.1.0"

__all__ = [
    'BOLTZMANN',
    'BoundaryMode',
    'Cell',
    'EMPTY_MARKER',
    'GrainSimError',
    'Grid',
    'INCLUSION_MARKER',
    'InvalidConfigurationError',
    'MarkerConsistencyError',
    'MarkerRegistry',
    'MooreNeighbourhood',
    'Neighbourhood',
    'RunnerState',
    'SimulationRunner',
    'Space',
    'SpaceConfig',
    'TaskType',
    'UnsupportedModeError',
    'VonNeumannNeighbourhood',
    'neighbourhood_from_name',
]
