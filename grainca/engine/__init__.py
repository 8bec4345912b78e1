"""Simulation engine and its background execution loop."""

from .space import BOLTZMANN, Space, TaskType
from .runner import RunnerState, SimulationRunner

__all__ = [
    'BOLTZMANN',
    'RunnerState',
    'SimulationRunner',
    'Space',
    'TaskType',
]
