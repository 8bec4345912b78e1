"""Configuration constants and the typed engine configuration.

Defaults mirror the values the simulator has always shipped with: 720 K
temperature and 50 generated grains for Monte Carlo runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .core.exceptions import InvalidConfigurationError

__all__ = [
    "BOLTZMANN",
    "DEFAULT_MC_GRAIN_COUNT",
    "DEFAULT_TEMPERATURE",
    "EMPTY_COLOR",
    "IDLE_POLL_INTERVAL",
    "INCLUSION_COLOR",
    "MC_PICK_MODULUS",
    "NEIGHBOURHOOD_NAMES",
    "SpaceConfig",
    "TaskType",
]

BOLTZMANN: float = 8.617332e-5          # eV/K
DEFAULT_TEMPERATURE: float = 720.0      # K
DEFAULT_MC_GRAIN_COUNT: int = 50
MC_PICK_MODULUS: int = 2000             # index = rand(MC_PICK_MODULUS) % grain_count
IDLE_POLL_INTERVAL: float = 0.1         # seconds between polls while paused

EMPTY_COLOR: Tuple[int, int, int] = (255, 255, 255)
INCLUSION_COLOR: Tuple[int, int, int] = (0, 0, 0)

NEIGHBOURHOOD_NAMES = ("moore", "von_neumann")


class TaskType(Enum):
    """Update rule driven by the engine."""

    GRAIN_GROWTH = "grain_growth"
    MONTE_CARLO = "monte_carlo"
    SRX = "srx"  # static recrystallization, no step rule yet


@dataclass(frozen=True)
class SpaceConfig:
    """Everything needed to build a `Space`."""

    height: int
    width: int
    task_type: TaskType = TaskType.GRAIN_GROWTH
    neighbourhood: str = "moore"
    periodic: bool = True
    temperature: float = DEFAULT_TEMPERATURE
    mc_grain_count: int = DEFAULT_MC_GRAIN_COUNT
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.height < 1 or self.width < 1:
            raise InvalidConfigurationError("height and width must be >= 1")
        if self.neighbourhood not in NEIGHBOURHOOD_NAMES:
            raise InvalidConfigurationError(
                f"neighbourhood must be one of {NEIGHBOURHOOD_NAMES}, got {self.neighbourhood!r}"
            )
        if self.temperature < 0:
            raise InvalidConfigurationError("temperature must be >= 0")
        if self.mc_grain_count < 1:
            raise InvalidConfigurationError("mc_grain_count must be >= 1")
        if self.task_type is TaskType.MONTE_CARLO and self.mc_grain_count > self.height * self.width:
            raise InvalidConfigurationError("mc_grain_count cannot exceed the number of cells")

    def build_neighbourhood(self):
        """Create the neighbourhood instance this configuration names."""
        from .core.neighbourhood import neighbourhood_from_name

        return neighbourhood_from_name(self.neighbourhood, self.periodic)
