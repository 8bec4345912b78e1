"""
Grain Growth Rules

Pure transition rules shared by the neighbourhood variants: majority vote for
the cellular-automaton growth rule and Potts boundary energy for the Monte
Carlo rule. Nothing here touches a grid; callers pass neighbour data in.
"""

import math
from collections import Counter
from typing import Iterable, Optional, Sequence

from .cell import Cell
from ..config import BOLTZMANN


def dominant_marker(markers: Iterable[int]) -> Optional[int]:
    """Most frequent marker, ties broken by lowest marker value.

    Args:
        markers: Neighbour markers (duplicates count as votes)

    Returns:
        Winning marker, or None if there were no votes
    """
    counts = Counter(markers)
    if not counts:
        return None
    best = max(counts.values())
    return min(m for m, c in counts.items() if c == best)


def next_cell_state(cell: Cell, neighbours: Sequence[Cell]) -> Cell:
    """Apply the grain growth rule to one cell.

    Args:
        cell: Current cell state
        neighbours: Neighbour cells in neighbourhood order

    Returns:
        Next cell state
    """
    if cell.disabled or cell.alive:
        # Grains keep their cells, inclusions never change
        return cell

    votes = [n.marker for n in neighbours if n.alive and not n.disabled]
    winner = dominant_marker(votes)
    if winner is None:
        return cell
    return Cell.grain(winner)


def boundary_energy(neighbour_markers: Iterable[int], candidate: int) -> int:
    """Potts boundary energy: neighbours whose marker differs from candidate.

    Args:
        neighbour_markers: Markers of all neighbour cells
        candidate: Marker being evaluated for the centre cell

    Returns:
        Number of unlike neighbours (one unit of energy each)
    """
    return sum(1 for m in neighbour_markers if m != candidate)


def boltzmann_probability(delta_energy: float, temperature: float) -> float:
    """Probability of accepting a move with energy change `delta_energy`.

    Downhill and neutral moves are always accepted. At zero temperature
    uphill moves are never accepted.
    """
    if delta_energy <= 0:
        return 1.0
    if temperature <= 0:
        return 0.0
    return math.exp(-delta_energy / (BOLTZMANN * temperature))


def boltzmann_acceptance(delta_energy: float, temperature: float, draw: float) -> bool:
    """Metropolis acceptance test for a uniform draw in [0, 1).

    Not used by the Monte Carlo step, which accepts only non-increasing
    moves; kept for temperature-weighted variants.
    """
    return draw < boltzmann_probability(delta_energy, temperature)
