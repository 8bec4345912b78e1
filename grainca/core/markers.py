"""Marker registry: unique grain ids bound to display colors.

The registry is the only source of grain markers. Ids are drawn from the
full signed 64-bit range, so collisions are rare and simply retried.
"""

import numpy as np
from typing import Dict, Iterator, List, Optional, Tuple
import logging

from .cell import EMPTY_MARKER, INCLUSION_MARKER
from .exceptions import InvalidConfigurationError, MarkerConsistencyError
from ..config import EMPTY_COLOR, INCLUSION_COLOR

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

_INT64 = np.iinfo(np.int64)


class MarkerRegistry:
    """Mapping from grain marker to RGB display color.

    Entries are only ever added through `allocate_marker`; nothing is
    overwritten or removed.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        """Initialize registry with the reserved empty and inclusion entries.

        Args:
            rng: Random source for ids and colors (fresh unseeded one if None)
        """
        self.rng = rng if rng is not None else np.random.default_rng()
        self._colors: Dict[int, Color] = {
            EMPTY_MARKER: EMPTY_COLOR,
            INCLUSION_MARKER: INCLUSION_COLOR,
        }

    def allocate_marker(self) -> int:
        """Register a new unique marker bound to a random color.

        Returns:
            Marker id not previously present in the registry
        """
        retries = 0
        while True:
            color = tuple(int(c) for c in self.rng.integers(0, 256, size=3))
            marker = int(self.rng.integers(_INT64.min, _INT64.max, dtype=np.int64, endpoint=True))
            if marker not in self._colors:
                break
            retries += 1

        if retries:
            logger.debug(f"Marker allocation needed {retries} retries")
        self._colors[marker] = color
        return marker

    def allocate_markers(self, count: int) -> List[int]:
        """Allocate `count` unique markers in order."""
        if count < 0:
            raise InvalidConfigurationError(f"Cannot allocate {count} markers")
        return [self.allocate_marker() for _ in range(count)]

    def color_of(self, marker: int) -> Color:
        """Get display color bound to a marker.

        Raises:
            MarkerConsistencyError: If the marker was never registered
        """
        try:
            return self._colors[int(marker)]
        except KeyError:
            raise MarkerConsistencyError(int(marker)) from None

    def markers(self) -> List[int]:
        """All registered markers in registration order (reserved ones first)."""
        return list(self._colors)

    def __contains__(self, marker: object) -> bool:
        return marker in self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[int]:
        return iter(self._colors)

    def __repr__(self) -> str:
        return f"MarkerRegistry(markers={len(self._colors)})"
