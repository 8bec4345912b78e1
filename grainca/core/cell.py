"""Cell value type and reserved marker ids.

A cell is the smallest unit of simulation state: an alive flag, the marker
of the grain owning it, and a disabled flag for inert matter such as
inclusions.
"""

from dataclasses import dataclass

from .exceptions import InvalidConfigurationError

EMPTY_MARKER: int = 0          # Owner of every dead cell
INCLUSION_MARKER: int = -1     # Owner of every disabled cell


@dataclass(frozen=True)
class Cell:
    """Immutable state of one grid cell.

    Attributes:
        alive: True if the cell belongs to a grain or inclusion
        marker: 64-bit id of the owning grain
        disabled: True for permanently inert cells (inclusions)
    """
    alive: bool
    marker: int
    disabled: bool = False

    def __post_init__(self) -> None:
        if self.disabled and not (self.alive and self.marker == INCLUSION_MARKER):
            raise InvalidConfigurationError(
                "Disabled cells must be alive and carry the inclusion marker",
                {"alive": self.alive, "marker": self.marker},
            )

    @classmethod
    def empty(cls) -> 'Cell':
        """Create a dead cell owned by the empty marker."""
        return cls(False, EMPTY_MARKER)

    @classmethod
    def inclusion(cls) -> 'Cell':
        """Create a permanently disabled inclusion cell."""
        return cls(True, INCLUSION_MARKER, True)

    @classmethod
    def grain(cls, marker: int) -> 'Cell':
        """Create a live cell belonging to grain `marker`."""
        return cls(True, int(marker))

    @property
    def is_empty(self) -> bool:
        return not self.alive and self.marker == EMPTY_MARKER

    def __str__(self) -> str:
        if self.disabled:
            return "#"
        return "X" if self.alive else "."
