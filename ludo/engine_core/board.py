"""
Board Layout - Track geometry, color palette and safe cells.

The shared track is a ring of 52 cells. Every color enters the ring at its
own start offset and counts steps from there:

    step 0..51   shared ring, absolute cell = (start_offset + step) % 52
    step 52..56  the color's private lane (unreachable by opponents)
    step 57      Home

Two layouts ship: the classic four-color board and a three-color board that
leaves the yellow quarter empty.
"""

from __future__ import annotations
from dataclasses import dataclass, field


TRACK_LENGTH = 52
LANE_LENGTH = 6  # lane cells plus the Home cell
TOKENS_PER_COLOR = 4
DIE_FACES = 6
SAFE_CELLS = frozenset({0, 8, 13, 21, 26, 34, 39, 47})


@dataclass(frozen=True)
class BoardLayout:
    """
    Immutable description of one board variant.

    colors is the canonical seating order; seats take the lowest unused
    color in this order.
    """
    name: str
    colors: tuple[str, ...]
    start_offsets: dict[str, int] = field(hash=False)
    safe_cells: frozenset[int] = SAFE_CELLS
    track_length: int = TRACK_LENGTH
    lane_length: int = LANE_LENGTH
    tokens_per_color: int = TOKENS_PER_COLOR

    @property
    def max_step(self) -> int:
        """Step value of Home; reaching it needs an exact roll."""
        return self.track_length + self.lane_length - 1

    @property
    def max_seats(self) -> int:
        return len(self.colors)

    def absolute_cell(self, color: str, step: int) -> int | None:
        """Map a color-relative step to a ring cell, or None inside the lane."""
        if step < 0 or step >= self.track_length:
            return None
        return (self.start_offsets[color] + step) % self.track_length

    def is_safe(self, cell: int) -> bool:
        return cell in self.safe_cells


CLASSIC = BoardLayout(
    name="classic",
    colors=("red", "green", "yellow", "blue"),
    start_offsets={"red": 0, "green": 13, "yellow": 26, "blue": 39},
)

TRIO = BoardLayout(
    name="trio",
    colors=("red", "green", "blue"),
    start_offsets={"red": 0, "green": 13, "blue": 39},
)

LAYOUTS: dict[str, BoardLayout] = {
    CLASSIC.name: CLASSIC,
    TRIO.name: TRIO,
}


def get_layout(name: str) -> BoardLayout:
    """Look up a layout by name."""
    try:
        return LAYOUTS[name]
    except KeyError:
        raise ValueError(
            f"Unknown board variant '{name}'. Supported: {sorted(LAYOUTS)}"
        ) from None
