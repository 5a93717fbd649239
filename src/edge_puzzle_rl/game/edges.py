from __future__ import annotations

from enum import IntEnum
from typing import Tuple


class EdgeState(IntEnum):
    FLAT = 0  # board boundary
    KNOB = 1  # protrusion
    HOLE = -1  # socket

    def opposite(self) -> "EdgeState":
        """Return the mating polarity. FLAT has no mate and maps to itself."""
        return EdgeState(-int(self))

    @property
    def is_connector(self) -> bool:
        return self is not EdgeState.FLAT

    @property
    def symbol(self) -> str:
        return {EdgeState.FLAT: "-", EdgeState.KNOB: "K", EdgeState.HOLE: "H"}[self]


class Side(IntEnum):
    """Clockwise side index into an edge tuple."""

    TOP = 0
    RIGHT = 1
    BOTTOM = 2
    LEFT = 3

    @property
    def opposite(self) -> "Side":
        return Side((int(self) + 2) % 4)

    @property
    def offset(self) -> Tuple[int, int]:
        """(d_row, d_col) towards the neighbour on this side."""
        return _OFFSETS[self]


_OFFSETS = {
    Side.TOP: (-1, 0),
    Side.RIGHT: (0, 1),
    Side.BOTTOM: (1, 0),
    Side.LEFT: (0, -1),
}


# Clockwise [top, right, bottom, left]
EdgeTuple = Tuple[EdgeState, EdgeState, EdgeState, EdgeState]


def compatible(a: EdgeState, b: EdgeState) -> bool:
    """True iff one edge is a KNOB and the other a HOLE.

    FLAT is never compatible with anything here, FLAT included; boundary
    flatness is a positional rule checked by the placement validator.
    """
    return {a, b} == {EdgeState.KNOB, EdgeState.HOLE}


def edge_code(edges: EdgeTuple) -> str:
    """Compact text form, e.g. ``-KH-`` for top=FLAT, right=KNOB, bottom=HOLE, left=FLAT."""
    return "".join(EdgeState(e).symbol for e in edges)
