from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional, Sequence, Tuple

from .edges import EdgeState, EdgeTuple, Side


Position = Tuple[int, int]


class PieceClass(Enum):
    CORNER = "corner"
    BORDER = "border"
    INTERIOR = "interior"


class PieceColor(IntEnum):
    BLACK = 1
    WHITE = 2


def rotate_edges(edges: Sequence[EdgeState], k: int) -> EdgeTuple:
    """Cyclic left shift: ``rotated[i] == edges[(i + k) % 4]``."""
    k = k % 4
    return tuple(EdgeState(edges[(i + k) % 4]) for i in range(4))  # type: ignore[return-value]


def rotations(edges: Sequence[EdgeState]) -> List[EdgeTuple]:
    """All four rotations; index 0 is the canonical orientation."""
    return [rotate_edges(edges, k) for k in range(4)]


def boundary_sides(row: int, col: int, size: int) -> List[Side]:
    """Sides of cell (row, col) that face off the board."""
    sides: List[Side] = []
    if row == 0:
        sides.append(Side.TOP)
    if col == size - 1:
        sides.append(Side.RIGHT)
    if row == size - 1:
        sides.append(Side.BOTTOM)
    if col == 0:
        sides.append(Side.LEFT)
    return sides


def classify_cell(row: int, col: int, size: int) -> PieceClass:
    flats = len(boundary_sides(row, col, size))
    if flats == 2:
        return PieceClass.CORNER
    if flats == 1:
        return PieceClass.BORDER
    return PieceClass.INTERIOR


def class_counts(size: int) -> dict:
    """Structural piece counts of an N x N board."""
    return {
        PieceClass.CORNER: 4,
        PieceClass.BORDER: 4 * (size - 2),
        PieceClass.INTERIOR: (size - 2) ** 2,
    }


@dataclass(eq=False)
class Piece:
    id: int
    piece_class: PieceClass
    edges: EdgeTuple
    color: PieceColor = PieceColor.BLACK
    placed: bool = False
    locked: bool = False
    current_rotation: int = 0
    solved_position: Optional[Position] = None
    solved_rotation: int = 0
    rotations: List[EdgeTuple] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.set_edges(self.edges)

    def set_edges(self, edges: Sequence[EdgeState]) -> None:
        """Replace the canonical tuple and refresh the precomputed rotations."""
        self.edges = tuple(EdgeState(e) for e in edges)  # type: ignore[assignment]
        self.rotations = rotations(self.edges)

    def set_edge(self, side: Side, state: EdgeState) -> None:
        edges = list(self.edges)
        edges[int(side)] = state
        self.set_edges(edges)

    def edges_at(self, rotation: Optional[int] = None) -> EdgeTuple:
        if rotation is None:
            rotation = self.current_rotation
        return self.rotations[rotation % 4]

    def edge(self, side: Side, rotation: Optional[int] = None) -> EdgeState:
        return self.edges_at(rotation)[int(side)]

    def solved_edges(self) -> EdgeTuple:
        return self.edges_at(self.solved_rotation)

    def reset(self) -> None:
        self.placed = False
        self.locked = False
        self.current_rotation = 0


class PieceFactory:
    """Creates pieces. All randomness comes from the injected ``rng``."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def _connector(self) -> EdgeState:
        return EdgeState.KNOB if self.rng.random() < 0.5 else EdgeState.HOLE

    def _color(self) -> PieceColor:
        return PieceColor.BLACK if self.rng.random() < 0.5 else PieceColor.WHITE

    def create_edges(self, piece_class: PieceClass, position: Optional[Tuple[int, int, int]] = None) -> EdgeTuple:
        """Edge tuple for ``piece_class``.

        ``position`` is ``(row, col, size)``. When given, the FLAT sides are the
        ones facing off the board at that cell, and the class must agree with
        the cell. Without it, corners get a random adjacent pair of FLAT sides
        and borders a random single FLAT side.
        """
        if not isinstance(piece_class, PieceClass):
            raise ValueError(f"Unknown piece class: {piece_class!r}")

        if position is not None:
            row, col, size = position
            expected = classify_cell(row, col, size)
            if expected is not piece_class:
                raise ValueError(f"cell ({row}, {col}) holds a {expected.value} piece, not {piece_class.value}")
            flat_sides = boundary_sides(row, col, size)
        elif piece_class is PieceClass.CORNER:
            first = self.rng.randrange(4)
            flat_sides = [Side(first), Side((first + 1) % 4)]
        elif piece_class is PieceClass.BORDER:
            flat_sides = [Side(self.rng.randrange(4))]
        else:
            flat_sides = []

        edges = [EdgeState.FLAT if Side(i) in flat_sides else self._connector() for i in range(4)]
        return tuple(edges)  # type: ignore[return-value]

    def create_piece(
        self,
        piece_id: int,
        piece_class: PieceClass,
        position: Optional[Tuple[int, int, int]] = None,
    ) -> Piece:
        edges = self.create_edges(piece_class, position)
        piece = Piece(id=piece_id, piece_class=piece_class, edges=edges, color=self._color())
        if position is not None:
            piece.solved_position = (position[0], position[1])
        return piece

    def create_piece_for_cell(self, piece_id: int, row: int, col: int, size: int) -> Piece:
        return self.create_piece(piece_id, classify_cell(row, col, size), (row, col, size))

    def create_piece_set(self, size: int) -> List[Piece]:
        """Position-agnostic set for an N x N board: corners, then borders, then interiors."""
        pieces: List[Piece] = []
        for piece_class, count in class_counts(size).items():
            for _ in range(count):
                pieces.append(self.create_piece(len(pieces), piece_class))
        return pieces
