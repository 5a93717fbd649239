"""Placement rules.

A piece may occupy a cell when the cell is empty, every side facing off the
board is FLAT, every side facing another cell is a connector, and every
connector facing an occupied neighbour mates with that neighbour's edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from .edges import EdgeState, Side, compatible
from .errors import InvalidPlacementError
from .grid import BoardGrid, Coordinate
from .pieces import Piece, boundary_sides


@dataclass(frozen=True)
class Conflict:
    row: int
    col: int
    side: Side
    reason: str


def boundary_violation(edges: Sequence[EdgeState], row: int, col: int, size: int) -> Optional[str]:
    """Why ``edges`` cannot sit at (row, col) on an empty board, or None."""
    outward = boundary_sides(row, col, size)
    for side in Side:
        edge = edges[int(side)]
        if side in outward and edge is not EdgeState.FLAT:
            return f"{side.name.lower()} faces the board edge but is {edge.name}"
        if side not in outward and not edge.is_connector:
            return f"{side.name.lower()} is FLAT but faces another cell"
    return None


def rejection_reason(piece: Piece, rotation: int, row: int, col: int, grid: BoardGrid) -> Optional[str]:
    if grid.occupant(row, col) is not None:
        return "cell is occupied"

    edges = piece.edges_at(rotation)
    reason = boundary_violation(edges, row, col, grid.size)
    if reason is not None:
        return reason

    for side in Side:
        d_row, d_col = side.offset
        n_row, n_col = row + d_row, col + d_col
        if not grid.is_inside(n_row, n_col):
            continue
        neighbour = grid.occupant(n_row, n_col)
        if neighbour is None:
            continue
        mine = edges[int(side)]
        theirs = neighbour.edge(side.opposite)
        if not (mine.is_connector and theirs.is_connector):
            return f"{side.name.lower()} seam touches a FLAT edge"
        if not compatible(mine, theirs):
            return f"{side.name.lower()} edge {mine.name} does not mate with neighbour {theirs.name}"
    return None


def can_place(piece: Piece, rotation: int, row: int, col: int, grid: BoardGrid) -> bool:
    """Side-effect free legality check."""
    return rejection_reason(piece, rotation, row, col, grid) is None


def place(piece: Piece, rotation: int, row: int, col: int, grid: BoardGrid) -> None:
    """Put ``piece`` on the grid or raise ``InvalidPlacementError`` leaving everything untouched."""
    reason = rejection_reason(piece, rotation, row, col, grid)
    if reason is not None:
        raise InvalidPlacementError(piece.id, row, col, rotation, reason)
    piece.placed = True
    piece.current_rotation = rotation % 4
    grid.set_occupant(row, col, piece)


def valid_targets(piece: Piece, rotation: int, grid: BoardGrid) -> Set[Coordinate]:
    return {(row, col) for row, col in grid.coordinates() if can_place(piece, rotation, row, col, grid)}


def find_conflicts(grid: BoardGrid) -> List[Conflict]:
    """Every boundary or seam violation among the occupied cells.

    Each interior seam is reported once, from its top or left cell.
    """
    conflicts: List[Conflict] = []
    for row, col, piece in grid.occupied():
        edges = piece.edges_at()
        outward = boundary_sides(row, col, grid.size)
        for side in outward:
            if edges[int(side)] is not EdgeState.FLAT:
                conflicts.append(Conflict(row, col, side, "boundary edge is not FLAT"))
        for side in (Side.RIGHT, Side.BOTTOM):
            if side in outward:
                continue
            d_row, d_col = side.offset
            neighbour = grid.occupant(row + d_row, col + d_col)
            if neighbour is None:
                continue
            if not compatible(edges[int(side)], neighbour.edge(side.opposite)):
                conflicts.append(Conflict(row, col, side, "facing edges do not mate"))
    return conflicts


def seams(size: int) -> List[Tuple[Coordinate, Side]]:
    """Every interior seam, as (top-or-left cell, side towards the other cell)."""
    out: List[Tuple[Coordinate, Side]] = []
    for row in range(size):
        for col in range(size):
            if col < size - 1:
                out.append(((row, col), Side.RIGHT))
            if row < size - 1:
                out.append(((row, col), Side.BOTTOM))
    return out
