from __future__ import annotations

from typing import Iterator, Optional, Tuple

import numpy as np

from .errors import CellOutOfBoundsError
from .pieces import Piece


Coordinate = Tuple[int, int]

EMPTY = -1


class BoardGrid:
    """N x N storage of cell occupants and lock flags.

    Occupants are shared ``Piece`` references, never copies. No placement
    rules live here; see ``rules.can_place``.
    """

    def __init__(self, size: int) -> None:
        self.size = int(size)
        self.cells = np.empty((self.size, self.size), dtype=object)
        self.locked = np.zeros((self.size, self.size), dtype=np.bool_)

    @classmethod
    def create_empty(cls, size: int) -> "BoardGrid":
        return cls(size)

    def reset(self) -> None:
        self.cells.fill(None)
        self.locked.fill(False)

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def _check(self, row: int, col: int) -> None:
        if not self.is_inside(row, col):
            raise CellOutOfBoundsError(row, col, self.size)

    def occupant(self, row: int, col: int) -> Optional[Piece]:
        self._check(row, col)
        return self.cells[row, col]

    def set_occupant(self, row: int, col: int, piece: Piece) -> None:
        self._check(row, col)
        self.cells[row, col] = piece

    def clear_occupant(self, row: int, col: int) -> Optional[Piece]:
        self._check(row, col)
        piece = self.cells[row, col]
        self.cells[row, col] = None
        return piece

    def is_occupied(self, row: int, col: int) -> bool:
        return self.occupant(row, col) is not None

    def is_locked(self, row: int, col: int) -> bool:
        self._check(row, col)
        return bool(self.locked[row, col])

    def set_locked(self, row: int, col: int, locked: bool) -> None:
        self._check(row, col)
        self.locked[row, col] = bool(locked)

    def coordinates(self) -> Iterator[Coordinate]:
        """Row-major scan order."""
        for row in range(self.size):
            for col in range(self.size):
                yield row, col

    def occupied(self) -> Iterator[Tuple[int, int, Piece]]:
        for row, col in self.coordinates():
            piece = self.cells[row, col]
            if piece is not None:
                yield row, col, piece

    def filled_count(self) -> int:
        return int(np.count_nonzero(self.occupancy_mask()))

    def is_full(self) -> bool:
        return self.filled_count() == self.size * self.size

    def occupancy_mask(self) -> np.ndarray:
        return np.not_equal(self.cells, None)

    def piece_ids(self) -> np.ndarray:
        """Piece id per cell, ``EMPTY`` where vacant."""
        ids = np.full((self.size, self.size), EMPTY, dtype=np.int32)
        for row, col, piece in self.occupied():
            ids[row, col] = piece.id
        return ids

    def edge_state(self) -> np.ndarray:
        """(size, size, 4) edges of each occupant at its current rotation; 0 where vacant."""
        edges = np.zeros((self.size, self.size, 4), dtype=np.int8)
        for row, col, piece in self.occupied():
            edges[row, col, :] = [int(e) for e in piece.edges_at()]
        return edges
