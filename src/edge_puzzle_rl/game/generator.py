"""Solved-board generation.

Two strategies produce a board on which every piece sits in its solved cell
and the placement rules hold at every cell:

* ``REPAIR`` builds one position-aware piece per cell, then sweeps all seams
  flipping polarities until no conflict remains. A sweep budget and an
  absolute regeneration ceiling bound the work.
* ``BACKTRACK`` takes a position-agnostic piece set and searches for a tiling
  in row-major order. Each shuffle gets a step budget; when every shuffle is
  spent the pieces are dropped into class-matching cells unchecked and the
  result is flagged ``degraded``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .edges import EdgeState, Side, compatible
from .errors import GenerationExhaustedError
from .grid import BoardGrid
from .pieces import Piece, PieceClass, PieceFactory, boundary_sides, classify_cell
from .rules import boundary_violation, can_place, find_conflicts, seams


logger = logging.getLogger(__name__)


class GenerationStrategy(Enum):
    """How a solved board is produced.

    ``BACKTRACK`` over a random position-agnostic set seldom finds a tiling; with
    the default budgets it gives up quickly and returns a degraded layout.
    """

    REPAIR = "repair"
    BACKTRACK = "backtrack"


@dataclass
class GenerationResult:
    grid: BoardGrid
    pieces: List[Piece]
    strategy: GenerationStrategy
    attempts: int
    degraded: bool = False


class BoardGenerator:
    def __init__(
        self,
        size: int,
        rng: Optional[random.Random] = None,
        factory: Optional[PieceFactory] = None,
        max_repair_sweeps: int = 50,
        max_attempts: int = 10,
        max_shuffle_attempts: int = 10,
        max_backtrack_steps: int = 5000,
    ) -> None:
        if size < 2:
            raise ValueError(f"board size must be at least 2, got {size}")
        self.size = int(size)
        self.rng = rng or random.Random()
        self.factory = factory or PieceFactory(self.rng)
        self.max_repair_sweeps = max_repair_sweeps
        self.max_attempts = max_attempts
        self.max_shuffle_attempts = max_shuffle_attempts
        self.max_backtrack_steps = max_backtrack_steps

    def generate(self, strategy: GenerationStrategy = GenerationStrategy.REPAIR) -> GenerationResult:
        if strategy is GenerationStrategy.REPAIR:
            return self.generate_with_repair()
        if strategy is GenerationStrategy.BACKTRACK:
            return self.generate_with_backtracking()
        raise ValueError(f"Unknown generation strategy: {strategy!r}")

    # ------------------------------------------------------------------
    # Generate-then-repair
    # ------------------------------------------------------------------

    def generate_with_repair(self) -> GenerationResult:
        conflicts = None
        for attempt in range(1, self.max_attempts + 1):
            grid, pieces = self._populate()
            sweeps = 0
            while sweeps < self.max_repair_sweeps:
                conflicts = self.repair_sweep(grid)
                logger.debug("attempt %d sweep %d: %d conflicts", attempt, sweeps, conflicts)
                if conflicts == 0:
                    break
                sweeps += 1
            if conflicts == 0 and not find_conflicts(grid):
                logger.info("Board validated after %d sweeps (attempt %d)", sweeps, attempt)
                self._assign_ids(pieces)
                return GenerationResult(grid, pieces, GenerationStrategy.REPAIR, attempt)
            logger.warning("Regenerating board: %s conflicts left after %d sweeps", conflicts, sweeps)
        raise GenerationExhaustedError(
            f"no consistent {self.size}x{self.size} board after {self.max_attempts} attempts",
            attempts=self.max_attempts,
            conflicts=conflicts,
        )

    def _populate(self) -> Tuple[BoardGrid, List[Piece]]:
        grid = BoardGrid.create_empty(self.size)
        pieces: List[Piece] = []
        for row, col in grid.coordinates():
            piece = self.factory.create_piece_for_cell(len(pieces), row, col, self.size)
            piece.placed = True
            grid.set_occupant(row, col, piece)
            pieces.append(piece)
        return grid, pieces

    def repair_sweep(self, grid: BoardGrid) -> int:
        """Fix every mismatched seam once; return how many were found."""
        found = 0
        for (row, col), side in seams(grid.size):
            d_row, d_col = side.offset
            a = grid.occupant(row, col)
            b = grid.occupant(row + d_row, col + d_col)
            mine, theirs = a.edge(side), b.edge(side.opposite)
            if compatible(mine, theirs):
                continue
            found += 1
            new_mine, new_theirs = self._resolve(mine, theirs)
            if new_mine is EdgeState.FLAT:
                logger.warning("FLAT edge on interior seam at (%d, %d) %s", row, col, side.name)
            self._write_edge(a, side, new_mine)
            self._write_edge(b, side.opposite, new_theirs)
        return found

    @staticmethod
    def _resolve(mine: EdgeState, theirs: EdgeState) -> Tuple[EdgeState, EdgeState]:
        if mine is EdgeState.FLAT or theirs is EdgeState.FLAT:
            return EdgeState.FLAT, EdgeState.FLAT
        # Flip this side; the neighbour keeps its polarity.
        return mine.opposite(), mine

    @staticmethod
    def _write_edge(piece: Piece, side: Side, state: EdgeState) -> None:
        # Pieces on a generated board sit at their solved rotation.
        canonical_side = Side((int(side) + piece.current_rotation) % 4)
        piece.set_edge(canonical_side, state)

    def _assign_ids(self, pieces: List[Piece]) -> None:
        order = list(range(len(pieces)))
        self.rng.shuffle(order)
        for piece, new_id in zip(pieces, order):
            piece.id = new_id
        pieces.sort(key=lambda p: p.id)

    # ------------------------------------------------------------------
    # Backtracking placement
    # ------------------------------------------------------------------

    def generate_with_backtracking(self, pieces: Optional[List[Piece]] = None) -> GenerationResult:
        """Tile ``pieces`` (a fresh position-agnostic set by default) onto the board."""
        if pieces is None:
            pieces = self.factory.create_piece_set(self.size)
        if len(pieces) != self.size * self.size:
            raise ValueError(f"{len(pieces)} pieces cannot tile a {self.size}x{self.size} board")

        for attempt in range(1, self.max_shuffle_attempts + 1):
            order = list(pieces)
            self.rng.shuffle(order)
            logger.debug("backtracking attempt %d", attempt)
            grid = self._search(order)
            if grid is not None:
                self._record_solution(grid)
                logger.info("Backtracking tiled the board on attempt %d", attempt)
                return GenerationResult(grid, pieces, GenerationStrategy.BACKTRACK, attempt)

        logger.warning(
            "Backtracking exhausted %d shuffles; falling back to an unchecked layout",
            self.max_shuffle_attempts,
        )
        grid = self._fallback_layout(pieces)
        self._record_solution(grid)
        return GenerationResult(grid, pieces, GenerationStrategy.BACKTRACK, self.max_shuffle_attempts, degraded=True)

    def _candidates(self, order: List[Piece], used: List[bool], row: int, col: int, grid: BoardGrid) -> Iterator[Tuple[int, int]]:
        wanted = classify_cell(row, col, self.size)
        for index, piece in enumerate(order):
            if used[index] or piece.piece_class is not wanted:
                continue
            for rotation in range(4):
                if can_place(piece, rotation, row, col, grid):
                    yield index, rotation

    def _search(self, order: List[Piece]) -> Optional[BoardGrid]:
        grid = BoardGrid.create_empty(self.size)
        cells = list(grid.coordinates())
        used = [False] * len(order)
        # One frame per filled cell: (candidate iterator, index placed there)
        stack: List[Tuple[Iterator[Tuple[int, int]], Optional[int]]] = []
        steps = 0
        depth = 0
        frontier: Optional[Iterator[Tuple[int, int]]] = None

        while depth < len(cells):
            if steps >= self.max_backtrack_steps:
                self._unwind(grid, order)
                return None
            steps += 1
            row, col = cells[depth]
            if frontier is None:
                frontier = self._candidates(order, used, row, col, grid)
            choice = next(frontier, None)
            if choice is not None:
                index, rotation = choice
                piece = order[index]
                piece.current_rotation = rotation
                piece.placed = True
                grid.set_occupant(row, col, piece)
                used[index] = True
                stack.append((frontier, index))
                frontier = None
                depth += 1
                continue
            # Dead end: undo the previous cell and resume its candidates.
            if not stack:
                return None
            frontier, index = stack.pop()
            depth -= 1
            prev_row, prev_col = cells[depth]
            grid.clear_occupant(prev_row, prev_col)
            used[index] = False
            order[index].reset()
        return grid

    @staticmethod
    def _unwind(grid: BoardGrid, order: List[Piece]) -> None:
        for row, col, piece in list(grid.occupied()):
            grid.clear_occupant(row, col)
        for piece in order:
            piece.reset()

    def _fallback_layout(self, pieces: List[Piece]) -> BoardGrid:
        grid = BoardGrid.create_empty(self.size)
        pools: Dict[PieceClass, List[Piece]] = {c: [] for c in PieceClass}
        for piece in pieces:
            piece.reset()
            pools[piece.piece_class].append(piece)
        for row, col in grid.coordinates():
            piece = pools[classify_cell(row, col, self.size)].pop()
            piece.current_rotation = self._boundary_rotation(piece, row, col)
            piece.placed = True
            grid.set_occupant(row, col, piece)
        return grid

    def _boundary_rotation(self, piece: Piece, row: int, col: int) -> int:
        for rotation in range(4):
            if boundary_violation(piece.edges_at(rotation), row, col, self.size) is None:
                return rotation
        # Only reachable for malformed pieces; keep the flats outward where possible.
        outward = boundary_sides(row, col, self.size)
        best = max(range(4), key=lambda r: sum(piece.edges_at(r)[int(s)] is EdgeState.FLAT for s in outward))
        return best

    @staticmethod
    def _record_solution(grid: BoardGrid) -> None:
        for row, col, piece in grid.occupied():
            piece.solved_position = (row, col)
            piece.solved_rotation = piece.current_rotation


def verify_solved(result: GenerationResult) -> bool:
    """True when the board is full and every cell passes the placement rules."""
    return result.grid.is_full() and not find_conflicts(result.grid)