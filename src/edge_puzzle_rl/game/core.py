from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from .edges import edge_code
from .errors import GenerationExhaustedError, InvalidPlacementError, PieceNotAvailableError, PuzzleError
from .generator import BoardGenerator, GenerationResult, GenerationStrategy
from .grid import BoardGrid, Coordinate
from .pieces import Piece, PieceClass, rotate_edges
from . import rules


logger = logging.getLogger(__name__)


@dataclass
class GameConfig:
    board_size: int = 12
    random_seed: Optional[int] = None
    rotation_enabled: bool = False
    hints_enabled: bool = False
    strategy: GenerationStrategy = GenerationStrategy.REPAIR
    max_repair_sweeps: int = 50
    max_generation_attempts: int = 10
    max_shuffle_attempts: int = 10
    max_backtrack_steps: int = 5000
    accept_degraded: bool = False
    shuffle_bank: bool = True
    lock_attempts_per_pick: int = 50
    max_undo_levels: Optional[int] = None

    def __post_init__(self) -> None:
        if self.board_size < 2:
            raise ValueError(f"board_size must be at least 2, got {self.board_size}")

    @classmethod
    def classic(cls, **overrides: Any) -> "GameConfig":
        """12x12 board, 144 pieces."""
        return cls(**{"board_size": 12, **overrides})

    @classmethod
    def mini(cls, **overrides: Any) -> "GameConfig":
        """4x4 board with hints on."""
        return cls(**{"board_size": 4, "hints_enabled": True, **overrides})


@dataclass
class MoveRecord:
    piece_id: int
    from_cell: Optional[Coordinate]
    to_cell: Coordinate
    rotation: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class PlacementOutcome:
    ok: bool
    reason: Optional[str] = None


@dataclass
class LockedPiece:
    piece_id: int
    row: int
    col: int


@dataclass
class LockOutcome:
    requested: int
    locked: List[LockedPiece]
    exhausted: bool = False


class EdgePuzzleGame:
    """Puzzle session: solved board, piece bank, placements, locks and undo history.

    A new game generates a solved board, lifts every piece off it into the
    bank and leaves the board empty. The player then places pieces back one
    at a time; every placement goes through ``rules.place``.
    """

    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self.config = config or GameConfig()
        self.rng = random.Random(self.config.random_seed)
        self.rotation_enabled = self.config.rotation_enabled
        self.hints_enabled = self.config.hints_enabled
        self.grid = BoardGrid.create_empty(self.config.board_size)
        self.pieces: Dict[int, Piece] = {}
        self.bank: List[Piece] = []
        self.history: List[MoveRecord] = []
        self.generation: Optional[GenerationResult] = None
        self._deal_order: List[Piece] = []
        self._solved_at: Dict[Coordinate, Piece] = {}
        self.new_game()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def new_game(self, board_size: Optional[int] = None) -> Dict[str, Any]:
        if board_size is not None and board_size != self.config.board_size:
            if board_size < 2:
                raise ValueError(f"board_size must be at least 2, got {board_size}")
            self.config.board_size = int(board_size)

        size = self.config.board_size
        generator = BoardGenerator(
            size,
            rng=self.rng,
            max_repair_sweeps=self.config.max_repair_sweeps,
            max_attempts=self.config.max_generation_attempts,
            max_shuffle_attempts=self.config.max_shuffle_attempts,
            max_backtrack_steps=self.config.max_backtrack_steps,
        )
        result = generator.generate(self.config.strategy)
        if result.degraded and not self.config.accept_degraded:
            raise GenerationExhaustedError(
                f"{self.config.strategy.value} generation fell back to an unchecked {size}x{size} layout",
                attempts=result.attempts,
            )

        self.generation = result
        self.grid = BoardGrid.create_empty(size)
        self.pieces = {p.id: p for p in result.pieces}
        self._solved_at = {p.solved_position: p for p in result.pieces if p.solved_position is not None}
        for piece in result.pieces:
            piece.reset()
            self._bake_orientation(piece)
            if self.rotation_enabled:
                self._scramble_orientation(piece)

        deal = sorted(result.pieces, key=lambda p: p.id)
        if self.config.shuffle_bank:
            self.rng.shuffle(deal)
        self._deal_order = deal
        self.bank = list(deal)
        self.history = []
        logger.info(
            "New %dx%d game dealt: %d pieces%s",
            size,
            size,
            len(self.bank),
            " (degraded board)" if result.degraded else "",
        )
        return self.snapshot()

    @staticmethod
    def _bake_orientation(piece: Piece) -> None:
        """Make rotation 0 the solved orientation.

        A piece on the board keeps the edges it shows there.
        """
        turn = piece.solved_rotation
        if turn:
            piece.set_edges(piece.solved_edges())
            piece.solved_rotation = 0
            if piece.placed:
                piece.current_rotation = (piece.current_rotation - turn) % 4

    def _scramble_orientation(self, piece: Piece) -> None:
        turn = self.rng.randrange(4)
        if turn:
            piece.set_edges(rotate_edges(piece.edges, turn))
            piece.solved_rotation = (4 - turn) % 4

    def clear(self) -> Dict[str, Any]:
        """Return every piece to the bank in dealt order, unlock everything, drop history."""
        self.grid.reset()
        for piece in self.pieces.values():
            piece.reset()
        self.bank = list(self._deal_order)
        self.history = []
        return self.snapshot()

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def _piece(self, piece_id: int) -> Piece:
        piece = self.pieces.get(piece_id)
        if piece is None:
            raise PieceNotAvailableError(piece_id, "unknown piece")
        return piece

    def _bank_piece(self, piece_id: int) -> Piece:
        piece = self._piece(piece_id)
        if piece.locked:
            raise PieceNotAvailableError(piece_id, "piece is locked")
        if piece.placed or piece not in self.bank:
            raise PieceNotAvailableError(piece_id, "piece is already on the board")
        return piece

    def _effective_rotation(self, rotation: int) -> int:
        return rotation % 4 if self.rotation_enabled else 0

    def place(self, piece_id: int, row: int, col: int, rotation: int = 0) -> MoveRecord:
        piece = self._bank_piece(piece_id)
        rotation = self._effective_rotation(rotation)
        rules.place(piece, rotation, row, col, self.grid)
        self.bank.remove(piece)
        record = MoveRecord(piece_id=piece.id, from_cell=None, to_cell=(row, col), rotation=rotation)
        self.history.append(record)
        if self.config.max_undo_levels is not None and len(self.history) > self.config.max_undo_levels:
            self.history.pop(0)
        logger.debug(
            "Placed piece %d %s at (%d, %d) rotation %d", piece.id, edge_code(piece.edges_at()), row, col, rotation
        )
        return record

    def try_place(self, piece_id: int, row: int, col: int, rotation: int = 0) -> PlacementOutcome:
        try:
            self.place(piece_id, row, col, rotation)
        except (InvalidPlacementError, PieceNotAvailableError) as exc:
            return PlacementOutcome(ok=False, reason=str(exc))
        return PlacementOutcome(ok=True)

    def valid_targets(self, piece_id: int, rotation: int = 0) -> Set[Coordinate]:
        """Cells where ``piece_id`` could go right now. Empty while hints are off."""
        piece = self._piece(piece_id)
        if not self.hints_enabled or piece.placed:
            return set()
        return rules.valid_targets(piece, self._effective_rotation(rotation), self.grid)

    def undo(self) -> bool:
        if not self.history:
            logger.debug("Nothing to undo")
            return False
        record = self.history.pop()
        piece = self.pieces[record.piece_id]
        row, col = record.to_cell
        if self.grid.occupant(row, col) is piece:
            self.grid.clear_occupant(row, col)
            self.grid.set_locked(row, col, False)
        piece.reset()
        if piece not in self.bank:
            self.bank.append(piece)
        return True

    # ------------------------------------------------------------------
    # Locked starting pieces
    # ------------------------------------------------------------------

    def lock_random_subset(self, count: int) -> LockOutcome:
        """Put up to ``count`` bank pieces into their solved cells and lock them."""
        open_slots = [
            p for p in self.bank if p.solved_position is not None and not self.grid.is_occupied(*p.solved_position)
        ]
        target = max(0, min(count, len(open_slots)))
        outcome = LockOutcome(requested=count, locked=[])
        size = self.grid.size

        while len(outcome.locked) < target:
            found = None
            for _ in range(self.config.lock_attempts_per_pick):
                row, col = self.rng.randrange(size), self.rng.randrange(size)
                if self.grid.is_occupied(row, col):
                    continue
                piece = self._solved_at.get((row, col))
                if piece is None or piece not in self.bank:
                    continue
                if rules.can_place(piece, piece.solved_rotation, row, col, self.grid):
                    found = piece
                    break
            if found is None:
                outcome.exhausted = True
                logger.warning(
                    "Locked %d of %d pieces before running out of attempts", len(outcome.locked), target
                )
                break
            row, col = found.solved_position
            rules.place(found, found.solved_rotation, row, col, self.grid)
            found.locked = True
            self.grid.set_locked(row, col, True)
            self.bank.remove(found)
            outcome.locked.append(LockedPiece(found.id, row, col))

        logger.info("Locked %d pieces", len(outcome.locked))
        return outcome

    # ------------------------------------------------------------------
    # Toggles and helpers
    # ------------------------------------------------------------------

    def toggle_rotation(self) -> bool:
        self.rotation_enabled = not self.rotation_enabled
        if not self.rotation_enabled:
            for piece in self.pieces.values():
                self._bake_orientation(piece)
        return self.rotation_enabled

    def toggle_hints(self) -> bool:
        self.hints_enabled = not self.hints_enabled
        return self.hints_enabled

    def solution_for(self, piece_id: int) -> Tuple[int, int, int]:
        """Solved (row, col, rotation) of a piece."""
        piece = self._piece(piece_id)
        if piece.solved_position is None:
            raise PuzzleError(f"piece {piece_id} has no solved position")
        row, col = piece.solved_position
        return row, col, piece.solved_rotation

    def is_solved(self) -> bool:
        return self.grid.is_full()

    def counters(self) -> Dict[str, int]:
        placed = sum(1 for p in self.pieces.values() if p.placed)
        locked = sum(1 for p in self.pieces.values() if p.locked)
        return {
            "placed_count": placed,
            "locked_count": locked,
            "bank_count": len(self.bank),
            "total_count": len(self.pieces),
        }

    def class_breakdown(self) -> Dict[PieceClass, int]:
        out = {c: 0 for c in PieceClass}
        for piece in self.pieces.values():
            out[piece.piece_class] += 1
        return out

    def snapshot(self) -> Dict[str, Any]:
        return {
            "board": self.grid.piece_ids(),
            "rotations": self._rotation_state(),
            "locked": self.grid.locked.copy(),
            "bank": [p.id for p in self.bank],
            "counters": self.counters(),
            "rotation_enabled": self.rotation_enabled,
            "hints_enabled": self.hints_enabled,
            "solved": self.is_solved(),
        }

    def _rotation_state(self) -> List[List[int]]:
        size = self.grid.size
        out = [[0] * size for _ in range(size)]
        for row, col, piece in self.grid.occupied():
            out[row][col] = piece.current_rotation
        return out
