from __future__ import annotations

from typing import Optional


class PuzzleError(Exception):
    """Base class for every error raised by the puzzle engine."""


class InvalidPlacementError(PuzzleError):
    """Edge mismatch, boundary violation or occupied cell. No state was changed."""

    def __init__(self, piece_id: int, row: int, col: int, rotation: int, reason: str) -> None:
        super().__init__(f"cannot place piece {piece_id} at ({row}, {col}) rotation {rotation}: {reason}")
        self.piece_id = piece_id
        self.row = row
        self.col = col
        self.rotation = rotation
        self.reason = reason


class PieceNotAvailableError(PuzzleError):
    """Unknown piece id, or the piece is already placed or locked."""

    def __init__(self, piece_id: int, reason: str = "not in bank") -> None:
        super().__init__(f"piece {piece_id} is not available: {reason}")
        self.piece_id = piece_id
        self.reason = reason


class CellOutOfBoundsError(PuzzleError, IndexError):
    def __init__(self, row: int, col: int, size: int) -> None:
        super().__init__(f"cell ({row}, {col}) is outside a {size}x{size} board")
        self.row = row
        self.col = col
        self.size = size


class GenerationExhaustedError(PuzzleError):
    """A bounded retry loop hit its ceiling without producing a valid result."""

    def __init__(self, message: str, attempts: int, conflicts: Optional[int] = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.conflicts = conflicts
