"""Game module for Edge Puzzle RL.

Exports the edge-matching engine and supporting classes:
- EdgeState / Side: edge polarities and the clockwise side order
- Piece / PieceFactory: pieces, rotations and seeded generation
- BoardGrid: cell occupancy and lock flags
- rules: placement validation
- BoardGenerator: guaranteed-consistent solved boards
- EdgePuzzleGame: session state, bank, locks and undo
"""

from .edges import EdgeState, Side, compatible
from .errors import (
    CellOutOfBoundsError,
    GenerationExhaustedError,
    InvalidPlacementError,
    PieceNotAvailableError,
    PuzzleError,
)
from .pieces import Piece, PieceClass, PieceColor, PieceFactory, classify_cell, rotations
from .grid import BoardGrid
from .generator import BoardGenerator, GenerationResult, GenerationStrategy
from .core import EdgePuzzleGame, GameConfig, LockOutcome, MoveRecord, PlacementOutcome
from . import rules

__all__ = [
    "EdgeState",
    "Side",
    "compatible",
    "PuzzleError",
    "InvalidPlacementError",
    "PieceNotAvailableError",
    "CellOutOfBoundsError",
    "GenerationExhaustedError",
    "Piece",
    "PieceClass",
    "PieceColor",
    "PieceFactory",
    "classify_cell",
    "rotations",
    "BoardGrid",
    "BoardGenerator",
    "GenerationResult",
    "GenerationStrategy",
    "EdgePuzzleGame",
    "GameConfig",
    "LockOutcome",
    "MoveRecord",
    "PlacementOutcome",
    "rules",
]
