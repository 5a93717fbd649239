"""Shared pytest fixtures for the puzzle engine tests."""

import random

import pytest

from edge_puzzle_rl.game import BoardGrid, EdgePuzzleGame, GameConfig, PieceFactory
from edge_puzzle_rl.game.pieces import Piece, PieceClass


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def factory(rng):
    """PieceFactory over the seeded random source."""
    return PieceFactory(rng)


@pytest.fixture
def empty_grid():
    """Empty 4x4 board."""
    return BoardGrid.create_empty(4)


@pytest.fixture
def make_piece():
    """Build a piece from literal edges."""

    def _make(edges, piece_id=0, piece_class=PieceClass.INTERIOR):
        return Piece(id=piece_id, piece_class=piece_class, edges=tuple(edges))

    return _make


@pytest.fixture
def mini_game():
    """Seeded 4x4 game with hints on and rotation off."""
    return EdgePuzzleGame(GameConfig.mini(random_seed=42))


@pytest.fixture
def rotating_game():
    """Seeded 4x4 game with rotation scrambling on."""
    return EdgePuzzleGame(GameConfig.mini(random_seed=7, rotation_enabled=True))
