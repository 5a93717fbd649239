"""Unit tests for piece generation and rotation."""

import random

import pytest

from edge_puzzle_rl.game.edges import EdgeState, Side
from edge_puzzle_rl.game.pieces import (
    Piece,
    PieceClass,
    PieceColor,
    PieceFactory,
    boundary_sides,
    class_counts,
    classify_cell,
    rotate_edges,
    rotations,
)

F = EdgeState.FLAT
K = EdgeState.KNOB
H = EdgeState.HOLE


def _flat_sides(edges):
    return [i for i, e in enumerate(edges) if e is F]


class TestCreateEdges:
    """Tests for class-driven edge generation."""

    def test_corner_has_two_adjacent_flats(self, factory):
        """Corners get exactly two adjacent FLAT sides and two connectors."""
        for _ in range(200):
            edges = factory.create_edges(PieceClass.CORNER)
            flats = _flat_sides(edges)
            assert len(flats) == 2
            a, b = flats
            assert (b - a) % 4 in (1, 3)
            assert all(e in (K, H) for i, e in enumerate(edges) if i not in flats)

    def test_border_has_one_flat(self, factory):
        """Borders get exactly one FLAT side."""
        for _ in range(200):
            edges = factory.create_edges(PieceClass.BORDER)
            assert len(_flat_sides(edges)) == 1

    def test_interior_has_no_flat(self, factory):
        """Interior pieces never get a FLAT side."""
        for _ in range(200):
            edges = factory.create_edges(PieceClass.INTERIOR)
            assert _flat_sides(edges) == []

    def test_position_aware_flats_face_off_board(self, factory):
        """With a position, FLAT sides are exactly the ones facing off the board."""
        size = 5
        for row in range(size):
            for col in range(size):
                piece_class = classify_cell(row, col, size)
                edges = factory.create_edges(piece_class, (row, col, size))
                expected = sorted(int(s) for s in boundary_sides(row, col, size))
                assert _flat_sides(edges) == expected

    def test_position_class_mismatch_rejected(self, factory):
        """Asking for a border piece at a corner cell fails fast."""
        with pytest.raises(ValueError):
            factory.create_edges(PieceClass.BORDER, (0, 0, 4))

    def test_unknown_class_rejected(self, factory):
        """Values outside PieceClass are a programming error."""
        with pytest.raises(ValueError):
            factory.create_edges("edge")

    def test_seeded_generation_is_reproducible(self):
        """The same seed yields the same pieces."""
        first = PieceFactory(random.Random(99)).create_piece_set(4)
        second = PieceFactory(random.Random(99)).create_piece_set(4)
        assert [p.edges for p in first] == [p.edges for p in second]
        assert [p.color for p in first] == [p.color for p in second]


class TestRotations:
    """Tests for the rotation table."""

    def test_rotation_is_cyclic_left_shift(self):
        """rotations(edges)[k][i] == edges[(i + k) % 4]."""
        edges = (F, K, H, K)
        table = rotations(edges)
        for k in range(4):
            for i in range(4):
                assert table[k][i] == edges[(i + k) % 4]

    def test_rotation_zero_is_canonical(self):
        """Index 0 is the unrotated tuple."""
        edges = (H, F, F, K)
        assert rotations(edges)[0] == edges

    def test_rotate_edges_wraps(self):
        """Rotating by 4 or -1 wraps around."""
        edges = (F, K, H, K)
        assert rotate_edges(edges, 4) == edges
        assert rotate_edges(edges, -1) == rotate_edges(edges, 3)


class TestPiece:
    """Tests for the Piece record."""

    def test_set_edge_refreshes_rotations(self):
        """Changing a canonical edge updates every rotation."""
        piece = Piece(id=1, piece_class=PieceClass.INTERIOR, edges=(K, K, K, K))
        piece.set_edge(Side.LEFT, H)
        assert piece.edges == (K, K, K, H)
        assert piece.rotations[1] == (K, K, H, K)

    def test_edge_uses_current_rotation(self):
        """edge() reads the side at the piece's current rotation."""
        piece = Piece(id=1, piece_class=PieceClass.CORNER, edges=(H, F, F, K))
        piece.current_rotation = 2
        assert piece.edge(Side.TOP) is F
        assert piece.edge(Side.RIGHT) is K
        assert piece.edge(Side.BOTTOM) is H

    def test_reset_clears_game_flags(self):
        """reset() clears placed, locked and rotation but keeps edges."""
        piece = Piece(id=1, piece_class=PieceClass.INTERIOR, edges=(K, H, K, H))
        piece.placed = piece.locked = True
        piece.current_rotation = 3
        piece.reset()
        assert (piece.placed, piece.locked, piece.current_rotation) == (False, False, 0)
        assert piece.edges == (K, H, K, H)

    def test_pieces_compare_by_identity(self):
        """Two pieces with equal data are still distinct objects."""
        a = Piece(id=1, piece_class=PieceClass.INTERIOR, edges=(K, H, K, H))
        b = Piece(id=1, piece_class=PieceClass.INTERIOR, edges=(K, H, K, H))
        assert a != b
        assert a in [a]
        assert b not in [a]


class TestPieceSet:
    """Tests for whole-board piece sets."""

    def test_class_counts_for_12(self):
        """A 12x12 board has 4 corners, 40 borders and 100 interiors."""
        counts = class_counts(12)
        assert counts == {PieceClass.CORNER: 4, PieceClass.BORDER: 40, PieceClass.INTERIOR: 100}

    def test_create_piece_set(self, factory):
        """The agnostic set matches class counts and has sequential ids."""
        pieces = factory.create_piece_set(6)
        assert [p.id for p in pieces] == list(range(36))
        assert sum(p.piece_class is PieceClass.CORNER for p in pieces) == 4
        assert sum(p.piece_class is PieceClass.BORDER for p in pieces) == 16
        assert sum(p.piece_class is PieceClass.INTERIOR for p in pieces) == 16
        assert all(p.solved_position is None for p in pieces)

    def test_piece_for_cell_records_position(self, factory):
        """Position-aware pieces remember their solved cell."""
        piece = factory.create_piece_for_cell(7, 0, 2, 4)
        assert piece.piece_class is PieceClass.BORDER
        assert piece.solved_position == (0, 2)
        assert piece.color in (PieceColor.BLACK, PieceColor.WHITE)

    @pytest.mark.parametrize(
        "row, col, expected",
        [
            (0, 0, PieceClass.CORNER),
            (0, 3, PieceClass.CORNER),
            (3, 3, PieceClass.CORNER),
            (0, 1, PieceClass.BORDER),
            (2, 0, PieceClass.BORDER),
            (1, 2, PieceClass.INTERIOR),
        ],
    )
    def test_classify_cell(self, row, col, expected):
        """Cells are classified by how many sides face off a 4x4 board."""
        assert classify_cell(row, col, 4) is expected
