"""Unit tests for solved-board generation."""

import random

import pytest

from edge_puzzle_rl.game import (
    BoardGenerator,
    BoardGrid,
    GenerationExhaustedError,
    GenerationStrategy,
    PieceFactory,
    rules,
)
from edge_puzzle_rl.game.edges import EdgeState, Side
from edge_puzzle_rl.game.generator import verify_solved
from edge_puzzle_rl.game.pieces import PieceClass, boundary_sides, rotate_edges

F = EdgeState.FLAT
K = EdgeState.KNOB
H = EdgeState.HOLE


def _assert_fixed_point(grid):
    """Every adjoining pair mates and every outward edge is FLAT."""
    size = grid.size
    for row, col, piece in grid.occupied():
        edges = piece.edges_at()
        for side in boundary_sides(row, col, size):
            assert edges[int(side)] is F
        if col < size - 1:
            right = grid.occupant(row, col + 1)
            assert {edges[int(Side.RIGHT)], right.edge(Side.LEFT)} == {K, H}
        if row < size - 1:
            below = grid.occupant(row + 1, col)
            assert {edges[int(Side.BOTTOM)], below.edge(Side.TOP)} == {K, H}


class _InwardFlatFactory(PieceFactory):
    """Puts a FLAT on the right side of every interior piece."""

    def create_piece_for_cell(self, piece_id, row, col, size):
        piece = super().create_piece_for_cell(piece_id, row, col, size)
        if piece.piece_class is PieceClass.INTERIOR:
            piece.set_edge(Side.RIGHT, F)
        return piece


class TestRepairStrategy:
    """Tests for generate-then-repair."""

    @pytest.mark.parametrize("size", [2, 3, 4, 12])
    def test_board_is_fixed_point(self, size):
        """The repaired board satisfies every placement rule."""
        result = BoardGenerator(size, random.Random(size)).generate(GenerationStrategy.REPAIR)
        assert result.grid.is_full()
        assert result.degraded is False
        _assert_fixed_point(result.grid)
        assert rules.find_conflicts(result.grid) == []
        assert verify_solved(result)

    def test_fixed_point_in_any_order(self):
        """Re-placing the solved pieces cell by cell in random order always passes can_place."""
        rng = random.Random(3)
        result = BoardGenerator(5, rng).generate()
        cells = [(row, col, piece) for row, col, piece in result.grid.occupied()]
        rng.shuffle(cells)
        grid = BoardGrid.create_empty(5)
        for row, col, piece in cells:
            assert rules.can_place(piece, piece.current_rotation, row, col, grid)
            grid.set_occupant(row, col, piece)

    def test_pieces_annotated_with_solved_coordinates(self):
        """Every piece records the cell it occupies on the solved board."""
        result = BoardGenerator(4, random.Random(5)).generate()
        assert len(result.pieces) == 16
        for row, col, piece in result.grid.occupied():
            assert piece.solved_position == (row, col)
            assert piece.solved_rotation == 0

    def test_ids_are_a_permutation(self):
        """Ids cover 0..N-1 and the piece list is sorted by id."""
        result = BoardGenerator(4, random.Random(5)).generate()
        assert [p.id for p in result.pieces] == list(range(16))

    def test_class_counts(self):
        """A 12x12 board holds 4 corners, 40 borders and 100 interiors."""
        result = BoardGenerator(12, random.Random(0)).generate()
        classes = [p.piece_class for p in result.pieces]
        assert classes.count(PieceClass.CORNER) == 4
        assert classes.count(PieceClass.BORDER) == 40
        assert classes.count(PieceClass.INTERIOR) == 100

    def test_seeded_generation_is_reproducible(self):
        """The same seed yields the same solved board."""
        a = BoardGenerator(6, random.Random(11)).generate()
        b = BoardGenerator(6, random.Random(11)).generate()
        assert [(p.id, p.edges) for p in a.pieces] == [(p.id, p.edges) for p in b.pieces]

    def test_repair_sweep_flips_one_side(self):
        """A KNOB-KNOB seam is resolved by flipping the first piece."""
        result = BoardGenerator(2, random.Random(1)).generate()
        grid = result.grid
        left = grid.occupant(0, 0)
        right = grid.occupant(0, 1)
        left.set_edge(Side.RIGHT, K)
        right.set_edge(Side.LEFT, K)
        assert BoardGenerator(2).repair_sweep(grid) == 1
        assert left.edge(Side.RIGHT) is H
        assert right.edge(Side.LEFT) is K
        assert BoardGenerator(2).repair_sweep(grid) == 0

    def test_inward_flat_exhausts_budget(self):
        """FLAT edges on interior seams never converge and end in GenerationExhaustedError."""
        rng = random.Random(2)
        generator = BoardGenerator(
            4,
            rng,
            factory=_InwardFlatFactory(rng),
            max_repair_sweeps=3,
            max_attempts=2,
        )
        with pytest.raises(GenerationExhaustedError) as excinfo:
            generator.generate()
        assert excinfo.value.attempts == 2

    def test_size_below_two_rejected(self):
        """A 1x1 board has no sensible piece classes."""
        with pytest.raises(ValueError):
            BoardGenerator(1)


class TestBacktrackingStrategy:
    """Tests for backtracking placement."""

    def _scrambled_solution(self, size, seed):
        rng = random.Random(seed)
        pieces = BoardGenerator(size, rng).generate().pieces
        for piece in pieces:
            piece.reset()
            piece.set_edges(rotate_edges(piece.edges, rng.randrange(4)))
            piece.solved_position = None
        return pieces

    def test_solves_a_solvable_set(self):
        """Given pieces cut from a real solution, backtracking tiles the board."""
        pieces = self._scrambled_solution(3, seed=8)
        generator = BoardGenerator(3, random.Random(8), max_backtrack_steps=200000)
        result = generator.generate_with_backtracking(pieces)
        assert result.degraded is False
        assert result.grid.is_full()
        _assert_fixed_point(result.grid)

    def test_solution_recorded_on_pieces(self):
        """Solved coordinates and rotations match where each piece landed."""
        pieces = self._scrambled_solution(3, seed=9)
        result = BoardGenerator(3, random.Random(9), max_backtrack_steps=200000).generate_with_backtracking(pieces)
        for row, col, piece in result.grid.occupied():
            assert piece.solved_position == (row, col)
            assert piece.solved_rotation == piece.current_rotation

    def test_fallback_is_flagged_degraded(self):
        """When the budget runs out the unchecked layout is flagged, not reported as solved."""
        generator = BoardGenerator(4, random.Random(4), max_shuffle_attempts=2, max_backtrack_steps=1)
        result = generator.generate(GenerationStrategy.BACKTRACK)
        assert result.degraded is True
        assert result.grid.is_full()
        assert result.attempts == 2
        for row, col, piece in result.grid.occupied():
            assert rules.boundary_violation(piece.edges_at(), row, col, 4) is None

    def test_default_budget_gives_up_quickly(self):
        """Default budgets bound an unsolvable random set to a few shuffles of a few thousand steps."""
        generator = BoardGenerator(4, random.Random(5))
        assert generator.max_shuffle_attempts * generator.max_backtrack_steps <= 50000
        result = generator.generate(GenerationStrategy.BACKTRACK)
        assert result.attempts <= generator.max_shuffle_attempts
        assert result.degraded or verify_solved(result)

    def test_success_is_never_inconsistent(self):
        """With a random agnostic set, success implies a consistent board."""
        result = BoardGenerator(2, random.Random(21), max_shuffle_attempts=20).generate(GenerationStrategy.BACKTRACK)
        assert result.degraded or verify_solved(result)

    def test_wrong_piece_count_rejected(self, factory):
        """A piece set of the wrong size cannot tile the board."""
        with pytest.raises(ValueError):
            BoardGenerator(3).generate_with_backtracking(factory.create_piece_set(4))
