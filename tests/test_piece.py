import random
import sys

import pytest

sys.path.append('src')

from fallingblocks.board import HEIGHT, WIDTH
from fallingblocks.piece import (
    MOVE_LEFT,
    MOVE_RIGHT,
    FallingPiece,
    move_horizontal,
    rotate,
    spawn_random_piece,
)


class ScriptedRng:
    """Return queued values from ``randrange`` in order."""

    def __init__(self, *values: int) -> None:
        self.values = list(values)

    def randrange(self, _stop: int) -> int:
        return self.values.pop(0)


def test_spawned_pieces_fit_on_the_top_row():
    rng = random.Random(1234)
    for _ in range(200):
        piece = spawn_random_piece(rng)
        assert piece.row == 0
        assert 0 <= piece.column
        assert piece.column + piece.width <= WIDTH


def test_spawn_clamps_column_to_fit():
    # Horizontal three-wide bar drawn at the last column.
    piece = spawn_random_piece(ScriptedRng(1, 1, WIDTH - 1))
    assert piece.width == 3
    assert piece.column == WIDTH - 3


def test_spawn_keeps_column_that_fits():
    piece = spawn_random_piece(ScriptedRng(0, 2, 4))
    assert piece.column == 4


def test_full_rotation_cycle_restores_piece():
    piece = FallingPiece(3, rotation=0, row=2, column=1)
    original = (piece.pattern, piece.width, piece.height, piece.row, piece.column)
    for _ in range(4):
        assert rotate(piece)
    assert (piece.pattern, piece.width, piece.height, piece.row, piece.column) == original


def test_rotation_swaps_dimensions():
    piece = FallingPiece(3, rotation=0, row=0, column=0)
    height, width = piece.height, piece.width
    assert rotate(piece)
    assert (piece.height, piece.width) == (width, height)
    assert piece.rotation == 1


def test_rotation_that_still_fits_at_the_edge():
    piece = FallingPiece(5, rotation=0, row=0, column=0)
    assert piece.width == 1
    assert rotate(piece)
    assert piece.width == 4
    assert piece.column == 0


def test_rotation_past_the_far_edge_is_rejected():
    piece = FallingPiece(1, rotation=0, row=0, column=WIDTH - 2)
    before = FallingPiece(**piece.to_dict())
    assert not rotate(piece)
    assert piece == before


def test_rotation_past_the_bottom_is_rejected():
    piece = FallingPiece(1, rotation=1, row=HEIGHT - 1, column=0)
    assert not rotate(piece)
    assert piece.rotation == 1
    assert piece.height == 1


def test_move_left_fails_at_column_zero():
    piece = FallingPiece(0, row=0, column=0)
    assert not move_horizontal(piece, MOVE_LEFT)
    assert piece.column == 0


def test_move_right_fails_when_flush():
    piece = FallingPiece(2, row=0, column=WIDTH - 2)
    assert not move_horizontal(piece, MOVE_RIGHT)
    assert move_horizontal(piece, MOVE_LEFT)
    assert piece.column == WIDTH - 3


def test_unknown_direction_is_a_caller_error():
    with pytest.raises(ValueError):
        move_horizontal(FallingPiece(0), 2)


def test_invalid_shape_is_rejected():
    with pytest.raises(IndexError):
        FallingPiece(99)
