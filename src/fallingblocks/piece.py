"""The falling piece and its geometry.

A :class:`FallingPiece` only stores what the player can change: which shape it
is, its rotation and its position.  The resolved pattern, colour and bounding
box are derived from the catalog on every access so they can never disagree
with the rotation index.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from . import catalog
from .board import HEIGHT, WIDTH
from .catalog import Colour, Pattern

# Directions accepted by ``move_horizontal``.  Columns are numbered from the
# anchor edge, so moving left decrements the column.
MOVE_LEFT = -1
MOVE_RIGHT = 1


@dataclass
class FallingPiece:
    """Active falling piece in the game."""

    shape: int
    rotation: int = 0
    row: int = 0
    column: int = 0

    def __post_init__(self) -> None:
        # Resolving the pattern validates shape and rotation.
        catalog.rotation_pattern(self.shape, self.rotation)

    @property
    def pattern(self) -> Pattern:
        return catalog.rotation_pattern(self.shape, self.rotation)

    @property
    def colour(self) -> Colour:
        return catalog.color(self.shape)

    @property
    def height(self) -> int:
        return catalog.dimensions(self.shape, self.rotation)[0]

    @property
    def width(self) -> int:
        return catalog.dimensions(self.shape, self.rotation)[1]

    @property
    def bottom(self) -> int:
        """Index of the last board row covered by the piece."""

        return self.row + self.height - 1

    def shifted_rows(self) -> List[Tuple[int, int]]:
        """Return ``(board_row, mask)`` pairs aligned to board columns."""

        return [(self.row + r, mask << self.column) for r, mask in enumerate(self.pattern)]

    def blocks(self) -> List[Tuple[int, int]]:
        """Return the global ``(row, col)`` coordinates for this piece."""

        return [(self.row + dr, self.column + dc) for dr, dc in catalog.pattern_cells(self.pattern)]

    def to_dict(self) -> dict:
        return {
            "shape": self.shape,
            "rotation": self.rotation,
            "row": self.row,
            "column": self.column,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FallingPiece":
        return cls(
            shape=int(data["shape"]),
            rotation=int(data["rotation"]),
            row=int(data["row"]),
            column=int(data["column"]),
        )


def spawn_random_piece(rng: Optional[random.Random] = None) -> FallingPiece:
    """Return a new piece with random shape, rotation and column on row ``0``.

    The column is drawn uniformly from the board and then clamped so the whole
    piece fits horizontally.
    """

    rng = rng or random
    shape = rng.randrange(catalog.shape_count())
    rotation = rng.randrange(catalog.NUM_ROTATIONS)
    piece = FallingPiece(shape, rotation)
    column = rng.randrange(WIDTH)
    if column + piece.width - 1 >= WIDTH:
        column = WIDTH - piece.width
    piece.column = column
    return piece


def rotate(piece: FallingPiece) -> bool:
    """Rotate ``piece`` 90 degrees clockwise about its top-right cell.

    The new width is the old height and vice versa.  Returns ``False`` and
    leaves the piece untouched if the rotated box would cross the far column
    boundary or the bottom of the board.
    """

    new_width = piece.height
    new_height = piece.width
    if piece.column + new_width > WIDTH:
        return False
    if piece.row + new_height > HEIGHT:
        return False
    piece.rotation = (piece.rotation + 1) % catalog.NUM_ROTATIONS
    return True


def move_horizontal(piece: FallingPiece, direction: int) -> bool:
    """Shift ``piece`` one column in ``direction`` unless it is flush with an edge."""

    if direction == MOVE_LEFT:
        if piece.column <= 0:
            return False
    elif direction == MOVE_RIGHT:
        if piece.column + piece.width >= WIDTH:
            return False
    else:
        raise ValueError(f"Unknown direction {direction}")
    piece.column += direction
    return True
