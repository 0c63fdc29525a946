"""Piece catalog: shapes, rotation patterns and colours.

Every shape is stored as a list of row bitmasks for its spawn orientation.  Row
``0`` is the top of the shape and bit ``0`` is the shape's reference column.
The remaining three rotation states are derived automatically by rotating the
pattern 90 degrees clockwise about the top-right reference cell.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Tuple

Pattern = Tuple[int, ...]

NUM_ROTATIONS = 4


class Colour(IntEnum):
    """Colour codes stored in the display cache.  ``BLACK`` means empty."""

    BLACK = 0
    RED = 1
    ORANGE = 2
    GREEN = 3
    YELLOW = 4
    LIGHT_ORANGE = 5
    LIGHT_GREEN = 6
    LIGHT_YELLOW = 7


def pattern_width(pattern: Pattern) -> int:
    """Return the number of columns spanned by ``pattern``."""

    return max(row.bit_length() for row in pattern)


def _rotate(pattern: Pattern) -> Pattern:
    """Return ``pattern`` rotated 90 degrees clockwise.

    A cell at ``(r, c)`` moves to ``(w - 1 - c, r)`` where ``w`` is the width of
    the original pattern, so the reference cell stays in the top-right corner.
    """

    width = pattern_width(pattern)
    rows = [0] * width
    for r, mask in enumerate(pattern):
        for c in range(width):
            if mask & (1 << c):
                rows[width - 1 - c] |= 1 << r
    return tuple(rows)


def _generate_rotations(pattern: Pattern) -> Tuple[Pattern, ...]:
    """Generate the four rotation states for a shape starting from ``pattern``."""

    rotations = [pattern]
    for _ in range(NUM_ROTATIONS - 1):
        pattern = _rotate(pattern)
        rotations.append(pattern)
    return tuple(rotations)


@dataclass(frozen=True)
class Shape:
    """Immutable catalog entry."""

    colour: Colour
    height: int
    width: int
    patterns: Tuple[Pattern, ...]

    @classmethod
    def from_base(cls, colour: Colour, base: Pattern) -> "Shape":
        return cls(colour, len(base), pattern_width(base), _generate_rotations(base))


# Spawn orientation of each shape, drawn with bit 0 on the right:
#   0: *      1: *    2: **   3:  *    4:   *  5: *   6: ***
#              *       **       ***      ***     *        *
#              *                                 *
#                                                *
SHAPES: Tuple[Shape, ...] = (
    Shape.from_base(Colour.RED, (0b1,)),
    Shape.from_base(Colour.ORANGE, (0b1, 0b1, 0b1)),
    Shape.from_base(Colour.GREEN, (0b11, 0b11)),
    Shape.from_base(Colour.YELLOW, (0b010, 0b111)),
    Shape.from_base(Colour.LIGHT_ORANGE, (0b001, 0b111)),
    Shape.from_base(Colour.LIGHT_GREEN, (0b1, 0b1, 0b1, 0b1)),
    Shape.from_base(Colour.LIGHT_YELLOW, (0b111, 0b001)),
)


def _check(shape_id: int, rotation: int = 0) -> Shape:
    if not 0 <= shape_id < len(SHAPES):
        raise IndexError(f"Unknown shape id {shape_id}")
    if not 0 <= rotation < NUM_ROTATIONS:
        raise IndexError(f"Rotation index {rotation} out of range")
    return SHAPES[shape_id]


def shape_count() -> int:
    return len(SHAPES)


def rotation_pattern(shape_id: int, rotation: int) -> Pattern:
    """Return the row bitmasks for ``shape_id`` at ``rotation``.

    Raises:
        IndexError: If ``shape_id`` or ``rotation`` is out of range.
    """

    return _check(shape_id, rotation).patterns[rotation]


def dimensions(shape_id: int, rotation: int) -> Tuple[int, int]:
    """Return ``(height, width)`` of ``shape_id`` at ``rotation``.

    Opposite rotations share dimensions; odd rotations swap the base height and
    width.
    """

    shape = _check(shape_id, rotation)
    if rotation % 2 == 0:
        return shape.height, shape.width
    return shape.width, shape.height


def color(shape_id: int) -> Colour:
    return _check(shape_id).colour


def cell_count(pattern: Pattern) -> int:
    """Return the number of occupied cells in ``pattern``."""

    return sum(bin(row).count("1") for row in pattern)


def pattern_cells(pattern: Pattern) -> List[Tuple[int, int]]:
    """Return the ``(row, col)`` offsets occupied by ``pattern``."""

    return [
        (r, c)
        for r, mask in enumerate(pattern)
        for c in range(mask.bit_length())
        if mask & (1 << c)
    ]
