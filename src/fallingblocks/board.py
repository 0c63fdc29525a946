"""Board representation for the playfield.

The board only records permanently fixed cells.  Each row is stored as a
bitmask with one bit per column (bit ``c`` is column ``c``); the active
falling piece is never written here until it is fixed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:  # pragma: no cover
    from .piece import FallingPiece


# Dimensions of the board.
WIDTH = 8
HEIGHT = 16

# Bitmask of a completely filled row.
FULL_ROW = (1 << WIDTH) - 1

Rows = NDArray[np.uint16]


def create_empty_rows() -> Rows:
    """Return a new array of empty row bitmasks."""

    return np.zeros(HEIGHT, dtype=np.uint16)


class Board:
    """Playfield holding the fixed cells as row bitmasks."""

    width: int = WIDTH
    height: int = HEIGHT

    def __init__(self) -> None:
        self.rows: Rows = create_empty_rows()

    def _check_row(self, row: int) -> None:
        if not 0 <= row < self.height:
            raise IndexError("Row out of bounds")

    def row_mask(self, row: int) -> int:
        """Return the bitmask stored for ``row``.

        Raises:
            IndexError: If ``row`` is outside the board.
        """

        self._check_row(row)
        return int(self.rows[row])

    def is_occupied(self, row: int, col: int) -> bool:
        """Return ``True`` if the cell at ``(row, col)`` holds a fixed cell."""

        if not 0 <= col < self.width:
            raise IndexError("Cell out of bounds")
        return bool(self.row_mask(row) & (1 << col))

    def collides(self, piece: "FallingPiece") -> bool:
        """Return ``True`` if ``piece`` overlaps any fixed cell.

        The piece must lie within the vertical extent of the board; testing a
        position outside it is a caller error.
        """

        if piece.row < 0 or piece.row + piece.height > self.height:
            raise IndexError("Piece outside the board")
        for board_row, mask in piece.shifted_rows():
            if mask & int(self.rows[board_row]):
                return True
        return False

    def fix(self, piece: "FallingPiece") -> None:
        """OR the cells of ``piece`` into the board rows."""

        if piece.row < 0 or piece.row + piece.height > self.height:
            raise IndexError("Piece outside the board")
        for board_row, mask in piece.shifted_rows():
            self.rows[board_row] |= np.uint16(mask)

    def find_complete_row(self) -> Optional[int]:
        """Return the index of the topmost full row or ``None``."""

        full = np.flatnonzero(self.rows == FULL_ROW)
        if full.size == 0:
            return None
        return int(full[0])

    def remove_row(self, row: int) -> None:
        """Delete ``row`` and shift every row above it down by one."""

        self._check_row(row)
        self.rows[1 : row + 1] = self.rows[:row].copy()
        self.rows[0] = 0

    def count_cells(self) -> int:
        """Return the number of fixed cells on the board."""

        return sum(bin(int(mask)).count("1") for mask in self.rows)

    def to_lines(self) -> List[str]:
        """Return the rows as text with column ``0`` on the left."""

        return [
            "".join("#" if int(mask) & (1 << c) else "." for c in range(self.width))
            for mask in self.rows
        ]
