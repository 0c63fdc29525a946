"""Colour mirror of the board used for incremental redraws."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np
from numpy.typing import NDArray

from .board import HEIGHT, WIDTH
from .catalog import Colour

if TYPE_CHECKING:  # pragma: no cover
    from .board import Board
    from .piece import FallingPiece

Grid = NDArray[np.uint8]


@dataclass(frozen=True)
class RowRange:
    """Band of rows ``[start, start + count)`` that needs redrawing."""

    start: int
    count: int

    @property
    def stop(self) -> int:
        return self.start + self.count

    @classmethod
    def spanning(cls, start: int, stop: int) -> "RowRange":
        start = max(0, start)
        stop = min(HEIGHT, stop)
        return cls(start, max(0, stop - start))

    @classmethod
    def full(cls) -> "RowRange":
        return cls(0, HEIGHT)

    def union(self, other: Optional["RowRange"]) -> "RowRange":
        if other is None:
            return self
        return RowRange.spanning(min(self.start, other.start), max(self.stop, other.stop))


def create_empty_grid() -> Grid:
    """Return a new colour grid filled with ``Colour.BLACK``."""

    return np.zeros((HEIGHT, WIDTH), dtype=np.uint8)


class DisplayCache:
    """Per-cell colours of the fixed cells plus the overlaid falling piece."""

    def __init__(self) -> None:
        self.grid: Grid = create_empty_grid()

    def _paint(self, piece: "FallingPiece", colour: int) -> None:
        for r, c in piece.blocks():
            self.grid[r, c] = colour

    def add_piece(self, piece: "FallingPiece") -> None:
        """Paint the cells of ``piece`` in its colour."""

        self._paint(piece, int(piece.colour))

    def remove_piece(self, piece: "FallingPiece") -> None:
        """Blank the cells of ``piece``.

        Only cells occupied by the piece are touched so fixed cells sharing
        the same rows keep their colour.
        """

        self._paint(piece, Colour.BLACK)

    def shift_down(self, row: int) -> None:
        """Mirror :meth:`Board.remove_row` on the colour grid."""

        self.grid[1 : row + 1] = self.grid[:row].copy()
        self.grid[0] = Colour.BLACK

    def row(self, index: int) -> NDArray[np.uint8]:
        """Return a read-only view of the colours in row ``index``."""

        view = self.grid[index]
        view.flags.writeable = False
        return view

    def occupancy(self) -> NDArray[np.bool_]:
        """Return a boolean grid of the non-empty cells."""

        return self.grid != Colour.BLACK

    def matches(self, board: "Board", piece: Optional["FallingPiece"] = None) -> bool:
        """Return ``True`` if the cache agrees with ``board`` plus ``piece``.

        Fixed cells only need to be non-empty (their colour is not recorded on
        the board) while the piece cells must carry the piece colour.
        """

        expected = np.zeros((HEIGHT, WIDTH), dtype=bool)
        for r in range(HEIGHT):
            mask = board.row_mask(r)
            for c in range(WIDTH):
                expected[r, c] = bool(mask & (1 << c))
        if piece is not None:
            for r, c in piece.blocks():
                if self.grid[r, c] != piece.colour:
                    return False
                expected[r, c] = True
        return bool(np.array_equal(expected, self.occupancy()))
