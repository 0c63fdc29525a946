"""Game session: the board, the falling pieces and the score.

Every mutating operation returns ``True`` on success and leaves the session
untouched on failure.  Successful mutations record the band of rows the
renderer has to refresh; ``pop_dirty`` hands the accumulated band over.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Callable, Optional

import numpy as np

from .board import HEIGHT, Board
from .display import DisplayCache, RowRange
from .piece import FallingPiece, move_horizontal, rotate, spawn_random_piece
from .snapshot import SessionSnapshot

LOGGER = logging.getLogger(__name__)

ROW_BONUS = 100
SOFT_DROP_BONUS = 1

RenderSink = Callable[[RowRange, DisplayCache], None]


@dataclass(frozen=True)
class ScorePolicy:
    """Points awarded by a session."""

    row_bonus: int = ROW_BONUS
    soft_drop_bonus: int = SOFT_DROP_BONUS
    soft_drop_enabled: bool = True


class GameSession:
    """Mutable state for one game."""

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        policy: Optional[ScorePolicy] = None,
        render_sink: Optional[RenderSink] = None,
        spawn: bool = True,
    ) -> None:
        self.rng = rng or random.Random()
        self.policy = policy or ScorePolicy()
        self.render_sink = render_sink
        self.board = Board()
        self.display = DisplayCache()
        self.current: Optional[FallingPiece] = None
        self.next_piece: Optional[FallingPiece] = None
        self.score = 0
        self.rows_cleared = 0
        self.over = False
        self._dirty: Optional[RowRange] = None
        self._invalidate(RowRange.full())
        if spawn:
            # An empty board always has room for the first piece.
            self._spawn()

    # ------------------------------------------------------------------
    # Dirty-row bookkeeping
    # ------------------------------------------------------------------
    def _invalidate(self, rows: RowRange) -> None:
        self._dirty = rows.union(self._dirty)
        if self.render_sink is not None:
            self.render_sink(rows, self.display)

    def pop_dirty(self) -> Optional[RowRange]:
        """Return the rows changed since the last call and reset the record."""

        dirty, self._dirty = self._dirty, None
        return dirty

    # ------------------------------------------------------------------
    # Piece placement
    # ------------------------------------------------------------------
    def _swap_current(self, piece: FallingPiece) -> None:
        assert self.current is not None
        self.display.remove_piece(self.current)
        self.current = piece
        self.display.add_piece(piece)

    def place(self, piece: FallingPiece) -> bool:
        """Install ``piece`` as the falling piece if it fits on the board."""

        if self.board.collides(piece):
            return False
        if self.current is not None:
            self.display.remove_piece(self.current)
        self.current = piece
        self.display.add_piece(piece)
        self._invalidate(RowRange(piece.row, piece.height))
        return True

    def _spawn(self) -> bool:
        piece = self.next_piece or spawn_random_piece(self.rng)
        self.next_piece = spawn_random_piece(self.rng)
        self.current = None
        if not self.place(piece):
            self.over = True
            LOGGER.info("Game over with score %d after %d rows", self.score, self.rows_cleared)
            return False
        return True

    # ------------------------------------------------------------------
    # Player and gravity actions
    # ------------------------------------------------------------------
    def attempt_move(self, direction: int) -> bool:
        """Move the falling piece one column in ``direction``."""

        old = self.current
        if old is None:
            return False
        moved = replace(old)
        if not move_horizontal(moved, direction):
            return False
        if self.board.collides(moved):
            return False
        self._swap_current(moved)
        self._invalidate(
            RowRange.spanning(min(old.row, moved.row), max(old.row + old.height, moved.row + moved.height))
        )
        return True

    def attempt_drop_one_row(self) -> bool:
        """Move the falling piece down one row."""

        old = self.current
        if old is None or old.bottom >= HEIGHT - 1:
            return False
        moved = replace(old, row=old.row + 1)
        if self.board.collides(moved):
            return False
        self._swap_current(moved)
        self._invalidate(RowRange.spanning(moved.row - 1, moved.row + moved.height))
        return True

    def attempt_rotate(self) -> bool:
        """Rotate the falling piece clockwise."""

        old = self.current
        if old is None:
            return False
        rotated = replace(old)
        if not rotate(rotated):
            return False
        if self.board.collides(rotated):
            return False
        rows_affected = max(old.height, rotated.height)
        self._swap_current(rotated)
        self._invalidate(RowRange.spanning(old.row, old.row + rows_affected))
        return True

    def soft_drop(self) -> bool:
        """Player-requested one-row drop; awards the soft-drop bonus if enabled."""

        if not self.attempt_drop_one_row():
            return False
        if self.policy.soft_drop_enabled:
            self.score += self.policy.soft_drop_bonus
        return True

    def hard_drop(self) -> bool:
        """Let the piece fall until it rests, then fix it.

        Returns the result of :meth:`fix_and_respawn`.
        """

        while self.soft_drop():
            pass
        return self.fix_and_respawn()

    def fix_and_respawn(self) -> bool:
        """Fix the falling piece, clear complete rows and spawn the next piece.

        Returns ``False`` when the new piece has no legal spawn position, which
        ends the game.
        """

        if self.current is None:
            return False
        # The display already shows the piece, only the board needs updating.
        self.board.fix(self.current)
        self.current = None
        self.clear_completed_rows()
        return self._spawn()

    def clear_completed_rows(self) -> int:
        """Remove full rows one at a time, rescanning from the top after each.

        Returns the number of rows removed.
        """

        cleared = 0
        while True:
            row = self.board.find_complete_row()
            if row is None:
                break
            self.board.remove_row(row)
            self.display.shift_down(row)
            self.score += self.policy.row_bonus
            self.rows_cleared += 1
            cleared += 1
            self._invalidate(RowRange.full())
        if cleared:
            LOGGER.debug("Cleared %d row(s). Score: %d", cleared, self.score)
        return cleared

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def snapshot(self) -> SessionSnapshot:
        """Return a plain-data copy of this session."""

        if self.current is None:
            raise ValueError("Cannot snapshot a session without a falling piece")
        return SessionSnapshot(
            rows=[int(v) for v in self.board.rows],
            display=self.display.grid.tolist(),
            current=self.current.to_dict(),
            next_piece=None if self.next_piece is None else self.next_piece.to_dict(),
            rows_cleared=self.rows_cleared,
            score=self.score,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: SessionSnapshot,
        *,
        rng: Optional[random.Random] = None,
        policy: Optional[ScorePolicy] = None,
        render_sink: Optional[RenderSink] = None,
    ) -> "GameSession":
        """Rebuild a session from ``snapshot``.

        Raises:
            ValueError: If the falling piece overlaps fixed blocks.
        """

        session = cls(rng=rng, policy=policy, render_sink=render_sink, spawn=False)
        session.board.rows = np.array(snapshot.rows, dtype=np.uint16)
        session.display.grid = np.array(snapshot.display, dtype=np.uint8)
        # The saved display already shows the piece; placing it again is a no-op there.
        if not session.place(FallingPiece.from_dict(snapshot.current)):
            raise ValueError("Snapshot piece overlaps fixed blocks")
        if snapshot.next_piece is not None:
            session.next_piece = FallingPiece.from_dict(snapshot.next_piece)
        session.rows_cleared = snapshot.rows_cleared
        session.score = snapshot.score
        session._invalidate(RowRange.full())
        return session
