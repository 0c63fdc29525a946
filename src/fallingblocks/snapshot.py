"""Session snapshots for save and resume.

A snapshot carries everything needed to rebuild a :class:`GameSession` so that
resuming is indistinguishable from never having stopped.  Stores are the
persistence collaborators; the engine only needs ``save`` and ``load``.

Snapshots are checked against the pydantic records below whenever they are
built, so a store never hands out a board the engine cannot play on.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import catalog
from .board import FULL_ROW, HEIGHT, WIDTH
from .catalog import Colour

LOGGER = logging.getLogger(__name__)


class RecordBase(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


class PieceRecord(RecordBase):
    shape: int = Field(ge=0)
    rotation: int = Field(ge=0, lt=catalog.NUM_ROTATIONS)
    row: int = Field(ge=0)
    column: int = Field(ge=0)

    @model_validator(mode="after")
    def _fits_board(self) -> "PieceRecord":
        if self.shape >= catalog.shape_count():
            raise ValueError(f"unknown shape id {self.shape}")
        height, width = catalog.dimensions(self.shape, self.rotation)
        if self.row + height > HEIGHT or self.column + width > WIDTH:
            raise ValueError("piece lies outside the board")
        return self


class SnapshotRecord(RecordBase):
    rows: List[int] = Field(min_length=HEIGHT, max_length=HEIGHT)
    display: List[List[int]] = Field(min_length=HEIGHT, max_length=HEIGHT)
    current: PieceRecord
    next_piece: Optional[PieceRecord] = None
    rows_cleared: int = Field(default=0, ge=0)
    score: int = Field(default=0, ge=0)
    has_save: bool = True

    @field_validator("rows")
    @classmethod
    def _rows_fit_width(cls, v: List[int]) -> List[int]:
        if any(not 0 <= mask <= FULL_ROW for mask in v):
            raise ValueError("row mask wider than the board")
        return v

    @field_validator("display")
    @classmethod
    def _display_holds_colours(cls, v: List[List[int]]) -> List[List[int]]:
        colours = {int(c) for c in Colour}
        for row in v:
            if len(row) != WIDTH:
                raise ValueError(f"display rows must have {WIDTH} cells")
            if any(cell not in colours for cell in row):
                raise ValueError("display cell is not a colour code")
        return v

    @model_validator(mode="after")
    def _current_is_free(self) -> "SnapshotRecord":
        piece = self.current
        pattern = catalog.rotation_pattern(piece.shape, piece.rotation)
        for offset, mask in enumerate(pattern):
            if self.rows[piece.row + offset] & (mask << piece.column):
                raise ValueError("falling piece overlaps fixed blocks")
        return self


@dataclass
class SessionSnapshot:
    """Plain-data image of a game session.

    Raises:
        ValueError: If the data does not describe a playable session.
    """

    rows: List[int]
    display: List[List[int]]
    current: dict
    next_piece: Optional[dict] = None
    rows_cleared: int = 0
    score: int = 0
    has_save: bool = True

    def __post_init__(self) -> None:
        # pydantic's ValidationError is a ValueError.
        SnapshotRecord.model_validate(asdict(self))

    def to_dict(self) -> dict:
        return {
            "rows": list(self.rows),
            "display": [list(r) for r in self.display],
            "current": dict(self.current),
            "next_piece": None if self.next_piece is None else dict(self.next_piece),
            "rows_cleared": self.rows_cleared,
            "score": self.score,
            "has_save": self.has_save,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionSnapshot":
        return cls(**SnapshotRecord.model_validate(data).model_dump())


@dataclass
class MemorySnapshotStore:
    """Single-slot store kept in memory."""

    slot: Optional[SessionSnapshot] = field(default=None)

    def save(self, snapshot: SessionSnapshot) -> None:
        self.slot = snapshot

    def load(self) -> Optional[SessionSnapshot]:
        if self.slot is None or not self.slot.has_save:
            return None
        return self.slot


class JsonSnapshotStore:
    """Single-slot store backed by a JSON file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def save(self, snapshot: SessionSnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(snapshot.to_dict()), encoding="utf-8")
        LOGGER.info("Saved game to %s", self.path)

    def load(self) -> Optional[SessionSnapshot]:
        """Return the stored snapshot or ``None`` if absent or unreadable."""

        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            snapshot = SessionSnapshot.from_dict(data)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable save file %s: %s", self.path, exc)
            return None
        if not snapshot.has_save:
            return None
        return snapshot
