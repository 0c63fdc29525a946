"""Falling-block puzzle engine with incremental redraw support."""

from .board import Board, HEIGHT, WIDTH
from .catalog import Colour, Shape, SHAPES, color, dimensions, rotation_pattern, shape_count
from .display import DisplayCache, RowRange
from .inputs import Action, ButtonQueue, EscapeDecoder, JoystickSampler, RepeatGate
from .piece import FallingPiece, MOVE_LEFT, MOVE_RIGHT, move_horizontal, rotate, spawn_random_piece
from .scheduler import InputScheduler, Phase, Timing
from .scores import HighScoreTable
from .session import GameSession, ScorePolicy
from .snapshot import JsonSnapshotStore, MemorySnapshotStore, SessionSnapshot
from .utils import gravity_interval_ms, render_grid

__all__ = [
    "Action",
    "Board",
    "ButtonQueue",
    "Colour",
    "DisplayCache",
    "EscapeDecoder",
    "FallingPiece",
    "GameSession",
    "HEIGHT",
    "HighScoreTable",
    "InputScheduler",
    "JoystickSampler",
    "JsonSnapshotStore",
    "MOVE_LEFT",
    "MOVE_RIGHT",
    "MemorySnapshotStore",
    "Phase",
    "RepeatGate",
    "RowRange",
    "SHAPES",
    "ScorePolicy",
    "SessionSnapshot",
    "Shape",
    "Timing",
    "WIDTH",
    "color",
    "dimensions",
    "gravity_interval_ms",
    "move_horizontal",
    "render_grid",
    "rotate",
    "rotation_pattern",
    "shape_count",
    "spawn_random_piece",
]
