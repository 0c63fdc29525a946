"""Tick-driven game loop: input arbitration, gravity and game phases.

The scheduler never blocks.  Each call to :meth:`InputScheduler.tick` reads the
clock once, polls the input sources, dispatches at most one action and applies
gravity.  The caller is responsible for pacing the loop.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from .display import RowRange
from .inputs import INITIAL_DELAY_MS, REPEAT_INTERVAL_MS, Action, RepeatGate
from .piece import MOVE_LEFT, MOVE_RIGHT
from .scores import HighScoreTable
from .session import GameSession, RenderSink, ScorePolicy
from .snapshot import SessionSnapshot
from .utils import gravity_interval_ms

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], int]


class InputSource(Protocol):
    def poll(self) -> Optional[Action]: ...


class SnapshotStore(Protocol):
    def save(self, snapshot: SessionSnapshot) -> None: ...

    def load(self) -> Optional[SessionSnapshot]: ...


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class Phase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class Timing:
    """Key-repeat timing in milliseconds."""

    initial_delay_ms: int = INITIAL_DELAY_MS
    repeat_interval_ms: int = REPEAT_INTERVAL_MS


class InputScheduler:
    """Drive a :class:`GameSession` from polled inputs and a monotonic clock.

    Parameters
    ----------
    clock:
        Callable returning monotonic milliseconds.
    buttons, joystick, keys:
        Input sources in decreasing precedence.  Buttons and the joystick are
        treated as held inputs subject to key repeat; keys are discrete.
    store:
        Optional snapshot store used by ``SAVE`` and ``LOAD``.
    scores:
        Optional high-score table that receives the final score of each game.
    """

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        buttons: Optional[InputSource] = None,
        joystick: Optional[InputSource] = None,
        keys: Optional[InputSource] = None,
        store: Optional[SnapshotStore] = None,
        scores: Optional[HighScoreTable] = None,
        timing: Optional[Timing] = None,
        policy: Optional[ScorePolicy] = None,
        rng: Optional[random.Random] = None,
        render_sink: Optional[RenderSink] = None,
        player_label: str = "AAA",
    ) -> None:
        self._clock = clock or monotonic_ms
        self.buttons = buttons
        self.joystick = joystick
        self.keys = keys
        self.store = store
        self.scores = scores
        self.timing = timing or Timing()
        self.policy = policy
        self.rng = rng
        self.render_sink = render_sink
        self.player_label = player_label
        self.gate = RepeatGate(self.timing.initial_delay_ms, self.timing.repeat_interval_ms)
        self.phase = Phase.IDLE
        self.session: Optional[GameSession] = None
        self.last_drop = 0

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------
    def _set_phase(self, phase: Phase) -> None:
        if phase is not self.phase:
            LOGGER.info("Phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase

    def _start(self, session: GameSession, now: int) -> None:
        self.session = session
        self.last_drop = now
        self.gate.reset()
        self._set_phase(Phase.RUNNING)

    def new_game(self, now: Optional[int] = None) -> None:
        """Discard any current session and start a fresh one."""

        now = self._clock() if now is None else now
        session = GameSession(rng=self.rng, policy=self.policy, render_sink=self.render_sink)
        self._start(session, now)

    def toggle_pause(self, now: Optional[int] = None) -> None:
        now = self._clock() if now is None else now
        if self.phase is Phase.RUNNING:
            self._set_phase(Phase.PAUSED)
        elif self.phase is Phase.PAUSED:
            # Restart the gravity timer so the pause cannot force a drop.
            self.last_drop = now
            self.gate.reset()
            self._set_phase(Phase.RUNNING)

    def save(self) -> bool:
        if self.store is None or self.session is None or self.session.current is None:
            return False
        self.store.save(self.session.snapshot())
        return True

    def load(self, now: Optional[int] = None) -> bool:
        """Resume the stored game, or start a new one if nothing is saved.

        Returns ``True`` if a saved game was restored.
        """

        now = self._clock() if now is None else now
        snapshot = self.store.load() if self.store is not None else None
        if snapshot is None:
            self.new_game(now)
            return False
        session = GameSession.from_snapshot(
            snapshot, rng=self.rng, policy=self.policy, render_sink=self.render_sink
        )
        self._start(session, now)
        return True

    def _game_over(self) -> None:
        self.gate.reset()
        self._set_phase(Phase.GAME_OVER)
        if self.scores is not None and self.session is not None:
            self.scores.submit(self.session.score, self.player_label)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def _poll(self, now: int) -> Optional[Action]:
        """Return the action to dispatch this tick, honouring precedence."""

        held = self.buttons.poll() if self.buttons is not None else None
        if held is None and self.joystick is not None:
            held = self.joystick.poll()
        if self.gate.observe(held, now):
            return held
        # Serial input waits in its buffer while a held input fires.
        if self.keys is not None:
            return self.keys.poll()
        return None

    def dispatch(self, action: Action, now: int) -> None:
        if action is Action.NEW_GAME:
            self.new_game(now)
            return
        if self.phase is Phase.GAME_OVER:
            return
        if action is Action.LOAD:
            self.load(now)
            return
        if self.phase is Phase.IDLE:
            return
        if action is Action.PAUSE:
            self.toggle_pause(now)
            return
        if action is Action.SAVE:
            self.save()
            return
        if self.phase is not Phase.RUNNING:
            return

        session = self.session
        assert session is not None
        if action is Action.LEFT:
            session.attempt_move(MOVE_LEFT)
        elif action is Action.RIGHT:
            session.attempt_move(MOVE_RIGHT)
        elif action is Action.ROTATE:
            session.attempt_rotate()
        elif action is Action.DROP:
            if not session.hard_drop():
                self._game_over()
            self.last_drop = now

    def _apply_gravity(self, now: int) -> None:
        session = self.session
        assert session is not None
        if now - self.last_drop < gravity_interval_ms(session.rows_cleared):
            return
        self.last_drop = now
        if not session.attempt_drop_one_row() and not session.fix_and_respawn():
            self._game_over()

    def tick(self) -> Optional[RowRange]:
        """Advance the game by one polling step.

        Returns the rows changed during this tick, if any.
        """

        now = self._clock()
        action = self._poll(now)
        if action is not None:
            self.dispatch(action, now)
        if self.phase is Phase.RUNNING:
            self._apply_gravity(now)
        if self.session is None:
            return None
        return self.session.pop_dirty()
