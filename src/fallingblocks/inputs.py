"""Input sources and repeat arbitration.

The scheduler polls three kinds of source once per tick.  Each ``poll`` call
returns a resolved :class:`Action` or ``None``:

``ButtonQueue``
    Bounded queue of button presses fed by an external producer.  The head of
    the queue is reported until the buttons are released.

``JoystickSampler``
    Turns raw two-axis readings into a five-way classification.

``EscapeDecoder``
    Decodes a serial byte stream, including ``ESC [ x`` cursor sequences.
"""

from __future__ import annotations

import threading
from collections import deque
from enum import Enum
from typing import Deque, Dict, Optional

ESCAPE_CHAR = "\x1b"

BUTTON_QUEUE_SIZE = 8

# Joystick readings are 10-bit; anything between the thresholds is centred.
JOYSTICK_LOW = 300
JOYSTICK_HIGH = 700

INITIAL_DELAY_MS = 500
REPEAT_INTERVAL_MS = 50


class Action(str, Enum):
    """Resolved input symbols understood by the scheduler."""

    LEFT = "left"
    RIGHT = "right"
    ROTATE = "rotate"
    DROP = "drop"
    PAUSE = "pause"
    NEW_GAME = "new_game"
    SAVE = "save"
    LOAD = "load"


# Actions that keep firing while their input is held.
REPEATABLE = frozenset({Action.LEFT, Action.RIGHT, Action.ROTATE})

# Third byte of an ``ESC [`` sequence.
ESCAPE_ACTIONS: Dict[str, Action] = {
    "D": Action.LEFT,
    "C": Action.RIGHT,
    "A": Action.ROTATE,
    "B": Action.DROP,
}

KEY_ACTIONS: Dict[str, Action] = {
    "p": Action.PAUSE,
    "n": Action.NEW_GAME,
    "s": Action.SAVE,
    "l": Action.LOAD,
}


class ButtonQueue:
    """Thread-safe bounded queue of button presses.

    Presses arriving while the queue is full are ignored rather than blocking
    the producer.  Releasing the buttons empties the queue.
    """

    def __init__(self, capacity: int = BUTTON_QUEUE_SIZE) -> None:
        self.capacity = capacity
        self._queue: Deque[Action] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def press(self, action: Action) -> bool:
        """Queue ``action``; returns ``False`` if it was dropped."""

        with self._lock:
            if len(self._queue) >= self.capacity:
                return False
            self._queue.append(action)
            return True

    def release(self) -> None:
        with self._lock:
            self._queue.clear()

    def poll(self) -> Optional[Action]:
        with self._lock:
            return self._queue[0] if self._queue else None


class JoystickSampler:
    """Five-way joystick classification from the latest axis readings."""

    def __init__(self) -> None:
        self._x = 512
        self._y = 512
        self._lock = threading.Lock()

    def update(self, x: int, y: int) -> None:
        with self._lock:
            self._x, self._y = x, y

    def poll(self) -> Optional[Action]:
        with self._lock:
            x, y = self._x, self._y
        return classify_joystick(x, y)


def classify_joystick(x: int, y: int) -> Optional[Action]:
    """Return the direction for raw readings ``x`` and ``y``.

    The x axis is checked first, so a diagonal resolves to a horizontal move.
    """

    if x > JOYSTICK_HIGH:
        return Action.RIGHT
    if x < JOYSTICK_LOW:
        return Action.LEFT
    if y > JOYSTICK_HIGH:
        return Action.ROTATE
    if y < JOYSTICK_LOW:
        return Action.DROP
    return None


class EscapeDecoder:
    """Serial key source that resolves escape sequences.

    Bytes are pushed with :meth:`feed` (possibly from another thread) and one
    byte is consumed per :meth:`poll`.  Partial sequences are held back until
    their final byte arrives and are never reported as plain keys.
    """

    def __init__(self) -> None:
        self._pending: Deque[str] = deque()
        self._lock = threading.Lock()
        self._stage = 0

    def feed(self, data: str) -> None:
        with self._lock:
            self._pending.extend(data)

    def poll(self) -> Optional[Action]:
        with self._lock:
            if not self._pending:
                return None
            char = self._pending.popleft()
        return self.decode(char)

    def decode(self, char: str) -> Optional[Action]:
        """Advance the decoder by one character."""

        if self._stage == 0 and char == ESCAPE_CHAR:
            self._stage = 1
            return None
        if self._stage == 1 and char == "[":
            self._stage = 2
            return None
        if self._stage == 2:
            self._stage = 0
            return ESCAPE_ACTIONS.get(char)
        # Not part of a sequence, or an invalid second byte: treat as plain.
        self._stage = 0
        return KEY_ACTIONS.get(char.lower())


class RepeatGate:
    """Debounce and auto-repeat for held inputs.

    A newly observed input dispatches at once.  While it stays held nothing is
    dispatched until ``initial_delay_ms`` has passed, then it dispatches every
    ``repeat_interval_ms``.  Only actions in ``REPEATABLE`` repeat.
    """

    def __init__(
        self,
        initial_delay_ms: int = INITIAL_DELAY_MS,
        repeat_interval_ms: int = REPEAT_INTERVAL_MS,
    ) -> None:
        self.initial_delay_ms = initial_delay_ms
        self.repeat_interval_ms = repeat_interval_ms
        self.reset()

    def reset(self) -> None:
        self.held: Optional[Action] = None
        self.since = 0
        self.last_fire = 0
        self.repeating = False

    def observe(self, action: Optional[Action], now: int) -> bool:
        """Record the held input at ``now``; return ``True`` to dispatch it."""

        if action != self.held:
            self.held = action
            self.since = now
            self.last_fire = now
            self.repeating = False
            return action is not None
        if action is None or action not in REPEATABLE:
            return False
        if not self.repeating:
            if now - self.since >= self.initial_delay_ms:
                self.repeating = True
                self.last_fire = now
                return True
            return False
        if now - self.last_fire >= self.repeat_interval_ms:
            self.last_fire = now
            return True
        return False
