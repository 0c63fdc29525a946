import json
import random
import sys

sys.path.append('src')

from fallingblocks.board import FULL_ROW, HEIGHT, WIDTH
from fallingblocks.display import RowRange
from fallingblocks.inputs import Action, ButtonQueue, JoystickSampler
from fallingblocks.piece import FallingPiece
from fallingblocks.scheduler import InputScheduler, Phase
from fallingblocks.scores import HighScoreTable
from fallingblocks.snapshot import JsonSnapshotStore, MemorySnapshotStore
from fallingblocks.utils import BASE_GRAVITY_MS


class FakeClock:
    def __init__(self) -> None:
        self.current = 0

    def advance(self, delta: int) -> None:
        self.current += delta

    def __call__(self) -> int:
        return self.current


class ScriptedKeys:
    """Serial source returning queued actions one per poll."""

    def __init__(self) -> None:
        self.pending = []

    def poll(self):
        return self.pending.pop(0) if self.pending else None


def make_scheduler(**kwargs):
    clock = FakeClock()
    keys = ScriptedKeys()
    scheduler = InputScheduler(clock=clock, keys=keys, rng=random.Random(5), **kwargs)
    return scheduler, clock, keys


def start_with(scheduler, piece, next_piece=None):
    scheduler.new_game()
    session = scheduler.session
    assert session.place(piece)
    session.next_piece = next_piece or FallingPiece(0, row=0, column=WIDTH - 1)
    session.pop_dirty()
    return session


def test_idle_until_new_game():
    scheduler, clock, keys = make_scheduler()
    assert scheduler.tick() is None
    keys.pending = [Action.LEFT, Action.NEW_GAME]
    scheduler.tick()
    assert scheduler.phase is Phase.IDLE
    scheduler.tick()
    assert scheduler.phase is Phase.RUNNING
    assert scheduler.session.current is not None


def test_gravity_drops_after_interval():
    scheduler, clock, _ = make_scheduler()
    session = start_with(scheduler, FallingPiece(0, row=0, column=0))
    clock.advance(BASE_GRAVITY_MS - 1)
    assert scheduler.tick() is None
    assert session.current.row == 0
    clock.advance(1)
    assert scheduler.tick() == RowRange(0, 2)
    assert session.current.row == 1


def test_gravity_fixes_piece_that_cannot_fall():
    scheduler, clock, _ = make_scheduler()
    upcoming = FallingPiece(2, row=0, column=3)
    session = start_with(scheduler, FallingPiece(0, row=HEIGHT - 1, column=0), upcoming)
    clock.advance(BASE_GRAVITY_MS)
    scheduler.tick()
    assert session.board.row_mask(HEIGHT - 1) == 0b1
    assert session.current == upcoming


def test_movement_and_precedence():
    buttons = ButtonQueue()
    scheduler, clock, keys = make_scheduler(buttons=buttons)
    session = start_with(scheduler, FallingPiece(0, row=0, column=4))
    buttons.press(Action.LEFT)
    keys.pending = [Action.RIGHT]
    scheduler.tick()
    assert session.current.column == 3
    # The serial key is still waiting.
    assert keys.pending == [Action.RIGHT]
    buttons.release()
    clock.advance(10)
    scheduler.tick()
    assert session.current.column == 4
    assert keys.pending == []


def test_held_button_repeats_after_initial_delay():
    buttons = ButtonQueue()
    scheduler, clock, _ = make_scheduler(buttons=buttons)
    session = start_with(scheduler, FallingPiece(0, row=0, column=0))
    buttons.press(Action.RIGHT)
    columns = []
    for _ in range(56):
        scheduler.tick()
        columns.append(session.current.column)
        clock.advance(10)
    # Moves at 0, 500 and 550 ms.
    assert columns[0] == 1
    assert columns[49] == 1
    assert columns[50] == 2
    assert columns[55] == 3


def test_drop_free_falls_and_fixes():
    scheduler, clock, keys = make_scheduler()
    upcoming = FallingPiece(2, row=0, column=3)
    session = start_with(scheduler, FallingPiece(0, row=0, column=0), upcoming)
    clock.advance(BASE_GRAVITY_MS - 10)
    keys.pending = [Action.DROP]
    scheduler.tick()
    assert session.board.row_mask(HEIGHT - 1) == 0b1
    assert session.score == HEIGHT - 1
    assert session.current == upcoming
    # The drop restarted the gravity timer.
    clock.advance(BASE_GRAVITY_MS - 10)
    scheduler.tick()
    assert session.current.row == 0


def test_pause_suspends_gravity_and_movement():
    scheduler, clock, keys = make_scheduler()
    session = start_with(scheduler, FallingPiece(0, row=0, column=3))
    keys.pending = [Action.PAUSE]
    scheduler.tick()
    assert scheduler.phase is Phase.PAUSED
    clock.advance(10 * BASE_GRAVITY_MS)
    keys.pending = [Action.LEFT]
    scheduler.tick()
    assert session.current.row == 0
    assert session.current.column == 3

    keys.pending = [Action.PAUSE]
    scheduler.tick()
    assert scheduler.phase is Phase.RUNNING
    assert session.current.row == 0
    clock.advance(BASE_GRAVITY_MS - 1)
    scheduler.tick()
    assert session.current.row == 0
    clock.advance(1)
    scheduler.tick()
    assert session.current.row == 1


def test_game_over_waits_for_new_game():
    scores = HighScoreTable()
    scheduler, clock, keys = make_scheduler(scores=scores)
    session = start_with(
        scheduler,
        FallingPiece(0, row=HEIGHT - 1, column=WIDTH - 1),
        FallingPiece(2, row=0, column=0),
    )
    session.board.rows[0] = FULL_ROW >> 1
    session.score = 250
    clock.advance(BASE_GRAVITY_MS)
    scheduler.tick()
    assert scheduler.phase is Phase.GAME_OVER
    assert scores.top() == [(250, "AAA")]

    keys.pending = [Action.PAUSE, Action.LEFT, Action.NEW_GAME]
    scheduler.tick()
    scheduler.tick()
    assert scheduler.phase is Phase.GAME_OVER
    scheduler.tick()
    assert scheduler.phase is Phase.RUNNING
    assert scheduler.session is not session
    assert scheduler.session.score == 0


def test_new_game_redraws_whole_board():
    scheduler, _, keys = make_scheduler()
    keys.pending = [Action.NEW_GAME]
    assert scheduler.tick() == RowRange.full()


def test_save_and_load_restore_session():
    store = MemorySnapshotStore()
    scheduler, clock, keys = make_scheduler(store=store)
    session = start_with(scheduler, FallingPiece(3, row=2, column=1))
    session.score = 42
    keys.pending = [Action.SAVE]
    scheduler.tick()
    assert store.load() is not None

    keys.pending = [Action.RIGHT, Action.RIGHT]
    scheduler.tick()
    scheduler.tick()
    assert session.current.column == 3

    keys.pending = [Action.LOAD]
    scheduler.tick()
    restored = scheduler.session
    assert restored is not session
    assert restored.current == FallingPiece(3, row=2, column=1)
    assert restored.score == 42
    assert scheduler.phase is Phase.RUNNING


def test_load_without_save_starts_fresh_game():
    scheduler, _, keys = make_scheduler(store=MemorySnapshotStore())
    keys.pending = [Action.LOAD]
    scheduler.tick()
    assert scheduler.phase is Phase.RUNNING
    assert scheduler.session.score == 0
    assert scheduler.session.board.count_cells() == 0


def test_corrupt_save_file_starts_fresh_game(tmp_path):
    store = JsonSnapshotStore(tmp_path / "slot.json")
    scheduler, clock, keys = make_scheduler(store=store)
    session = start_with(scheduler, FallingPiece(3, row=2, column=1))
    session.score = 42
    keys.pending = [Action.SAVE]
    scheduler.tick()

    data = json.loads(store.path.read_text(encoding="utf-8"))
    data["current"]["shape"] = 99
    store.path.write_text(json.dumps(data), encoding="utf-8")
    keys.pending = [Action.LOAD]
    clock.advance(10)
    scheduler.tick()
    assert scheduler.phase is Phase.RUNNING
    assert scheduler.session is not session
    assert scheduler.session.score == 0


def test_button_beats_joystick():
    buttons = ButtonQueue()
    joystick = JoystickSampler()
    scheduler, clock, _ = make_scheduler(buttons=buttons, joystick=joystick)
    session = start_with(scheduler, FallingPiece(0, row=0, column=4))
    buttons.press(Action.LEFT)
    joystick.update(1000, 512)
    scheduler.tick()
    assert session.current.column == 3


def test_joystick_beats_serial_key():
    joystick = JoystickSampler()
    scheduler, clock, keys = make_scheduler(joystick=joystick)
    session = start_with(scheduler, FallingPiece(0, row=0, column=4))
    joystick.update(1000, 512)
    keys.pending = [Action.LEFT]
    scheduler.tick()
    assert session.current.column == 5
    assert keys.pending == [Action.LEFT]
    # While the held direction waits for its repeat the key gets through.
    clock.advance(10)
    scheduler.tick()
    assert session.current.column == 4
    assert keys.pending == []


def test_held_joystick_repeats_after_initial_delay():
    joystick = JoystickSampler()
    scheduler, clock, _ = make_scheduler(joystick=joystick)
    session = start_with(scheduler, FallingPiece(0, row=0, column=0))
    joystick.update(1000, 512)
    columns = []
    for _ in range(56):
        scheduler.tick()
        columns.append(session.current.column)
        clock.advance(10)
    assert columns[0] == 1
    assert columns[49] == 1
    assert columns[50] == 2
    assert columns[55] == 3
