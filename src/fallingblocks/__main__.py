"""Command line entry point.

Run with: `python -m fallingblocks`

Without options this plays a short headless game with random inputs and prints
the final board, useful as a smoke test of the engine.  ``--pygame`` opens the
interactive front-end instead.
"""

from __future__ import annotations

import argparse
import logging
import random

from .inputs import Action
from .scheduler import InputScheduler, Phase
from .utils import render_grid

LOGGER = logging.getLogger(__name__)

DEMO_ACTIONS = (Action.LEFT, Action.RIGHT, Action.ROTATE, Action.DROP, None, None)


class _ScriptedKeys:
    def __init__(self, rng: random.Random) -> None:
        self._rng = rng

    def poll(self):
        return self._rng.choice(DEMO_ACTIONS)


def run_demo(ticks: int, seed: int) -> InputScheduler:
    """Play ``ticks`` steps of 10 simulated milliseconds each."""

    now = [0]

    def clock() -> int:
        return now[0]

    rng = random.Random(seed)
    scheduler = InputScheduler(clock=clock, keys=_ScriptedKeys(rng), rng=rng)
    scheduler.new_game()
    for _ in range(ticks):
        now[0] += 10
        scheduler.tick()
        if scheduler.phase is Phase.GAME_OVER:
            break
    return scheduler


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--pygame", action="store_true", help="open the interactive window")
    parser.add_argument("--ticks", type=int, default=2000, help="demo length in ticks")
    parser.add_argument("--seed", type=int, default=0, help="random seed for the demo")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    if args.pygame:
        from .run_pygame import main as run_window

        run_window()
        return

    scheduler = run_demo(args.ticks, args.seed)
    session = scheduler.session
    assert session is not None
    for line in render_grid(session.display):
        print(line)
    print(f"phase={scheduler.phase.value} score={session.score} rows={session.rows_cleared}")


if __name__ == "__main__":
    main()
