import sys

sys.path.append('src')

from fallingblocks.__main__ import run_demo
from fallingblocks.utils import render_grid


def test_demo_runs_headless():
    scheduler = run_demo(ticks=500, seed=3)
    session = scheduler.session
    assert session is not None
    lines = render_grid(session.display)
    assert len(lines) == session.board.height
    assert all(len(line) == session.board.width for line in lines)
