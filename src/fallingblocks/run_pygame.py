"""Simple pygame front-end for the engine.

The arrow keys act as held buttons (subject to key repeat) and letter keys are
routed through the serial decoder, so the desktop build exercises the same
input paths as the hardware.  Only the rows reported dirty by the scheduler
are redrawn each frame.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import pygame

from .board import HEIGHT, WIDTH
from .catalog import Colour
from .display import DisplayCache, RowRange
from .inputs import Action, EscapeDecoder
from .scheduler import InputScheduler, Phase
from .scores import HighScoreTable
from .snapshot import JsonSnapshotStore

LOGGER = logging.getLogger(__name__)

# Size of a single board cell in pixels
CELL_SIZE = 30
# Frames per second to run the game loop at
FPS = 60

CELL_COLORS: Dict[int, tuple] = {
    Colour.BLACK: (0, 0, 0),
    Colour.RED: (255, 0, 0),
    Colour.ORANGE: (255, 165, 0),
    Colour.GREEN: (0, 255, 0),
    Colour.YELLOW: (255, 255, 0),
    Colour.LIGHT_ORANGE: (255, 200, 120),
    Colour.LIGHT_GREEN: (150, 255, 150),
    Colour.LIGHT_YELLOW: (255, 255, 170),
}

ARROW_ACTIONS = {
    pygame.K_LEFT: Action.LEFT,
    pygame.K_RIGHT: Action.RIGHT,
    pygame.K_UP: Action.ROTATE,
    pygame.K_DOWN: Action.DROP,
}


class KeyboardButtons:
    """Report the first held arrow key as a button."""

    def poll(self) -> Optional[Action]:
        pressed = pygame.key.get_pressed()
        for key, action in ARROW_ACTIONS.items():
            if pressed[key]:
                return action
        return None


def draw_rows(screen: pygame.Surface, cache: DisplayCache, rows: RowRange) -> None:
    """Render the band ``rows`` of the display cache."""

    # Column 0 is drawn on the left, so shapes appear mirrored relative to
    # their bit patterns and rotation turns anticlockwise on screen.
    for r in range(rows.start, rows.stop):
        colours = cache.row(r)
        for c in range(WIDTH):
            color = CELL_COLORS[int(colours[c])]
            rect = pygame.Rect(c * CELL_SIZE, r * CELL_SIZE, CELL_SIZE, CELL_SIZE)
            pygame.draw.rect(screen, color, rect)
            pygame.draw.rect(screen, (50, 50, 50), rect, 1)


class GameRunner:
    """Own the window and pump the scheduler."""

    def __init__(self, save_path: str = "fallingblocks-save.json") -> None:
        self._running = False
        self.keys = EscapeDecoder()
        self.scores = HighScoreTable()
        self.scheduler = InputScheduler(
            clock=pygame.time.get_ticks,
            buttons=KeyboardButtons(),
            keys=self.keys,
            store=JsonSnapshotStore(save_path),
            scores=self.scores,
        )

    def _caption(self) -> str:
        session = self.scheduler.session
        score = session.score if session else 0
        phase = self.scheduler.phase
        prefix = {Phase.PAUSED: "Paused - ", Phase.GAME_OVER: "Game over - "}.get(phase, "")
        return f"Blocks - {prefix}Score: {score} High: {max(score, self.scores.high_score)}"

    async def run(self) -> None:
        pygame.init()
        screen = pygame.display.set_mode((WIDTH * CELL_SIZE, HEIGHT * CELL_SIZE))
        clock = pygame.time.Clock()
        self.scheduler.new_game()
        LOGGER.info("Game started")

        self._running = True
        while self._running:
            clock.tick(FPS)
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self._running = False
                elif event.type == pygame.KEYDOWN and event.unicode:
                    self.keys.feed(event.unicode)

            dirty = self.scheduler.tick()
            session = self.scheduler.session
            if dirty is not None and session is not None:
                draw_rows(screen, session.display, dirty)
            pygame.display.set_caption(self._caption())
            pygame.display.flip()

            # Yield to the host event loop to keep the UI responsive
            await asyncio.sleep(0)

        pygame.quit()
        LOGGER.info("Game stopped")


def main() -> None:
    asyncio.run(GameRunner().run())


if __name__ == "__main__":  # pragma: no cover - manual execution only
    main()
