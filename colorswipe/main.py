from __future__ import annotations

import logging
import os
import sys

import pygame

from .config import CFG
from .constants import FPS
from .enums import GameMode
from .game import Game
from .input_queue import InputQueue
from .modes import apply_modes_from_cfg


def configure_logging() -> None:
    level = os.environ.get("COLORSWIPE_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


# ============================== MAIN LOOP ============================== #
def main():
    configure_logging()
    apply_modes_from_cfg()
    pygame.init()
    pygame.key.set_repeat()
    fullscreen = bool(CFG.get("display", {}).get("fullscreen", False))
    screen = pygame.display.set_mode((1, 1))  # tiny placeholder; real size set next
    game = Game(screen, mode=GameMode.NORMAL)
    game.set_display_mode(fullscreen)
    pygame.display.set_caption("Color Swipe")
    iq = InputQueue()

    try:
        while True:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return
                game.handle_event(event, iq)
            game.update(iq)
            game.draw()
            game.clock.tick(FPS)
    finally:
        game.shutdown()
        pygame.quit()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pygame.quit(); sys.exit(0)
