from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import pygame

from .constants import *  # noqa: F401,F403
from .enums import ColorKey

if TYPE_CHECKING:
    from .game import Game


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    v = value.strip().lstrip("#")
    if len(v) != 6:
        return INK
    try:
        return int(v[0:2], 16), int(v[2:4], 16), int(v[4:6], 16)
    except ValueError:
        return INK


def color_rgb(color: ColorKey) -> tuple[int, int, int]:
    return hex_to_rgb(HEX_COLORS[color])


class TimeBar:
    def __init__(self, game: "Game") -> None:
        self.g = game

    def draw(self, ratio: float, accent: str) -> None:
        g = self.g
        ratio = max(0.0, min(1.0, ratio))
        bar_h = max(1, int(TIMER_BAR_HEIGHT * g.fx.pulse_scale("timer")))
        pygame.draw.rect(g.screen, TIMER_BAR_BG, (0, 0, g.w, bar_h))

        fill_w = int(g.w * ratio)
        if fill_w > 0:
            col = hex_to_rgb(accent)
            glow = pygame.Surface((fill_w, bar_h * 3), pygame.SRCALPHA)
            glow.fill((*col, 50))
            g.screen.blit(glow, (0, 0))
            pygame.draw.rect(g.screen, col, (0, 0, fill_w, bar_h))


class ColorBlock:
    def __init__(self, game: "Game") -> None:
        self.g = game

    def draw(self, color: ColorKey, rect: pygame.Rect, *, scale: float = 1.0) -> None:
        g = self.g
        size = max(1, int(rect.width * scale))
        r = pygame.Rect(0, 0, size, size)
        r.center = rect.center

        img = g.skins.block_image(g.equipped_skin, color)
        if img is not None:
            scaled = pygame.transform.smoothscale(img, (size, size))
            g.screen.blit(scaled, scaled.get_rect(center=r.center))
            return

        pygame.draw.rect(g.screen, color_rgb(color), r, border_radius=UI_RADIUS)
        pygame.draw.rect(g.screen, (255, 255, 255), r, width=BLOCK_BORDER_W, border_radius=UI_RADIUS)


__all__ = ["hex_to_rgb", "color_rgb", "TimeBar", "ColorBlock"]
