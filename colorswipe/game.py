from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

import pygame

from .backend import BackendError, ScoreClient, week_label
from .config import persist_windowed_size
from .constants import *
from .controls import SwipeTracker, direction_for_key
from .economy import Wallet
from .enums import ColorKey, GameMode, Timeframe
from .fx import EffectsManager
from .image_store import SkinStore
from .input_queue import InputQueue
from .models import LeaderboardEntry, Phase, Scene
from .modes import PROFILES, ModeRegistry
from .outbox import ScoreOutbox, ScoreService
from .profile import InvalidNameError, NameTakenError, ProfileManager
from .session import GameSession
from .storage import LocalStore
from .ui_components import ColorBlock, TimeBar, color_rgb

logger = logging.getLogger(__name__)

WINDOWED_FLAGS = pygame.RESIZABLE


class Game:

    # ---- Core lifecycle wiring ----

    def __init__(
        self,
        screen: pygame.Surface,
        *,
        store: Optional[LocalStore] = None,
        scores: Optional[ScoreService] = None,
        skins: Optional[SkinStore] = None,
        mode: GameMode = GameMode.NORMAL,
    ):
        self.screen = screen
        self.scene: Scene = Scene.MENU
        self.w, self.h = self.screen.get_size()
        self.clock = pygame.time.Clock()

        # --- Player state & backend ---
        self.store = store or LocalStore()
        self.wallet = Wallet(self.store)
        if scores is None:
            outbox = ScoreOutbox(self.store)
            pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scores")
            scores = ScoreService(ScoreClient.from_cfg(), outbox, executor=pool)
        self.scores = scores
        self.profile = ProfileManager(self.store, self.scores.client)

        self.session = GameSession(
            now_fn=self.now_ms,
            store=self.store,
            wallet=self.wallet,
            scores=self.scores,
            username_fn=lambda: self.profile.username,
            mode=mode,
        )
        self.mode_registry = ModeRegistry(list(PROFILES.values()), initial_key=mode)

        # --- Render helpers ---
        self.fx = EffectsManager(self.now)
        self.skins = skins or SkinStore()
        self.timebar = TimeBar(self)
        self.block = ColorBlock(self)
        self.swipe = SwipeTracker()
        self._rebuild_fonts()

        # --- Leaderboard ---
        self.lb_timeframe = Timeframe.WEEKLY
        self.lb_future: Optional[Future] = None
        self.lb_entries: Optional[List[LeaderboardEntry]] = None

        # --- Name entry ---
        self.name_buffer = ""
        self.name_error = ""
        self.name_future: Optional[Future] = None
        # keystroke that opened the entry also emits TEXTINPUT; accept text from the next frame on
        self.name_text_ready = False

        self.shop_message = ""

        self.scores.sync()

    @property
    def equipped_skin(self) -> Optional[str]:
        return self.wallet.equipped_skin

    def now(self) -> float:
        return time.time()

    def now_ms(self) -> float:
        return time.time() * 1000.0

    def _rebuild_fonts(self) -> None:
        scale = max(0.6, min(2.0, self.w / 540))

        def S(px: int) -> int:
            return max(8, int(px * scale))

        self.small = pygame.font.Font(None, S(FONT_SIZE_SMALL))
        self.mid = pygame.font.Font(None, S(FONT_SIZE_MID))
        self.big = pygame.font.Font(None, S(FONT_SIZE_BIG))
        self.label_font = pygame.font.Font(None, S(FONT_SIZE_LABEL))

    def handle_resize(self, width: int, height: int) -> None:
        self.screen = pygame.display.set_mode((width, height), WINDOWED_FLAGS)
        self.w, self.h = self.screen.get_size()
        self._rebuild_fonts()
        persist_windowed_size(self.w, self.h)

    def set_display_mode(self, fullscreen: bool) -> None:
        if fullscreen:
            self.screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        else:
            self.screen = pygame.display.set_mode(WINDOWED_DEFAULT_SIZE, WINDOWED_FLAGS)
        self.w, self.h = self.screen.get_size()
        self._rebuild_fonts()

    def shutdown(self) -> None:
        self.scores.shutdown()

    # ---- Scene changes ----

    def start_game(self, iq: InputQueue) -> None:
        iq.clear()
        self.swipe.cancel()
        self.session.start()
        self.scene = Scene.GAME
        self.fx.clear_transients()
        self.fx.trigger_pop()

    def switch_mode(self, delta: int) -> None:
        to_idx = self.mode_registry.next_index(delta)
        if to_idx is None:
            return
        self.mode_registry.set_index(to_idx)
        self.session.select_mode(self.mode_registry.current().key)

    def open_leaderboard(self) -> None:
        self.scene = Scene.LEADERBOARD
        self.lb_entries = None
        self.lb_future = self.scores.leaderboard(self.session.mode, self.lb_timeframe)

    def open_name_entry(self) -> None:
        self.scene = Scene.NAME
        current = self.profile.username
        self.name_buffer = "" if current == DEFAULT_USERNAME else current
        self.name_error = ""
        self.name_text_ready = False
        pygame.key.start_text_input()

    def _submit_name(self) -> None:
        if self.name_future is not None:
            return
        self.name_error = ""
        self.name_future = self.scores.dispatch(self.profile.rename, self.name_buffer)

    def _close_name_entry(self) -> None:
        pygame.key.stop_text_input()
        self.name_future = None
        self.scene = Scene.MENU

    def buy_revive_credit(self) -> None:
        if self.wallet.buy_revive_credit():
            self.shop_message = "+1 REVIVE"
        else:
            self.shop_message = f"NEED {REVIVE_CREDIT_PRICE} GEMS"

    def cycle_skin(self) -> None:
        options: List[Optional[str]] = [None] + self.wallet.owned_skins
        current = self.equipped_skin
        idx = options.index(current) if current in options else 0
        slug = options[(idx + 1) % len(options)]
        self.wallet.equip_skin(slug)
        self.shop_message = f"SKIN {(slug or 'classic').upper()}"

    def unlock_skin(self) -> None:
        locked = [s for s in self.skins.available() if not self.wallet.owns_skin(s)]
        if not locked:
            self.shop_message = "NO SKINS TO UNLOCK"
            return
        slug = locked[0]
        if not self.wallet.buy_skin(slug, SKIN_PRICE):
            self.shop_message = f"NEED {SKIN_PRICE} GEMS"
            return
        self.wallet.equip_skin(slug)
        self.shop_message = f"UNLOCKED {slug.upper()}"

    # ---- Events ----

    def handle_event(self, event: pygame.event.Event, iq: InputQueue):
        if event.type == pygame.VIDEORESIZE:
            self.handle_resize(event.w, event.h)
            return

        if event.type == pygame.TEXTINPUT and self.scene is Scene.NAME:
            if self.name_text_ready and len(self.name_buffer) < USERNAME_MAX_LEN:
                self.name_buffer += event.text
            return

        if event.type == pygame.KEYDOWN:
            self._handle_key(event.key, iq)
            return

        # swipe gestures: mouse drags and touch; SDL also mirrors touches as mouse events
        if event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP) and getattr(event, "touch", False):
            return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.swipe.begin(*event.pos)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self._release(*event.pos, iq=iq)
        elif event.type == pygame.FINGERDOWN:
            self.swipe.begin(event.x * self.w, event.y * self.h)
        elif event.type == pygame.FINGERUP:
            self._release(event.x * self.w, event.y * self.h, iq=iq)

    def _release(self, x: float, y: float, *, iq: InputQueue) -> None:
        was_down = self.swipe.active
        direction = self.swipe.end(x, y)
        if direction is not None:
            if self.scene is Scene.GAME and self.session.is_playing:
                iq.push(direction)
        elif was_down:
            self._handle_tap(iq)

    def _handle_tap(self, iq: InputQueue) -> None:
        """A press too short to be a swipe: the touch stand-in for ENTER."""
        if self.scene is Scene.GAME and self.session.phase is Phase.REVIVE_PROMPT:
            self.session.accept_revive()
        elif self.scene is Scene.MENU:
            self.start_game(iq)
        elif self.scene in (Scene.LEADERBOARD, Scene.INSTRUCTIONS):
            self.scene = Scene.MENU

    def _handle_key(self, key: int, iq: InputQueue) -> None:
        phase = self.session.phase

        if self.scene is Scene.NAME:
            if key == pygame.K_ESCAPE:
                self._close_name_entry()
            elif key == pygame.K_RETURN:
                self._submit_name()
            elif key == pygame.K_BACKSPACE:
                self.name_buffer = self.name_buffer[:-1]
            return

        if self.scene in (Scene.LEADERBOARD, Scene.INSTRUCTIONS):
            if self.scene is Scene.LEADERBOARD and key == pygame.K_t:
                self.lb_timeframe = Timeframe.ALL_TIME if self.lb_timeframe is Timeframe.WEEKLY else Timeframe.WEEKLY
                self.open_leaderboard()
                return
            self.scene = Scene.MENU
            return

        if self.scene is Scene.GAME:
            if phase is Phase.REVIVE_PROMPT:
                if key in (pygame.K_y, pygame.K_RETURN):
                    self.session.accept_revive()
                elif key in (pygame.K_n, pygame.K_ESCAPE):
                    self.session.decline_revive()
                return
            if key == pygame.K_ESCAPE:
                pygame.event.post(pygame.event.Event(pygame.QUIT))
                return
            direction = direction_for_key(key)
            if direction is not None and self.session.is_playing:
                iq.push(direction)
            return

        # menu / game over overlay
        if key == pygame.K_ESCAPE:
            pygame.event.post(pygame.event.Event(pygame.QUIT))
            return
        if key in (pygame.K_RETURN, pygame.K_SPACE):
            self.start_game(iq)
        elif key in (pygame.K_LEFT, pygame.K_a):
            self.switch_mode(-1)
        elif key in (pygame.K_RIGHT, pygame.K_d):
            self.switch_mode(+1)
        elif key == pygame.K_l:
            self.open_leaderboard()
        elif key == pygame.K_h:
            self.scene = Scene.INSTRUCTIONS
        elif key == pygame.K_n:
            self.open_name_entry()
        elif key == pygame.K_b:
            self.buy_revive_credit()
        elif key == pygame.K_k:
            self.cycle_skin()
        elif key == pygame.K_u:
            self.unlock_skin()

    # ---- Update ----

    def update(self, iq: InputQueue) -> None:
        self.scores.maybe_sync(self.now())
        if self.scene is Scene.NAME:
            self.name_text_ready = True

        if self.scene is Scene.NAME and self.name_future is not None and self.name_future.done():
            fut, self.name_future = self.name_future, None
            try:
                fut.result()
            except (InvalidNameError, NameTakenError) as e:
                self.name_error = str(e) if isinstance(e, InvalidNameError) else "Name taken. Try another."
            except BackendError as e:
                logger.warning("Rename failed: %s", e)
                self.name_error = "Could not save name. Try again."
            else:
                self._close_name_entry()

        if self.scene is Scene.LEADERBOARD and self.lb_future is not None and self.lb_future.done():
            self.lb_entries = self.lb_future.result()
            self.lb_future = None

        if self.scene is not Scene.GAME:
            _ = iq.pop_all()
            return

        before = self.session.phase
        self.session.tick()

        for d in iq.pop_all():
            score, budget = self.session.score, self.session.budget_ms
            result = self.session.handle_input(d)
            if result is None:
                continue
            if not result.matched:
                self.fx.trigger_shake()
            elif self.session.score > score:
                self.fx.trigger_pulse("score")
                self.fx.trigger_pop()
                if self.session.budget_ms < budget:
                    self.fx.trigger_pulse("timer")

        phase = self.session.phase
        if phase is Phase.PLAYING and before is Phase.REVIVING:
            self.fx.trigger_pop()
        if phase in (Phase.REVIVE_PROMPT, Phase.GAME_OVER) and before is Phase.PLAYING and self.session.reason == REASON_TIME_UP:
            self.fx.trigger_shake()
        if phase is Phase.GAME_OVER:
            self.scene = Scene.MENU

    # ---- Rendering ----

    def draw_text(self, text: str, font: pygame.font.Font, color=INK, *, center: Optional[tuple[int, int]] = None,
                  topleft: Optional[tuple[int, int]] = None, topright: Optional[tuple[int, int]] = None) -> pygame.Rect:
        surf = font.render(text, True, color)
        if center is not None:
            rect = surf.get_rect(center=center)
        elif topright is not None:
            rect = surf.get_rect(topright=topright)
        else:
            rect = surf.get_rect(topleft=topleft or (0, 0))
        self.screen.blit(surf, rect)
        return rect

    def _dim(self, alpha: int = 200) -> None:
        veil = pygame.Surface((self.w, self.h), pygame.SRCALPHA)
        veil.fill((0, 0, 0, alpha))
        self.screen.blit(veil, (0, 0))

    def _draw_hud(self) -> None:
        pad = int(self.w * 0.06)
        top = int(self.h * 0.04)
        self.draw_text("SCORE", self.small, MUTED, topleft=(pad, top))
        scale = self.fx.pulse_scale("score")
        font = self.big if scale <= 1.0 else pygame.font.Font(None, int(self.big.get_height() * scale))
        self.draw_text(str(self.session.score), font, INK, topleft=(pad, top + 18))
        self.draw_text("BEST", self.small, MUTED, topright=(self.w - pad, top))
        self.draw_text(str(self.session.high_score), self.big, HIGHLIGHT, topright=(self.w - pad, top + 18))

    def _draw_challenge(self) -> None:
        cur = self.session.current
        if cur is None:
            return
        ch = cur.challenge
        ox, _ = self.fx.shake_offset()
        cx, cy = self.w // 2 + ox, int(self.h * 0.52)
        pop = self.fx.pop_scale()

        if self.session.mode is GameMode.INSANE and ch.sequence:
            side = int(self.w * INSANE_BLOCK_SIZE_FACTOR)
            total = side * len(ch.sequence) + INSANE_BLOCK_GAP * (len(ch.sequence) - 1)
            x = cx - total // 2
            done = set(self.session.requirements.completed_ids)
            for item in ch.sequence:
                rect = pygame.Rect(x, cy - side // 2, side, side)
                if item.id not in done:
                    self.block.draw(item.color, rect, scale=pop)
                x += side + INSANE_BLOCK_GAP
            return

        side = int(self.w * BLOCK_SIZE_FACTOR)
        rect = pygame.Rect(0, 0, side, side)
        rect.center = (cx, cy)
        ink = color_rgb(ch.label_color) if ch.label_color is not None else INK
        self.draw_text(ch.text_color.value, self.label_font, ink, center=(cx, rect.top - LABEL_GAP))
        self.block.draw(ch.block_color, rect, scale=pop)

    def _draw_gameplay(self) -> None:
        s = self.session
        accent = s.current.accent_color if s.current else NEUTRAL_ACCENT
        self.timebar.draw(s.timer.ratio(), accent)
        self._draw_hud()
        self._draw_challenge()
        self.draw_text("Arrow keys / WASD or swipe", self.small, MUTED, center=(self.w // 2, self.h - 30))

        if s.phase is Phase.REVIVE_PROMPT:
            self._dim(170)
            cy = self.h // 2
            self.draw_text(s.reason, self.mid, INK, center=(self.w // 2, cy - 90))
            self.draw_text("CONTINUE?", self.big, HIGHLIGHT, center=(self.w // 2, cy - 30))
            secs = int(s.prompt_remaining_ms() // 1000) + 1
            self.draw_text(f"{secs}", self.big, INK, center=(self.w // 2, cy + 40))
            self.draw_text(
                f"Cost {s.next_revive_cost} revive  (you have {self.wallet.revive_credits})",
                self.small, MUTED, center=(self.w // 2, cy + 100),
            )
            self.draw_text("Y / ENTER / tap revive    N / ESC give up", self.small, INK, center=(self.w // 2, cy + 130))
        elif s.phase is Phase.REVIVING:
            self._dim(120)
            self.draw_text(s.countdown.label(self.now_ms()), self.big, HIGHLIGHT, center=(self.w // 2, self.h // 2))

    def _draw_menu(self) -> None:
        s = self.session
        self._dim(200)
        cx = self.w // 2
        y = int(self.h * 0.14)
        self.draw_text("COLOR", self.big, (31, 212, 165), center=(cx, y))
        self.draw_text("SWIPE", self.big, (42, 139, 255), center=(cx, y + 56))
        y += 130

        if s.is_game_over and s.summary is not None:
            self.draw_text(s.summary.reason, self.mid, INK, center=(cx, y))
            score_txt = f"{s.summary.score}" + ("   NEW HIGH!" if s.summary.new_high_score else "")
            self.draw_text(score_txt, self.big, (255, 215, 0) if s.summary.new_high_score else INK, center=(cx, y + 50))
            if s.summary.reward:
                self.draw_text(f"+{s.summary.reward} gems", self.small, HIGHLIGHT, center=(cx, y + 95))
            y += 130

        chip_w = int(self.w * 0.26)
        x0 = cx - int(chip_w * 1.5)
        for i, prof in enumerate(self.mode_registry.modes):
            rect = pygame.Rect(x0 + i * chip_w + 4, y, chip_w - 8, 44)
            selected = prof.key is s.mode
            tint = MODE_TINT[prof.key]
            pygame.draw.rect(self.screen, (23, 26, 31), rect, border_radius=12)
            pygame.draw.rect(self.screen, tint if selected else (60, 64, 72), rect, width=2, border_radius=12)
            self.draw_text(prof.label, self.small, tint if selected else MUTED, center=rect.center)
        y += 70
        self.draw_text(s.profile.tagline, self.small, MUTED, center=(cx, y))
        y += 50
        self.draw_text("ENTER  " + ("TRY AGAIN" if s.is_game_over else "START GAME"), self.mid, INK, center=(cx, y))
        y += 50
        self.draw_text(f"High score {s.high_score}", self.small, INK, center=(cx, y))
        y += 28
        self.draw_text(
            f"Gems {self.wallet.gems}   Revives {self.wallet.revive_credits}",
            self.small, INK, center=(cx, y),
        )
        if self.shop_message:
            y += 24
            self.draw_text(self.shop_message, self.small, HIGHLIGHT, center=(cx, y))
        y += 40
        self.draw_text(f"Player {self.profile.username}", self.small, MUTED, center=(cx, y))
        y += 24
        self.draw_text(f"Skin {(self.equipped_skin or 'classic').upper()}", self.small, MUTED, center=(cx, y))
        pending = len(self.scores.outbox)
        if pending:
            y += 24
            self.draw_text(f"{pending} score(s) waiting to sync", self.small, MUTED, center=(cx, y))
        self.draw_text(
            "<-/-> mode   L ranks   H help   N name",
            self.small, MUTED, center=(cx, self.h - 54),
        )
        self.draw_text(
            f"B buy revive   K switch skin   U unlock skin ({SKIN_PRICE})   tap to start",
            self.small, MUTED, center=(cx, self.h - 30),
        )

    def _draw_leaderboard(self) -> None:
        cx = self.w // 2
        y = int(self.h * 0.1)
        title = week_label() if self.lb_timeframe is Timeframe.WEEKLY else "All time"
        self.draw_text(title, self.big, INK, center=(cx, y))
        self.draw_text(f"{self.session.profile.label} mode", self.small, MUTED, center=(cx, y + 44))
        y += 100
        if self.lb_future is not None:
            self.draw_text("Loading...", self.mid, MUTED, center=(cx, y))
        elif self.lb_entries is None:
            self.draw_text("OFFLINE", self.mid, MODE_TINT[GameMode.HARD], center=(cx, y))
        elif not self.lb_entries:
            self.draw_text("No scores yet", self.mid, MUTED, center=(cx, y))
        else:
            me = self.profile.username
            for rank, entry in enumerate(self.lb_entries, start=1):
                col = HIGHLIGHT if entry.username == me else INK
                self.draw_text(f"{rank:>2}. {entry.username}", self.mid, col, topleft=(int(self.w * 0.15), y))
                self.draw_text(str(entry.score), self.mid, col, topright=(int(self.w * 0.85), y))
                y += 36
        self.draw_text(
            f"Your best {self.session.high_score}    T timeframe    any key back",
            self.small, MUTED, center=(cx, self.h - 30),
        )

    def _draw_instructions(self) -> None:
        cx = self.w // 2
        y = int(self.h * 0.16)
        self.draw_text("How to Play", self.big, HIGHLIGHT, center=(cx, y))
        y += 70
        self.draw_text("Swipe the way the BLOCK COLOR says.", self.small, INK, center=(cx, y))
        self.draw_text("Ignore the text!", self.small, INK, center=(cx, y + 24))
        y += 80
        for color in (ColorKey.RED, ColorKey.GREEN, ColorKey.BLUE, ColorKey.YELLOW):
            pygame.draw.circle(self.screen, color_rgb(color), (cx - 70, y), 12)
            self.draw_text(COLOR_TO_DIRECTION[color].value, self.mid, INK, topleft=(cx - 40, y - 12))
            y += 48
        y += 20
        self.draw_text("INSANE: two blocks, clear both in any order.", self.small, MUTED, center=(cx, y))
        self.draw_text("any key to go back", self.small, MUTED, center=(cx, self.h - 30))

    def _draw_name_entry(self) -> None:
        cx, cy = self.w // 2, self.h // 2
        self.draw_text("Player name", self.mid, INK, center=(cx, cy - 80))
        box = pygame.Rect(0, 0, int(self.w * 0.7), 56)
        box.center = (cx, cy)
        pygame.draw.rect(self.screen, (23, 26, 31), box, border_radius=12)
        pygame.draw.rect(self.screen, HIGHLIGHT, box, width=2, border_radius=12)
        caret = "_" if int(self.now() * 2) % 2 == 0 else " "
        self.draw_text(self.name_buffer + caret, self.mid, INK, center=box.center)
        if self.name_future is not None:
            self.draw_text("Saving...", self.small, MUTED, center=(cx, cy + 60))
        elif self.name_error:
            self.draw_text(self.name_error, self.small, MODE_TINT[GameMode.HARD], center=(cx, cy + 60))
        self.draw_text(f"max {USERNAME_MAX_LEN} chars   ENTER save   ESC cancel", self.small, MUTED, center=(cx, self.h - 30))

    def draw(self) -> None:
        self.screen.fill(BG)
        if self.scene is Scene.GAME:
            self._draw_gameplay()
        elif self.scene is Scene.MENU:
            if self.session.current is not None:
                self._draw_gameplay()
            else:
                self._draw_hud()
            self._draw_menu()
        elif self.scene is Scene.LEADERBOARD:
            self._draw_leaderboard()
        elif self.scene is Scene.INSTRUCTIONS:
            self._draw_instructions()
        elif self.scene is Scene.NAME:
            self._draw_name_entry()
        pygame.display.flip()


__all__ = ["Game"]
