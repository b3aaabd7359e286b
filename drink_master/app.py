"""Pygame shell for Drink Master.

Menu -> pour game -> results. The shell only forwards pour input and draws
engine snapshots; deterministic timing/scoring/RNG/state lives in the core
modules (engine, physics, scoring).
"""

from __future__ import annotations

import logging
import os
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .clock import RealClock
from .config import GameConfig
from .engine import PourGameEngine, build_pour_game
from .pour_core import DrinkType, FillStatus, PourSnapshot, SessionPhase, clamp
from .results import format_result_lines, session_result_from_engine

logger = logging.getLogger(__name__)

WINDOW_SIZE = (540, 720)
TARGET_FPS = 60

DURATION_ENV = "DRINK_MASTER_DURATION_S"
SEED_ENV = "DRINK_MASTER_SEED"
NICKNAME_ENV = "DRINK_MASTER_NICKNAME"

_BG = (220, 38, 38)
_PANEL = (153, 27, 27)
_TEXT = (255, 255, 255)
_TEXT_MUTED = (254, 202, 202)
_ACCENT = (253, 224, 71)

_LIQUID = {DrinkType.SODA: (20, 184, 166), DrinkType.COFFEE: (69, 26, 3)}
_FOAM = {DrinkType.SODA: (255, 255, 255), DrinkType.COFFEE: (253, 230, 138)}


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the root menu; it handles its own quit.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._title_font = pygame.font.Font(None, 64)
        self._item_font = pygame.font.Font(None, 36)
        self._hint_font = pygame.font.Font(None, 24)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            if self._items:
                self._items[self._selected].action()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            if self._is_root:
                self._app.quit()
            else:
                self._app.pop()

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def render(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        surface.fill(_BG)

        title = self._title_font.render(self._title, True, _ACCENT)
        surface.blit(title, title.get_rect(center=(w // 2, h // 5)))

        tips = (
            "Coffee: easy. Let go and it stops.",
            "Soda: hard! Foam keeps rising after you stop.",
        )
        y = h // 5 + 60
        for line in tips:
            text = self._hint_font.render(line, True, _TEXT_MUTED)
            surface.blit(text, text.get_rect(center=(w // 2, y)))
            y += 28

        y = h // 2
        for idx, item in enumerate(self._items):
            row = pygame.Rect(w // 2 - 140, y, 280, 48)
            selected = idx == self._selected
            pygame.draw.rect(surface, _TEXT if selected else _PANEL, row, border_radius=24)
            color = _BG if selected else _TEXT
            label = self._item_font.render(item.label, True, color)
            surface.blit(label, label.get_rect(center=row.center))
            y += 64

        foot = self._hint_font.render("Enter: Select  |  Esc: Back", True, _TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, h - 16)))


class PourGameScreen:
    """Hold Space or the mouse button to pour; release to stop."""

    def __init__(
        self,
        app: App,
        *,
        engine_factory: Callable[[], PourGameEngine],
        nickname: str | None = None,
    ) -> None:
        self._app = app
        self._engine = engine_factory()
        self._nickname = nickname
        self._engine.start_session(nickname)

        self._big_font = pygame.font.Font(None, 56)
        self._font = pygame.font.Font(None, 34)
        self._small_font = pygame.font.Font(None, 24)

    def handle_event(self, event: pygame.event.Event) -> None:
        phase = self._engine.phase

        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self._engine.return_to_menu()
                self._app.pop()
                return
            if phase is SessionPhase.RESULT:
                if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                    self._engine.start_session(self._nickname)
                return
            if event.key == pygame.K_SPACE:
                self._engine.pour_start()
            return

        if event.type == pygame.KEYUP and event.key == pygame.K_SPACE:
            self._engine.pour_stop()
            return

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._engine.pour_start()
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self._engine.pour_stop()
        elif event.type in (pygame.WINDOWLEAVE, pygame.WINDOWFOCUSLOST):
            # Losing the pointer releases the tap, same as letting go.
            self._engine.pour_stop()

    def render(self, surface: pygame.Surface) -> None:
        self._engine.update()
        snap = self._engine.snapshot()

        surface.fill(_BG)
        if snap.phase is SessionPhase.RESULT:
            self._render_results(surface)
            return

        self._render_hud(surface, snap)
        self._render_glass(surface, snap)

    def _render_hud(self, surface: pygame.Surface, snap: PourSnapshot) -> None:
        w, _ = surface.get_size()
        score = self._font.render(f"Score {snap.score:.0f}", True, _ACCENT)
        surface.blit(score, (24, 20))

        timer_color = _ACCENT if snap.time_remaining_s < 10 else _TEXT
        timer = self._font.render(f"{snap.time_remaining_s:02d}s", True, timer_color)
        surface.blit(timer, timer.get_rect(topright=(w - 24, 20)))

        drink = self._small_font.render(
            f"{snap.drink_type.value.upper()}  target {snap.target_line:.0f}% +/- {snap.tolerance:.0f}",
            True,
            _TEXT_MUTED,
        )
        surface.blit(drink, drink.get_rect(midtop=(w // 2, 64)))

    def _render_glass(self, surface: pygame.Surface, snap: PourSnapshot) -> None:
        w, h = surface.get_size()
        glass = pygame.Rect(0, 0, 180, 300)
        glass.center = (w // 2, h // 2 + 20)
        inner_h = glass.h - 6

        def level_y(pct: float) -> int:
            return glass.bottom - 3 - int(inner_h * clamp(pct, 0.0, 100.0) / 100.0)

        pygame.draw.rect(surface, _PANEL, glass)

        zone_top = level_y(snap.target_line + snap.tolerance)
        zone_bottom = level_y(snap.target_line - snap.tolerance)
        pygame.draw.rect(surface, (34, 197, 94), pygame.Rect(glass.x, zone_top, glass.w, zone_bottom - zone_top), 2)

        liquid_top = level_y(snap.liquid_level)
        foam_top = level_y(snap.total_level)
        pygame.draw.rect(
            surface,
            _LIQUID[snap.drink_type],
            pygame.Rect(glass.x + 3, liquid_top, glass.w - 6, glass.bottom - 3 - liquid_top),
        )
        if foam_top < liquid_top:
            pygame.draw.rect(
                surface,
                _FOAM[snap.drink_type],
                pygame.Rect(glass.x + 3, foam_top, glass.w - 6, liquid_top - foam_top),
            )

        if snap.status is FillStatus.POURING:
            stream = pygame.Rect(0, glass.y - 60, 10, foam_top - glass.y + 60)
            stream.centerx = glass.centerx
            pygame.draw.rect(surface, _LIQUID[snap.drink_type], stream)

        border = (239, 68, 68) if snap.status is FillStatus.SPILLED else _TEXT
        pygame.draw.lines(surface, border, False, [glass.topleft, glass.bottomleft, glass.bottomright, glass.topright], 4)

        if snap.feedback:
            bubble = self._big_font.render(snap.feedback, True, _BG)
            box = bubble.get_rect(midbottom=(glass.centerx, glass.y - 70)).inflate(28, 14)
            pygame.draw.rect(surface, _TEXT, box, border_radius=18)
            surface.blit(bubble, bubble.get_rect(center=box.center))

        hint = "Hold Space / mouse to pour, release to stop"
        if snap.controls_locked:
            hint = "..."
        text = self._small_font.render(hint, True, _TEXT_MUTED)
        surface.blit(text, text.get_rect(midbottom=(w // 2, h - 20)))

    def _render_results(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        result = session_result_from_engine(self._engine)
        lines = format_result_lines(result)

        title = self._big_font.render(lines[0], True, _ACCENT)
        surface.blit(title, title.get_rect(center=(w // 2, h // 5)))

        y = h // 5 + 60
        for line in lines[1:]:
            if line:
                text = self._font.render(line, True, _TEXT)
                surface.blit(text, (w // 2 - 150, y))
            y += 38

        foot = self._small_font.render("Enter: Play again  |  Esc: Menu", True, _TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, h - 20)))


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer)", name, raw)
        return None


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(*, max_frames: int | None = None, event_injector: Callable[[int], None] | None = None) -> int:
    pygame.init()

    pygame.display.set_caption("Drink Master")
    surface = pygame.display.set_mode(WINDOW_SIZE)

    clock = pygame.time.Clock()

    app = App(surface=surface)

    real_clock = RealClock()
    duration_s = _env_int(DURATION_ENV)
    config = GameConfig(session_duration_s=duration_s) if duration_s and duration_s > 0 else GameConfig()
    fixed_seed = _env_int(SEED_ENV)
    nickname = os.environ.get(NICKNAME_ENV, "").strip() or None

    def open_game() -> None:
        seed = fixed_seed if fixed_seed is not None else _new_seed()
        app.push(
            PourGameScreen(
                app,
                engine_factory=lambda: build_pour_game(clock=real_clock, seed=seed, config=config),
                nickname=nickname,
            )
        )

    app.push(
        MenuScreen(
            app,
            "Drink Master",
            [
                MenuItem("Start", open_game),
                MenuItem("Quit", app.quit),
            ],
            is_root=True,
        )
    )

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
