"""
Interactive Drop Viewer
=======================

Watch and play the parachute drop in a pygame window. The window is a
Presenter for the engine: it draws whatever the engine displays and plays
the sound cues whose files exist.

Controls:
    - Space/Click: Drop a dropper with the current sample name
    - N: Next sample name (several droppers at once)
    - C: Cut the current sample dropper's chute
    - A: Abdicate the current sample dropper from the target
    - ESC: Quit

Usage:
    python -m tools.play_drop [--seed SEED] [--scale SCALE] [--fps FPS]
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from typing import Callable, Dict, Optional, Set, Tuple

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from drop_game.drop_core.config_loader import load_config, GameConfig
from drop_game.drop_core.engine import DropEngine
from drop_game.drop_core.entity import Entity, EntityKind
from drop_game.drop_core.presenter import SoundCue, VisualState
from drop_game.logging_config import configure_logging


class PygamePresenter:
    """
    Presenter that mirrors engine entities into a pygame window.

    Visual states are kept per entity and interpreted at draw time; fades
    run on wall-clock time and report back through on_fade_complete.
    """

    def __init__(self, config: GameConfig, scale: float = 0.5):
        self._config = config
        self._scale = scale

        self._entities: Dict[int, Entity] = {}
        self._visible: Set[int] = set()
        self._positions: Dict[int, Tuple[float, float]] = {}
        self._frames: Dict[int, int] = {}
        self._states: Dict[int, Set[VisualState]] = {}
        self._custom_emotes: Dict[int, Optional[str]] = {}
        self._reap_started: Dict[int, float] = {}

        self.on_fade_complete: Optional[Callable[[str], None]] = None

        # Colors
        self._sky_top = (120, 180, 235)
        self._sky_bottom = (225, 240, 250)
        self._target_color = (200, 60, 60)
        self._target_ring = (250, 245, 240)
        self._chute_color = (245, 170, 60)
        self._text_dark = (40, 40, 60)
        self._loser_color = (150, 150, 150)

        pygame.font.init()
        self._font = pygame.font.Font(None, 24)
        self._font_small = pygame.font.Font(None, 20)

        self._sounds: Dict[SoundCue, "pygame.mixer.Sound"] = {}
        self._load_sounds()

    def _load_sounds(self) -> None:
        """Load the configured cue files that exist on disk."""
        try:
            pygame.mixer.init()
        except pygame.error:
            # No audio device; run silent
            return

        for cue in SoundCue:
            path = self._config.get_sound(cue.value).file
            if os.path.exists(path):
                self._sounds[cue] = pygame.mixer.Sound(path)

    def _scaled(self, value: float) -> int:
        return int(value * self._scale)

    # Presenter interface

    def display(self, entity: Entity) -> None:
        self._entities[id(entity)] = entity
        self._visible.add(id(entity))

    def hide(self, entity: Entity) -> None:
        self._visible.discard(id(entity))
        self._reap_started.pop(id(entity), None)

    def reposition(self, entity: Entity, x: float, y: float) -> None:
        self._positions[id(entity)] = (x, y)

    def set_frame(self, entity: Entity, frame: int) -> None:
        self._frames[id(entity)] = frame

    def set_custom_emote(self, entity: Entity, emote_id: Optional[str]) -> None:
        self._custom_emotes[id(entity)] = emote_id

    def play_sound(self, cue: SoundCue, volume: Optional[float] = None,
                   restart: bool = False, rate: float = 1.0) -> None:
        sound = self._sounds.get(cue)
        if sound is None:
            return
        if restart:
            sound.stop()
        if volume is not None:
            sound.set_volume(volume)
        sound.play()

    def apply_visual_state(self, entity: Entity, state: VisualState, enabled: bool = True) -> None:
        states = self._states.setdefault(id(entity), set())
        if enabled:
            states.add(state)
            if state is VisualState.REAP:
                self._reap_started[id(entity)] = time.time()
        else:
            states.discard(state)
            if state is VisualState.REAP:
                self._reap_started.pop(id(entity), None)

    def _has(self, entity: Entity, state: VisualState) -> bool:
        return state in self._states.get(id(entity), set())

    # Drawing

    def render(self, screen: "pygame.Surface", engine: DropEngine) -> None:
        self._draw_background(screen)

        target = engine.target
        if id(target) in self._visible and not self._has(target, VisualState.GHOST):
            self._draw_target(screen, target)

        for dropper in engine.droppers:
            if id(dropper) in self._visible:
                self._draw_dropper(screen, dropper)

        self._draw_hud(screen, engine)
        self._check_fades()

    def _draw_background(self, screen: "pygame.Surface") -> None:
        width, height = screen.get_size()
        for y in range(0, height, 4):
            t = y / height
            color = tuple(int(a * (1 - t) + b * t) for a, b in zip(self._sky_top, self._sky_bottom))
            pygame.draw.rect(screen, color, (0, y, width, 4))

    def _draw_target(self, screen: "pygame.Surface", target: Entity) -> None:
        x, y = self._positions.get(id(target), (target.x, target.y))
        rect = pygame.Rect(self._scaled(x), self._scaled(y),
                           self._scaled(target.width), self._scaled(target.height))
        pygame.draw.ellipse(screen, self._target_color, rect)
        inner = rect.inflate(-rect.width // 3, -rect.height // 3)
        pygame.draw.ellipse(screen, self._target_ring, inner)
        pygame.draw.ellipse(screen, self._target_color, inner.inflate(-inner.width // 2, -inner.height // 2))

    def _draw_dropper(self, screen: "pygame.Surface", dropper) -> None:
        parachute = dropper.parachute
        emote = dropper.emote
        loser = self._has(dropper, VisualState.LOSER)

        if not self._has(parachute, VisualState.GHOST):
            px, py = self._positions.get(id(parachute), (dropper.x, dropper.y))
            chute = pygame.Rect(self._scaled(px), self._scaled(py),
                                self._scaled(parachute.width), self._scaled(parachute.height * 0.8))
            pygame.draw.ellipse(screen, self._chute_color, chute)
            pygame.draw.rect(screen, self._sky_bottom,
                             (chute.x, chute.centery, chute.width, chute.height // 2 + 1))

        ex, ey = self._positions.get(id(emote), (dropper.hitbox_x, dropper.hitbox_y))
        if self._custom_emotes.get(id(emote)) is not None:
            color = (120, 80, 200)
        else:
            hue = (self._frames.get(id(emote), 0) * 37) % 360
            color = pygame.Color(0)
            color.hsva = (hue, 60, 90, 100)
        if loser:
            color = self._loser_color

        box = pygame.Rect(self._scaled(ex), self._scaled(ey),
                          self._scaled(emote.width), self._scaled(emote.height))
        surface = pygame.Surface(box.size, pygame.SRCALPHA)
        pygame.draw.rect(surface, color, surface.get_rect(), border_radius=6)
        surface.set_alpha(self._fade_alpha(dropper))
        screen.blit(surface, box.topleft)

        name = self._font_small.render(dropper.name, True, self._loser_color if loser else self._text_dark)
        screen.blit(name, (box.centerx - name.get_width() // 2, box.bottom + 2))

        if self._has(dropper, VisualState.SCORE_VISIBLE):
            score = self._font.render(f"{dropper.drop_score:.3f}", True, self._text_dark)
            screen.blit(score, (box.centerx - score.get_width() // 2, box.top - score.get_height() - 2))

    def _fade_alpha(self, dropper) -> int:
        started = self._reap_started.get(id(dropper))
        if started is None:
            return 255
        fade_s = self._config.dropper.fade_time_ms / 1000.0
        if fade_s <= 0:
            return 0
        return max(0, int(255 * (1 - (time.time() - started) / fade_s)))

    def _check_fades(self) -> None:
        fade_s = self._config.dropper.fade_time_ms / 1000.0
        now = time.time()
        for entity_id, started in list(self._reap_started.items()):
            if now - started >= fade_s:
                del self._reap_started[entity_id]
                entity = self._entities.get(entity_id)
                if entity is not None and entity.kind is EntityKind.DROPPER and self.on_fade_complete:
                    self.on_fade_complete(entity.name)

    def _draw_hud(self, screen: "pygame.Surface", engine: DropEngine) -> None:
        snapshot = engine.snapshot()
        lines = [
            f"Running: {snapshot.running}   FPS: {snapshot.fps}   Droppers: {snapshot.dropper_count}",
            f"Next name: {engine.default_name()}",
        ]
        if snapshot.winner_name is not None:
            lines.append(f"Winner: {snapshot.winner_name} ({snapshot.winner_score:.3f})")
        else:
            lines.append("Winner: none")
        lines.append("Space drop  N next name  C cut  A abdicate  ESC quit")

        for i, line in enumerate(lines):
            text = self._font.render(line, True, self._text_dark)
            screen.blit(text, (10, 10 + i * 22))


class DropViewer:
    """Pygame loop driving a DropEngine with keyboard commands."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        scale: float = 0.5,
        target_fps: int = 60
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame required. Install: pip install pygame")

        if config is None:
            config = load_config()

        self._config = config
        self._target_fps = target_fps

        pygame.init()
        window = (int(config.viewport.width * scale), int(config.viewport.height * scale))
        self._screen = pygame.display.set_mode(window)
        pygame.display.set_caption("Parachute Drop")
        self._clock = pygame.time.Clock()

        self._presenter = PygamePresenter(config, scale)
        self._engine = DropEngine(config=config, seed=seed, presenter=self._presenter)
        self._presenter.on_fade_complete = self._engine.fade_complete
        self._engine.add_result_listener(lambda result: print(result))

        self._running = True

    def run(self) -> int:
        """Run the viewer loop. Returns the number of drops made."""
        print("=== Parachute Drop ===")
        print("Space/click to drop, N for next name, C to cut, A to abdicate, ESC to quit")
        print()

        while self._running:
            self._handle_events()
            self._engine.tick()
            self._presenter.render(self._screen, self._engine)
            pygame.display.flip()
            self._clock.tick(self._target_fps)

        pygame.quit()
        return self._engine.results.drops

    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key == pygame.K_SPACE:
                    self._engine.drop()
                elif event.key == pygame.K_n:
                    self._engine.bump()
                elif event.key == pygame.K_c:
                    self._engine.cut()
                elif event.key == pygame.K_a:
                    self._engine.abdicate()

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._engine.drop()


def main():
    parser = argparse.ArgumentParser(description="Watch and play the parachute drop")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--scale", type=float, default=0.5, help="Window scale (default: 0.5)")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--log-level", type=str, default=None, help="Log level")

    args = parser.parse_args()
    configure_logging(level=args.log_level)

    try:
        viewer = DropViewer(seed=args.seed, scale=args.scale, target_fps=args.fps)
        drops = viewer.run()
        print(f"\nDrops made: {drops}")
        return 0
    except ImportError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
