"""
Drop Engine
===========

Main loop orchestrator: frame timing, update dispatch across the active
entities, idle suspension, and the spawn/cut/abdicate command surface.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Tuple

from drop_game.drop_core.config_loader import GameConfig, get_config
from drop_game.drop_core.dropper import Dropper
from drop_game.drop_core.entity import Entity, EntityKind
from drop_game.drop_core.entity_pool import EntityPool
from drop_game.drop_core.presenter import NullPresenter, Presenter, SoundCue, VisualState
from drop_game.drop_core.rng import RandomSource
from drop_game.drop_core.scoring import DropResult, ResultTracker
from drop_game.drop_core.sprite_sheet import SpriteSheetLayout
from drop_game.drop_core.state_snapshot import EngineSnapshot, SnapshotBuilder
from drop_game.drop_core.target import Target

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> float:
    return time.monotonic() * 1000.0


class DropEngine:
    """
    Drives the whole simulation.

    The host calls tick() once per animation frame (or advance() with a
    fixed step), and forwards player commands to drop(), cut() and
    abdicate() between frames. Commands and frames are serialized on one
    lock so a host may issue commands from another thread.

    The loop is not running at construction (unless idle suspension is
    disabled); the first drop starts it, and it suspends itself again after
    the configured idle time with no drop in progress.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        presenter: Optional[Presenter] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize engine.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility.
            presenter: Side-effect surface. Ignores everything if None.
            clock: Millisecond clock used by tick(). Monotonic wall clock if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._presenter = presenter if presenter is not None else NullPresenter()
        self._rng = RandomSource(seed)
        self._clock = clock if clock is not None else _wall_clock_ms
        self._lock = threading.RLock()

        self._emote_sheet = SpriteSheetLayout.from_config(config.sprites.emote)
        self._target_sheet = SpriteSheetLayout.from_config(config.sprites.target)

        min_width = self._target_sheet.frame_width + 3 * self._emote_sheet.frame_width
        if config.viewport.width < min_width:
            raise ValueError(
                f"Viewport width {config.viewport.width} cannot fit the target; "
                f"need at least {min_width}"
            )

        self._entities: List[Entity] = []
        self._pool: EntityPool[Dropper] = EntityPool()
        self._listeners: List[Callable[[DropResult], None]] = []
        self._snapshot_builder = SnapshotBuilder(config)
        self.results = ResultTracker()
        self.add_result_listener(self.results.record)

        self._name_suffix = 1

        # Frame timing
        self._this_frame_time: Optional[float] = None
        self._elapsed_time = 0.0
        self._frames_this_second = 0
        self._fps = 0

        self._running = False
        self._idle_time = 0.0

        self.target = Target(self._presenter, self._target_sheet)
        self.position_target()
        self.target.set_state(VisualState.GHOST, True)
        self.target.display()
        self._entities.append(self.target)

        if config.engine.idle_time_ms == 0:
            self.start_render_loop()

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def presenter(self) -> Presenter:
        return self._presenter

    @property
    def rng(self) -> RandomSource:
        return self._rng

    @property
    def pool(self) -> EntityPool[Dropper]:
        return self._pool

    @property
    def running(self) -> bool:
        """True while the loop is active (not suspended)."""
        return self._running

    @property
    def idle_time(self) -> float:
        """Milliseconds spent with no drop in progress."""
        return self._idle_time

    @property
    def fps(self) -> int:
        """Frames counted over the last full second."""
        return self._fps

    @property
    def elapsed_time(self) -> float:
        """Milliseconds into the current one-second frame window."""
        return self._elapsed_time

    @property
    def entities(self) -> Tuple[Entity, ...]:
        """Active entities in update order (target first)."""
        return tuple(self._entities)

    @property
    def droppers(self) -> List[Dropper]:
        return [e for e in self._entities if e.kind is EntityKind.DROPPER]

    @property
    def name_suffix(self) -> int:
        return self._name_suffix

    def default_name(self) -> str:
        return f"{self._config.engine.default_name}{self._name_suffix}"

    def add_result_listener(self, listener: Callable[[DropResult], None]) -> None:
        """Register a callback for every drop result (the outward notification)."""
        self._listeners.append(listener)

    def remove_result_listener(self, listener: Callable[[DropResult], None]) -> None:
        self._listeners.remove(listener)

    def _dispatch_result(self, result: DropResult) -> None:
        for listener in list(self._listeners):
            listener(result)

    def find(self, name: str) -> Optional[Dropper]:
        """Active dropper with the given name, if any."""
        for entity in self._entities:
            if entity.kind is EntityKind.DROPPER and entity.name == name:
                return entity
        return None

    def position_target(self) -> None:
        """Place the target randomly along the bottom, clear of the side edges."""
        viewport = self._config.viewport
        margin = self._emote_sheet.frame_width * 1.5
        self.target.set_pos(
            self._rng.uniform_int(margin, viewport.width - self.target.width - margin),
            viewport.height - 0.75 * self.target.height
        )
        self.target.reposition()

    def start_render_loop(self) -> None:
        """Start (or resume) the loop, revealing a freshly placed target."""
        with self._lock:
            self.position_target()
            self.target.set_state(VisualState.GHOST, False)
            self.target.set_state(VisualState.FADE_OUT, False)
            self.target.set_state(VisualState.FADE_IN, True)
            self.target.set_frame(self.target.sheet.random_frame(self._rng))

            # Restart frame timing so the suspended gap is not fed in as a delta
            self._this_frame_time = None
            self._elapsed_time = 0.0
            self._frames_this_second = 0
            self._idle_time = 0.0

            self._running = True
            logger.info("Render loop started; target at (%.0f, %.0f)", self.target.x, self.target.y)

    def stop_render_loop(self) -> None:
        """Suspend the loop, removing every dropper still sitting on the target."""
        with self._lock:
            for dropper in self.target.clear():
                dropper.kill()

            self.target.set_state(VisualState.GHOST, True)
            self.target.set_state(VisualState.FADE_OUT, True)
            self.target.set_state(VisualState.FADE_IN, False)

            self._cull_dead()
            self._running = False
            self._idle_time = 0.0
            logger.info("Render loop suspended after idle timeout")

    def bump(self) -> int:
        """Advance the suffix used for default names (several test droppers at once)."""
        with self._lock:
            self._name_suffix += 1
            return self._name_suffix

    def tick(self, now_ms: Optional[float] = None) -> bool:
        """
        Run one frame using the clock for the time delta.

        The first frame after the loop starts has a delta of 0.

        Args:
            now_ms: Current time in milliseconds. Reads the clock if None.

        Returns:
            True if the loop is still running after this frame.
        """
        with self._lock:
            if not self._running:
                return False

            now = self._clock() if now_ms is None else now_ms
            if self._this_frame_time is None:
                delta = 0.0
            else:
                delta = max(0.0, now - self._this_frame_time)
            self._this_frame_time = now

            self._run_frame(delta)
            return self._running

    def advance(self, delta_ms: float) -> bool:
        """
        Run one frame with an explicit time delta.

        Returns:
            True if the loop is still running after this frame.
        """
        with self._lock:
            if not self._running:
                return False
            self._run_frame(max(0.0, delta_ms))
            return self._running

    def _run_frame(self, delta_ms: float) -> None:
        self._frames_this_second += 1
        self._elapsed_time += delta_ms
        if self._elapsed_time >= 1000:
            self._elapsed_time -= 1000
            self._fps = self._frames_this_second
            self._frames_this_second = 0

        # Reverse order so removals don't skip anything; the target (index 0)
        # arbitrates after every dropper has had its turn this frame.
        for i in range(len(self._entities) - 1, -1, -1):
            entity = self._entities[i]
            entity.update(delta_ms)
            if entity.dead:
                del self._entities[i]
                self._recycle(entity)

        # Idle when nothing is falling and no displaced dropper is waiting out
        # its death clock: just the target, or the target and its winner.
        count = len(self._entities)
        if count == 1 or (count == 2 and len(self.target.droppers) == 1):
            self._idle_time += delta_ms
        else:
            self._idle_time = 0.0

        idle_limit = self._config.engine.idle_time_ms
        if idle_limit != 0 and self._idle_time >= idle_limit:
            self.stop_render_loop()

    def _recycle(self, entity: Entity) -> None:
        if entity.kind is EntityKind.DROPPER:
            self._pool.add(entity)

    def _cull_dead(self) -> None:
        for i in range(len(self._entities) - 1, -1, -1):
            entity = self._entities[i]
            if entity.dead:
                del self._entities[i]
                self._recycle(entity)

    def drop(self, name: Optional[str] = None, emote_id: Optional[str] = None) -> Optional[Dropper]:
        """
        Launch a dropper for the given player.

        Resumes a suspended loop first. A name that already has an active
        dropper is refused.

        Args:
            name: Player name. Uses the default sample name if None.
            emote_id: Custom emote to show instead of a random stock one.

        Returns:
            The launched dropper, or None if the name is already active.
        """
        with self._lock:
            if not self._running:
                self.start_render_loop()

            name = name or self.default_name()
            if self.find(name) is not None:
                logger.debug("Drop refused for %s: already active", name)
                return None

            dropper = self._pool.get()
            if dropper is None:
                dropper = Dropper(
                    self.target,
                    name,
                    self._presenter,
                    self._rng,
                    self._config,
                    on_result=self._dispatch_result
                )
            else:
                dropper.randomize(name)

            dropper.display()
            dropper.choose_emote(emote_id)

            if self._rng.chance(self._config.dropper.scream_chance):
                dropper.play_cue(SoundCue.SCREAM)

            self._entities.append(dropper)
            logger.debug("Dropped %s at x=%.0f", name, dropper.x)
            return dropper

    spawn = drop

    def cut(self, name: Optional[str] = None) -> bool:
        """
        Cut the parachute of the named active dropper.

        Returns:
            True if a cut was accepted.
        """
        with self._lock:
            if not self._config.rules.cut_allowed or not self._running:
                return False

            dropper = self.find(name or self.default_name())
            if dropper is None:
                return False
            return dropper.cut_chute()

    request_cut = cut

    def abdicate(self, name: Optional[str] = None) -> bool:
        """
        Make the named dropper give up its place on the target.

        Returns:
            True if a dropper by that name was on the target.
        """
        with self._lock:
            if not self._config.rules.abdicate_allowed:
                return False
            return self.target.abdicate_dropper(name or self.default_name()) is not None

    def fade_complete(self, name: str) -> None:
        """Presenter callback: the fade-out of the named dropper has finished."""
        with self._lock:
            dropper = self.find(name)
            if dropper is not None:
                dropper.fade_complete()
                self._cull_dead()

    def snapshot(self) -> EngineSnapshot:
        """Fixed-size snapshot of the current state."""
        with self._lock:
            return self._snapshot_builder.build(self)
