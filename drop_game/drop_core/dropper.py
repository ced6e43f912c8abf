"""
Parachute Dropper
=================

The falling avatar. Each dropper owns its fall physics and its phase
transitions: falling, chute deployed, chute cut, landed as winner or loser,
and the death clock that retires a landed loser.
"""

from __future__ import annotations

import logging
import weakref
from typing import Callable, Dict, Optional, TYPE_CHECKING

from drop_game.drop_core.config_loader import GameConfig, get_config
from drop_game.drop_core.entity import Entity, EntityKind
from drop_game.drop_core.presenter import Presenter, SoundCue, VisualState
from drop_game.drop_core.rng import RandomSource
from drop_game.drop_core.scoring import DropResult, landing_score, overlaps_target
from drop_game.drop_core.sprite_sheet import SpriteSheetLayout

if TYPE_CHECKING:
    from drop_game.drop_core.target import Target

logger = logging.getLogger(__name__)


class Dropper(Entity):
    """
    A parachute dropper aiming for the target.

    The parachute and emote are attachments whose positions are offsets
    from the dropper; the emote's box is the hitbox used for bouncing,
    landing and scoring, since the character is narrower than its chute.

    Phase flags:
    - deployed: the chute opened on entering the viewport
    - cut_requested / cut_triggered: a cut is counting down / has happened
    - landed: touched down; winner or loser from then on
    - drop_complete: a landed loser whose death clock ran out
    """

    def __init__(
        self,
        target: "Target",
        name: str,
        presenter: Presenter,
        rng: RandomSource,
        config: Optional[GameConfig] = None,
        on_result: Optional[Callable[[DropResult], None]] = None
    ):
        """
        Initialize dropper and randomize it for its first drop.

        Args:
            target: The target this dropper aims for (not owned).
            name: Name of the player this dropper represents.
            presenter: Side-effect surface.
            rng: Random source for spawn randomization.
            config: Game configuration. Uses default if None.
            on_result: Called with every DropResult this dropper emits.
        """
        if config is None:
            config = get_config()

        super().__init__(presenter, EntityKind.DROPPER)

        self._config = config
        self._rng = rng
        self._target_ref = weakref.ref(target)
        self.on_result = on_result

        parachute_sheet = SpriteSheetLayout.from_config(config.sprites.parachute)
        emote_sheet = SpriteSheetLayout.from_config(config.sprites.emote)

        self.parachute = Entity(presenter, EntityKind.PARACHUTE, sheet=parachute_sheet,
                                frame=parachute_sheet.random_frame(rng))
        self.emote = Entity(presenter, EntityKind.EMOTE, sheet=emote_sheet,
                            frame=emote_sheet.random_frame(rng))

        # Emote hangs centered under the chute, overlapping it by a quarter of
        # its own height where the cords meet.
        self.emote.set_pos(
            parachute_sheet.frame_width / 2 - emote_sheet.frame_width / 2,
            parachute_sheet.frame_height - round(emote_sheet.frame_height / 4)
        )

        self.width = config.dropper.width
        self.height = config.dropper.height

        # Playback rates are picked once per dropper
        self._rates: Dict[SoundCue, float] = {
            cue: config.get_sound(cue.value).playback_rate(rng) for cue in SoundCue
        }

        self.custom_emote: Optional[str] = None
        self.randomize(name)

    @property
    def target(self) -> "Target":
        target = self._target_ref()
        if target is None:
            raise RuntimeError(f"Dropper {self.name} outlived its target")
        return target

    # Hitbox (the emote box, in viewport coordinates)

    @property
    def hitbox_x(self) -> float:
        return self.x + self.emote.x

    @property
    def hitbox_y(self) -> float:
        return self.y + self.emote.y

    @property
    def hitbox_width(self) -> float:
        return self.emote.width

    @property
    def hitbox_height(self) -> float:
        return self.emote.height

    @property
    def landing_y(self) -> float:
        """Hitbox top at which the dropper touches down."""
        return (
            self._config.viewport.height
            - self.hitbox_height
            - self._config.dropper.landing_depth * self.target.height
        )

    @property
    def falling(self) -> bool:
        return not self.landed

    def randomize(self, name: str) -> None:
        """
        Reset every mutable field for a fresh drop.

        Called on construction and whenever the dropper is reused from the
        entity pool, so nothing from a previous drop survives.
        """
        cfg = self._config.dropper

        # Chute stays hidden until it deploys
        self.parachute.set_state(VisualState.GHOST, True)
        self.parachute.set_state(VisualState.DEPLOY_CHUTE, False)
        self.parachute.set_state(VisualState.RELEASE_CHUTE, False)
        self.emote.set_state(VisualState.CUT, False)
        for state in (VisualState.GHOST, VisualState.SWAY, VisualState.LOSER,
                      VisualState.REAP, VisualState.SCORE_VISIBLE):
            self.set_state(state, False)

        self.name = name
        self.dead = False
        self.parachute.set_frame(self.parachute.sheet.random_frame(self._rng))

        self.landed = False
        self.deployed = False
        self.brake_height = self._rng.uniform_int(*cfg.brake_height_range)

        self.cut_requested = False
        self.cut_triggered = False
        cut_range = self._config.rules.cut_range
        self.cut_clock = 0.0 if cut_range is None else self._rng.uniform_float(*cut_range)

        self.winner = False
        self.drop_complete = False
        self.death_clock = 0.0
        self.drop_score = 0.0

        # Keep away from the side edges when arriving, just above the top
        viewport_w = self._config.viewport.width
        x_offs = round(viewport_w / cfg.spawn_margin_divisor) * 2
        self.set_pos(self._rng.uniform_int(x_offs, viewport_w - x_offs), cfg.spawn_y)

        self.x_speed = self._rng.uniform_float(*cfg.x_speed_range)
        self.y_speed = self._rng.uniform_float(*cfg.y_speed_range)
        if self._rng.uniform_float(0, 1) <= 0.5:
            self.x_speed *= -1

        self.reposition()

    def choose_emote(self, emote_id: Optional[str] = None) -> None:
        """Show a custom emote, or a random stock one when emote_id is None."""
        self.custom_emote = emote_id
        self.presenter.set_custom_emote(self.emote, emote_id)
        if emote_id is not None:
            self.emote.set_frame(0)
        else:
            self.emote.set_frame(self.emote.sheet.random_frame(self._rng))

    def play_cue(self, cue: SoundCue, restart: bool = False) -> None:
        volume = self._config.get_sound(cue.value).volume
        self.play(cue, volume, restart, self._rates[cue])

    def kill(self) -> None:
        """Hide and flag as dead so the engine culls and recycles it."""
        self.hide()
        self.dead = True
        logger.debug("Dropper %s reaped", self.name)

    def fade_complete(self) -> None:
        """Presenter finished the fade-out of a completed drop."""
        if self.drop_complete and not self.dead:
            self.kill()

    def landed_update(self, delta_ms: float) -> None:
        """Run the death clock of a landed loser."""
        if self.winner or self.dead:
            return

        cfg = self._config.dropper
        self.death_clock += delta_ms

        if not self.drop_complete:
            if self.death_clock >= cfg.death_time_ms:
                self.drop_complete = True
                self.set_state(VisualState.REAP, True)
                self.set_state(VisualState.GHOST, True)
            return

        if self.death_clock >= cfg.death_time_ms + cfg.fade_time_ms:
            self.kill()

    def cut_update(self, delta_ms: float) -> None:
        """Count down a requested cut and release the chute when it expires."""
        self.cut_clock -= delta_ms
        if self.cut_clock <= 0:
            self._trigger_cut()

    def _trigger_cut(self) -> None:
        self.set_state(VisualState.SWAY, False)
        self.parachute.set_state(VisualState.GHOST, True)
        self.parachute.set_state(VisualState.RELEASE_CHUTE, True)
        self.cut_triggered = True
        logger.debug("Dropper %s cut away at y=%.1f", self.name, self.y)

    def deploy_chute(self) -> None:
        self.deployed = True
        self.parachute.set_state(VisualState.GHOST, False)
        self.parachute.set_state(VisualState.DEPLOY_CHUTE, True)
        self.play_cue(SoundCue.PARACHUTE)
        self.set_state(VisualState.SWAY, True)

    def cut_chute(self) -> bool:
        """
        Request a cut of the parachute.

        Refused (with a buzz) when a cut was already requested, when the
        dropper is lower than the cut lockout, or once it has landed.

        Returns:
            True if the cut was accepted.
        """
        if self.cut_requested or self.landed or self.y > self._config.rules.cut_lockout:
            self.play_cue(SoundCue.BUZZ)
            logger.debug("Cut refused for %s", self.name)
            return False

        self.emote.set_state(VisualState.CUT, True)
        self.play_cue(SoundCue.SNIP)
        self.cut_requested = True

        if self.cut_clock <= 0:
            self._trigger_cut()
        return True

    def land(self) -> None:
        self.landed = True
        self.x_speed = 0.0
        self.y_speed = 0.0
        self.play_cue(SoundCue.LAND)

        self.set_state(VisualState.SWAY, False)
        self.emote.set_state(VisualState.CUT, False)

        if not self.cut_triggered:
            self.parachute.set_state(VisualState.GHOST, True)
            self.parachute.set_state(VisualState.RELEASE_CHUTE, True)

    def update(self, delta_ms: float) -> None:
        """
        Advance one frame.

        Drift down the screen bouncing off the side edges, with the chute
        braking the descent to a floor speed (or a cut accelerating it to
        terminal velocity), until the hitbox reaches the landing plane.
        """
        if self.landed:
            self.landed_update(delta_ms)
            return

        cfg = self._config.dropper

        self.x += self.x_speed
        self.y += self.y_speed

        if self.cut_requested and not self.cut_triggered:
            self.cut_update(delta_ms)

        if not self.cut_triggered and self.y >= self.brake_height and self.y_speed > cfg.min_descent_speed:
            self.y_speed /= cfg.brake_factor

        if self.cut_triggered and self.y_speed < cfg.terminal_velocity:
            self.y_speed = min(self.y_speed * cfg.cut_acceleration, cfg.terminal_velocity)

        if not self.deployed and not self.cut_requested and self.y >= 0:
            self.deploy_chute()

        # Flip only, no clamping; the box may overshoot an edge for a frame
        hitbox_x = self.hitbox_x
        if hitbox_x <= 0 or hitbox_x >= self._config.viewport.width - self.hitbox_width:
            self.x_speed = -self.x_speed

        if self.hitbox_y >= self.landing_y:
            self.land()

            target = self.target
            if overlaps_target(target.x, target.width, hitbox_x, self.hitbox_width):
                self.handle_win()
            else:
                self.handle_lose()
                self.transmit_drop_status(False, False)

        self.reposition()

    def reposition(self) -> None:
        super().reposition()
        self.presenter.reposition(self.parachute, self.x + self.parachute.x, self.y + self.parachute.y)
        self.presenter.reposition(self.emote, self.x + self.emote.x, self.y + self.emote.y)

    def score(self) -> float:
        """Landing score for the current hitbox position."""
        target = self.target
        return landing_score(target.x, target.width, self.hitbox_x, self.hitbox_width)

    def handle_win(self) -> None:
        self.winner = True
        self.play_cue(SoundCue.WINNER)
        self.drop_score = self.score()
        self.set_state(VisualState.SCORE_VISIBLE, True)
        logger.debug("Dropper %s hit the target, score %.3f", self.name, self.drop_score)

        # May be short lived if the target already holds a better score
        self.transmit_drop_status(True, True)
        self.target.add_dropper(self)

    def handle_lose(self) -> None:
        self.winner = False
        self.set_state(VisualState.LOSER, True)

    def transmit_drop_status(self, on_target: bool, winner: bool, voluntary: bool = False) -> None:
        """Emit a DropResult for this dropper."""
        result = DropResult(
            name=self.name,
            on_target=on_target,
            winner=winner,
            voluntary=voluntary,
            score=self.drop_score
        )
        logger.debug("%r", result)
        if self.on_result is not None:
            self.on_result(result)

    def __repr__(self) -> str:
        return f"Dropper({self.name} @ {self.x:.1f}, {self.y:.1f})"
