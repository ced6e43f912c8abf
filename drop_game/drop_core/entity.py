"""
Entities
========

Base type for everything the engine updates: a position, a size, an optional
sprite sheet and a dead flag the engine uses to cull and recycle it.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from drop_game.drop_core.presenter import Presenter, SoundCue, VisualState
from drop_game.drop_core.sprite_sheet import SpriteSheetLayout


class EntityKind(str, Enum):
    """What an entity is; lets the engine treat the active list uniformly."""
    TARGET = "target"
    DROPPER = "dropper"
    PARACHUTE = "parachute"
    EMOTE = "emote"


class Entity:
    """
    Something in the game world with a position inside the viewport.

    With a sprite sheet the entity takes its size from the sheet's frame,
    otherwise it starts with no size and the owner sets one.
    """

    kind: EntityKind

    def __init__(
        self,
        presenter: Presenter,
        kind: EntityKind,
        x: float = 0.0,
        y: float = 0.0,
        sheet: Optional[SpriteSheetLayout] = None,
        frame: int = 0
    ):
        self._presenter = presenter
        self.kind = kind
        self.sheet = sheet
        self.dead = False

        if sheet is not None:
            self.width: float = sheet.frame_width
            self.height: float = sheet.frame_height
        else:
            self.width = 0
            self.height = 0

        self.x = x
        self.y = y
        self.frame = frame
        if sheet is not None:
            self.set_frame(frame)

    @property
    def presenter(self) -> Presenter:
        return self._presenter

    def set_pos(self, x: float, y: float) -> None:
        self.x = x
        self.y = y

    def set_frame(self, frame: int) -> None:
        """Select the sprite frame to display."""
        if self.sheet is not None:
            # Validates the index against the sheet
            self.sheet.frame_offset(frame)
        self.frame = frame
        self._presenter.set_frame(self, frame)

    def display(self) -> None:
        self._presenter.display(self)

    def hide(self) -> None:
        self._presenter.hide(self)

    def reposition(self) -> None:
        """Push the current position to the visible representation."""
        self._presenter.reposition(self, self.x, self.y)

    def set_state(self, state: VisualState, enabled: bool = True) -> None:
        self._presenter.apply_visual_state(self, state, enabled)

    def play(self, cue: SoundCue, volume: Optional[float] = None,
             restart: bool = False, rate: float = 1.0) -> None:
        self._presenter.play_sound(cue, volume, restart, rate)

    def update(self, delta_ms: float) -> None:
        """Advance this entity by one frame; delta_ms is time since the last frame."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value} @ {self.x:.1f}, {self.y:.1f})"
