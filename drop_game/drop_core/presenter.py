"""
Presenter Interface
===================

The core never draws or plays anything itself. Every visible or audible
side effect goes through a Presenter, which the host (a pygame window, a
browser bridge, a test) implements.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from drop_game.drop_core.entity import Entity


class VisualState(str, Enum):
    """Named visual states the core toggles on entities."""
    GHOST = "ghost"
    DEPLOY_CHUTE = "deployChute"
    RELEASE_CHUTE = "releaseChute"
    SWAY = "sway"
    CUT = "cut"
    LOSER = "loser"
    REAP = "reap"
    FADE_IN = "fadeIn"
    FADE_OUT = "fadeOut"
    SCORE_VISIBLE = "scoreVisible"


class SoundCue(str, Enum):
    """Sound cues; values match the `cue` keys in drop_config.yaml."""
    PARACHUTE = "parachute"
    SNIP = "snip"
    BUZZ = "buzz"
    LAND = "land"
    WINNER = "winner"
    SCREAM = "scream"


class Presenter(Protocol):
    """Side-effect surface consumed by the core."""

    def display(self, entity: "Entity") -> None:
        ...

    def hide(self, entity: "Entity") -> None:
        ...

    def reposition(self, entity: "Entity", x: float, y: float) -> None:
        ...

    def set_frame(self, entity: "Entity", frame: int) -> None:
        ...

    def set_custom_emote(self, entity: "Entity", emote_id: Optional[str]) -> None:
        ...

    def play_sound(
        self,
        cue: SoundCue,
        volume: Optional[float] = None,
        restart: bool = False,
        rate: float = 1.0
    ) -> None:
        ...

    def apply_visual_state(self, entity: "Entity", state: VisualState, enabled: bool = True) -> None:
        ...


class NullPresenter:
    """Presenter that ignores everything (headless runs)."""

    def display(self, entity: "Entity") -> None:
        pass

    def hide(self, entity: "Entity") -> None:
        pass

    def reposition(self, entity: "Entity", x: float, y: float) -> None:
        pass

    def set_frame(self, entity: "Entity", frame: int) -> None:
        pass

    def set_custom_emote(self, entity: "Entity", emote_id: Optional[str]) -> None:
        pass

    def play_sound(
        self,
        cue: SoundCue,
        volume: Optional[float] = None,
        restart: bool = False,
        rate: float = 1.0
    ) -> None:
        pass

    def apply_visual_state(self, entity: "Entity", state: VisualState, enabled: bool = True) -> None:
        pass


@dataclass
class PresenterCall:
    """One recorded presenter call."""
    method: str
    entity: Any
    args: Tuple[Any, ...] = ()

    def __repr__(self) -> str:
        return f"PresenterCall({self.method}, {self.entity!r}, {self.args})"


@dataclass
class RecordingPresenter:
    """
    Presenter that records every call and tracks the resulting visual state.

    Repositions are tracked but not logged by default, since they fire every
    frame for every entity.
    """
    log_repositions: bool = False
    calls: List[PresenterCall] = field(default_factory=list)
    visible: set = field(default_factory=set)
    states: dict = field(default_factory=dict)
    positions: dict = field(default_factory=dict)
    frames: dict = field(default_factory=dict)

    def display(self, entity: "Entity") -> None:
        self.visible.add(id(entity))
        self.calls.append(PresenterCall("display", entity))

    def hide(self, entity: "Entity") -> None:
        self.visible.discard(id(entity))
        self.calls.append(PresenterCall("hide", entity))

    def reposition(self, entity: "Entity", x: float, y: float) -> None:
        self.positions[id(entity)] = (x, y)
        if self.log_repositions:
            self.calls.append(PresenterCall("reposition", entity, (x, y)))

    def set_frame(self, entity: "Entity", frame: int) -> None:
        self.frames[id(entity)] = frame
        self.calls.append(PresenterCall("set_frame", entity, (frame,)))

    def set_custom_emote(self, entity: "Entity", emote_id: Optional[str]) -> None:
        self.calls.append(PresenterCall("set_custom_emote", entity, (emote_id,)))

    def play_sound(
        self,
        cue: SoundCue,
        volume: Optional[float] = None,
        restart: bool = False,
        rate: float = 1.0
    ) -> None:
        self.calls.append(PresenterCall("play_sound", None, (cue, volume, restart, rate)))

    def apply_visual_state(self, entity: "Entity", state: VisualState, enabled: bool = True) -> None:
        active = self.states.setdefault(id(entity), set())
        if enabled:
            active.add(state)
        else:
            active.discard(state)
        self.calls.append(PresenterCall("apply_visual_state", entity, (state, enabled)))

    def is_visible(self, entity: "Entity") -> bool:
        return id(entity) in self.visible

    def has_state(self, entity: "Entity", state: VisualState) -> bool:
        return state in self.states.get(id(entity), set())

    def sounds(self) -> List[SoundCue]:
        """Cues played so far, in order."""
        return [c.args[0] for c in self.calls if c.method == "play_sound"]

    def clear(self) -> None:
        """Forget recorded calls (tracked state is kept)."""
        self.calls.clear()
