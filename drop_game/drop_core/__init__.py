"""
Drop Core - The simulation behind the parachute drop.

This module provides the per-frame dropper state machine, target
arbitration, the entity pool and the engine loop that drives them.

Main exports:
- DropEngine: Render loop and command surface (drop / cut / abdicate)
- Dropper: Falling avatar state machine
- Target: Landing zone with single-winner arbitration
- GameConfig: Configuration loaded from drop_config.yaml
- Presenter: Side-effect interface the host implements
"""

from drop_game.drop_core.config_loader import GameConfig, load_config, get_config
from drop_game.drop_core.rng import RandomSource
from drop_game.drop_core.sprite_sheet import SpriteSheetLayout
from drop_game.drop_core.presenter import (
    Presenter,
    NullPresenter,
    RecordingPresenter,
    SoundCue,
    VisualState,
)
from drop_game.drop_core.entity import Entity, EntityKind
from drop_game.drop_core.scoring import DropResult, ResultTracker, landing_score
from drop_game.drop_core.dropper import Dropper
from drop_game.drop_core.target import Target
from drop_game.drop_core.entity_pool import EntityPool
from drop_game.drop_core.state_snapshot import EngineSnapshot, SnapshotBuilder
from drop_game.drop_core.engine import DropEngine

__all__ = [
    "GameConfig",
    "load_config",
    "get_config",
    "RandomSource",
    "SpriteSheetLayout",
    "Presenter",
    "NullPresenter",
    "RecordingPresenter",
    "SoundCue",
    "VisualState",
    "Entity",
    "EntityKind",
    "DropResult",
    "ResultTracker",
    "landing_score",
    "Dropper",
    "Target",
    "EntityPool",
    "EngineSnapshot",
    "SnapshotBuilder",
    "DropEngine",
]
