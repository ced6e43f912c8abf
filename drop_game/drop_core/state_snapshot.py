"""
State Snapshot
==============

Packs the engine state into fixed-size numpy arrays for renderers, logs and
headless analysis.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, TYPE_CHECKING
import numpy as np

from drop_game.drop_core.config_loader import GameConfig, get_config

if TYPE_CHECKING:
    from drop_game.drop_core.engine import DropEngine


@dataclass
class EngineSnapshot:
    """
    Engine state at one frame.

    Dropper arrays are fixed-size with a mask for the active count.
    """
    running: bool
    idle_time: float
    fps: int
    dropper_count: int

    viewport_width: float
    viewport_height: float

    target_x: float
    target_y: float
    target_width: float
    target_height: float
    winner_name: Optional[str]
    winner_score: float

    names: List[str]
    drop_x: np.ndarray          # (MAX,) float32
    drop_y: np.ndarray          # (MAX,) float32
    drop_vx: np.ndarray         # (MAX,) float32
    drop_vy: np.ndarray         # (MAX,) float32
    drop_score: np.ndarray      # (MAX,) float32
    deployed: np.ndarray        # (MAX,) bool
    cut: np.ndarray             # (MAX,) bool, cut triggered
    landed: np.ndarray          # (MAX,) bool
    winner: np.ndarray          # (MAX,) bool
    mask: np.ndarray            # (MAX,) bool

    def to_dict(self) -> Dict[str, object]:
        """Plain-Python view, JSON serializable."""
        count = self.dropper_count
        return {
            "running": self.running,
            "idle_time": self.idle_time,
            "fps": self.fps,
            "viewport": [self.viewport_width, self.viewport_height],
            "target": {
                "x": self.target_x,
                "y": self.target_y,
                "width": self.target_width,
                "height": self.target_height,
                "winner": self.winner_name,
                "score": self.winner_score,
            },
            "droppers": [
                {
                    "name": self.names[i],
                    "x": float(self.drop_x[i]),
                    "y": float(self.drop_y[i]),
                    "vx": float(self.drop_vx[i]),
                    "vy": float(self.drop_vy[i]),
                    "score": float(self.drop_score[i]),
                    "deployed": bool(self.deployed[i]),
                    "cut": bool(self.cut[i]),
                    "landed": bool(self.landed[i]),
                    "winner": bool(self.winner[i]),
                }
                for i in range(count)
            ],
        }


class SnapshotBuilder:
    """Builds engine snapshots into pre-allocated arrays."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_droppers = config.snapshot.max_droppers

        self._drop_x = np.zeros(self._max_droppers, dtype=np.float32)
        self._drop_y = np.zeros(self._max_droppers, dtype=np.float32)
        self._drop_vx = np.zeros(self._max_droppers, dtype=np.float32)
        self._drop_vy = np.zeros(self._max_droppers, dtype=np.float32)
        self._drop_score = np.zeros(self._max_droppers, dtype=np.float32)
        self._deployed = np.zeros(self._max_droppers, dtype=bool)
        self._cut = np.zeros(self._max_droppers, dtype=bool)
        self._landed = np.zeros(self._max_droppers, dtype=bool)
        self._winner = np.zeros(self._max_droppers, dtype=bool)
        self._mask = np.zeros(self._max_droppers, dtype=bool)

    @property
    def max_droppers(self) -> int:
        return self._max_droppers

    def build(self, engine: "DropEngine") -> EngineSnapshot:
        """Build a snapshot of the engine's current state."""
        for array in (self._drop_x, self._drop_y, self._drop_vx, self._drop_vy, self._drop_score):
            array.fill(0)
        for array in (self._deployed, self._cut, self._landed, self._winner, self._mask):
            array.fill(False)

        droppers = engine.droppers[:self._max_droppers]
        names = []
        for i, dropper in enumerate(droppers):
            names.append(dropper.name)
            self._drop_x[i] = dropper.x
            self._drop_y[i] = dropper.y
            self._drop_vx[i] = dropper.x_speed
            self._drop_vy[i] = dropper.y_speed
            self._drop_score[i] = dropper.drop_score
            self._deployed[i] = dropper.deployed
            self._cut[i] = dropper.cut_triggered
            self._landed[i] = dropper.landed
            self._winner[i] = dropper.winner
            self._mask[i] = True

        target = engine.target
        winner = target.winner

        return EngineSnapshot(
            running=engine.running,
            idle_time=engine.idle_time,
            fps=engine.fps,
            dropper_count=len(droppers),
            viewport_width=float(self._config.viewport.width),
            viewport_height=float(self._config.viewport.height),
            target_x=float(target.x),
            target_y=float(target.y),
            target_width=float(target.width),
            target_height=float(target.height),
            winner_name=winner.name if winner is not None else None,
            winner_score=float(winner.drop_score) if winner is not None else 0.0,
            names=names,
            drop_x=self._drop_x.copy(),
            drop_y=self._drop_y.copy(),
            drop_vx=self._drop_vx.copy(),
            drop_vy=self._drop_vy.copy(),
            drop_score=self._drop_score.copy(),
            deployed=self._deployed.copy(),
            cut=self._cut.copy(),
            landed=self._landed.copy(),
            winner=self._winner.copy(),
            mask=self._mask.copy(),
        )
