"""
Sprite Sheet Layout
===================

Pure geometry for sprite sheets: maps a frame index to the offset of its
sub-image. Frames are packed left to right in full rows; a partial last row
is missing frames on its right hand side.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from drop_game.drop_core.config_loader import SpriteSheetConfig, validate_sheet
from drop_game.drop_core.rng import RandomSource


@dataclass(frozen=True)
class SpriteSheetLayout:
    """Immutable sprite sheet geometry."""
    css_class: str
    sheet_width: int
    sheet_height: int
    frame_width: int
    frame_height: int
    frame_count: int

    def __post_init__(self) -> None:
        validate_sheet(self)

    @classmethod
    def from_config(cls, config: SpriteSheetConfig) -> "SpriteSheetLayout":
        return cls(
            css_class=config.css_class,
            sheet_width=config.sheet_width,
            sheet_height=config.sheet_height,
            frame_width=config.frame_width,
            frame_height=config.frame_height,
            frame_count=config.frame_count
        )

    @property
    def columns(self) -> int:
        """Frames per row."""
        return self.sheet_width // self.frame_width

    @property
    def rows(self) -> int:
        """Number of frame rows."""
        return self.sheet_height // self.frame_height

    def random_frame(self, rng: RandomSource) -> int:
        """Pick a valid frame index at random."""
        return rng.uniform_int(0, self.frame_count - 1)

    def frame_x(self, frame: int) -> int:
        """Horizontal background offset of a frame (zero or negative)."""
        self._check_frame(frame)
        return -1 * (frame % self.columns) * self.frame_width

    def frame_y(self, frame: int) -> int:
        """Vertical background offset of a frame (zero or negative)."""
        self._check_frame(frame)
        return -1 * ((frame // self.columns) % self.rows) * self.frame_height

    def frame_offset(self, frame: int) -> Tuple[int, int]:
        """(x, y) background offset of a frame."""
        return (self.frame_x(frame), self.frame_y(frame))

    def _check_frame(self, frame: int) -> None:
        if not 0 <= frame < self.frame_count:
            raise IndexError(
                f"Frame {frame} out of range [0, {self.frame_count}) for sheet '{self.css_class}'"
            )
