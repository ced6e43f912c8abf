"""
Target
======

The landing zone near the bottom of the viewport. Holds the droppers that
landed on it and keeps only the highest scorer as the winner.
"""

from __future__ import annotations

import logging
from typing import List, Optional, TYPE_CHECKING

from drop_game.drop_core.entity import Entity, EntityKind
from drop_game.drop_core.presenter import Presenter
from drop_game.drop_core.sprite_sheet import SpriteSheetLayout

if TYPE_CHECKING:
    from drop_game.drop_core.dropper import Dropper

logger = logging.getLogger(__name__)


class Target(Entity):
    """
    Landing target with single-winner arbitration.

    Droppers register themselves on a winning landing; every update reduces
    the list to the one with the highest score. Ties keep whichever landed
    first.
    """

    def __init__(
        self,
        presenter: Presenter,
        sheet: SpriteSheetLayout,
        x: float = 0.0,
        y: float = 0.0
    ):
        super().__init__(presenter, EntityKind.TARGET, x, y, sheet, 0)
        self.droppers: List["Dropper"] = []

    @property
    def winner(self) -> Optional["Dropper"]:
        """Current winner, if arbitration has settled on one."""
        return self.droppers[0] if len(self.droppers) == 1 else None

    def add_dropper(self, dropper: "Dropper") -> None:
        self.droppers.append(dropper)

    def ditch_loser(self, dropper: "Dropper", voluntary: bool = False) -> None:
        """Demote a dropper that is no longer the winner."""
        dropper.handle_lose()

        # Still landed on the target, just not winning
        dropper.transmit_drop_status(True, False, voluntary)

    def abdicate_dropper(self, name: str) -> Optional["Dropper"]:
        """
        Voluntarily remove the named dropper from the target.

        Returns:
            The removed dropper, or None if no dropper by that name is here.
        """
        for i, dropper in enumerate(self.droppers):
            if dropper.name == name:
                self.ditch_loser(dropper, voluntary=True)
                logger.debug("Dropper %s abdicated", name)
                return self.droppers.pop(i)
        return None

    def clear(self) -> List["Dropper"]:
        """Drop every registered dropper without demoting them."""
        droppers = self.droppers
        self.droppers = []
        return droppers

    def update(self, delta_ms: float) -> None:
        if len(self.droppers) <= 1:
            return

        high_dropper: Optional["Dropper"] = None
        for dropper in self.droppers:
            if high_dropper is None or dropper.drop_score > high_dropper.drop_score:
                if high_dropper is not None:
                    self.ditch_loser(high_dropper)
                high_dropper = dropper
            else:
                self.ditch_loser(dropper)

        logger.debug("Target winner is %s (%.3f)", high_dropper.name, high_dropper.drop_score)
        self.droppers = [high_dropper]
