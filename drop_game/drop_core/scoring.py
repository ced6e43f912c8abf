"""
Scoring System
==============

Landing score calculation, drop result notifications and a per-session
result tally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def landing_score(
    target_x: float,
    target_width: float,
    hitbox_x: float,
    hitbox_width: float
) -> float:
    """
    Score a landing by how close the hitbox center is to the target center.

    Gives 100 for a perfectly centered landing, falling linearly to 0 at the
    widest center-to-center offset that still overlaps the target.

    Args:
        target_x: Left edge of the target.
        target_width: Width of the target.
        hitbox_x: Left edge of the dropper's hitbox.
        hitbox_width: Width of the dropper's hitbox.

    Returns:
        Score in (0, 100] for overlapping landings.
    """
    mid_target = target_x + target_width / 2
    mid_hitbox = hitbox_x + hitbox_width / 2
    max_dist = target_width / 2 + hitbox_width / 2
    return 100.0 - (abs(mid_target - mid_hitbox) / max_dist) * 100.0


def overlaps_target(
    target_x: float,
    target_width: float,
    hitbox_x: float,
    hitbox_width: float
) -> bool:
    """True if the hitbox overlaps the target span by at least one pixel."""
    return target_x - hitbox_width < hitbox_x < target_x + target_width


@dataclass(frozen=True)
class DropResult:
    """
    Outcome notification for a dropper.

    on_target: the dropper landed on the target.
    winner:    the dropper currently holds the target.
    voluntary: the dropper left the target by abdicating.

    A dropper that lands on the target but is outscored reports
    (True, True) followed shortly by (True, False).
    """
    name: str
    on_target: bool
    winner: bool
    voluntary: bool = False
    score: float = 0.0

    @property
    def displaced(self) -> bool:
        """Knocked off the target by a higher score."""
        return self.on_target and not self.winner and not self.voluntary

    def __repr__(self) -> str:
        if self.winner:
            return f"DropResult({self.name}: winner, score={self.score:.3f})"
        if self.voluntary:
            return f"DropResult({self.name}: abdicated)"
        if self.on_target:
            return f"DropResult({self.name}: displaced, score={self.score:.3f})"
        return f"DropResult({self.name}: missed)"


class ResultTracker:
    """
    Tallies drop results for the current session.

    Nothing here outlives the process.
    """

    def __init__(self):
        self.reset()

    @property
    def drops(self) -> int:
        """Droppers that finished their fall."""
        return self._drops

    @property
    def hits(self) -> int:
        """Landings on the target."""
        return self._hits

    @property
    def misses(self) -> int:
        return self._drops - self._hits

    @property
    def displaced(self) -> int:
        return self._displaced

    @property
    def abdications(self) -> int:
        return self._abdications

    @property
    def best_score(self) -> float:
        return self._best_score

    @property
    def best_name(self) -> Optional[str]:
        return self._best_name

    @property
    def last_result(self) -> Optional[DropResult]:
        return self._last_result

    def record(self, result: DropResult) -> None:
        """Account for one notification."""
        self._last_result = result

        if result.winner:
            self._drops += 1
            self._hits += 1
            if result.score > self._best_score:
                self._best_score = result.score
                self._best_name = result.name
        elif result.voluntary:
            self._abdications += 1
        elif result.on_target:
            self._displaced += 1
        else:
            self._drops += 1

    def reset(self) -> None:
        """Clear the tally."""
        self._drops = 0
        self._hits = 0
        self._displaced = 0
        self._abdications = 0
        self._best_score = 0.0
        self._best_name: Optional[str] = None
        self._last_result: Optional[DropResult] = None

    def summary(self) -> dict:
        return {
            "drops": self._drops,
            "hits": self._hits,
            "misses": self.misses,
            "displaced": self._displaced,
            "abdications": self._abdications,
            "best_score": self._best_score,
            "best_name": self._best_name,
        }
