"""
RNG - Bounded Random Source
===========================

Seedable source of the bounded random values used for spawn positions,
speeds, sprite frames and sound playback rates.
"""

from __future__ import annotations

import random
from typing import Any, Optional


class RandomSource:
    """
    Bounded random float/int generator.

    Every random decision in the simulation goes through one of these, so a
    seeded source replays a session exactly.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize random source.

        Args:
            seed: Random seed for reproducibility. Random if None.
        """
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        """Seed this source was created (or last reset) with."""
        return self._seed

    def uniform_float(self, min_value: float, max_value: float) -> float:
        """Uniform float in [min_value, max_value)."""
        return self._rng.random() * (max_value - min_value) + min_value

    def uniform_int(self, min_value: int, max_value: int) -> int:
        """Uniform int in [min_value, max_value], both ends inclusive."""
        return self._rng.randint(int(min_value), int(max_value))

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self._rng.random() < probability

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset the source with optional new seed.

        Args:
            seed: New random seed. Keeps current if None.
        """
        if seed is not None:
            self._seed = seed
        self._rng = random.Random(self._seed)

    def get_state(self) -> Any:
        """Get internal generator state for checkpointing."""
        return self._rng.getstate()

    def set_state(self, state: Any) -> None:
        """Restore generator state from get_state()."""
        self._rng.setstate(state)
