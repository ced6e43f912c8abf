"""
Entity Pool
===========

Keeps dead droppers around so new drops can reuse them instead of building
fresh ones.
"""

from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

from drop_game.drop_core.entity import Entity

E = TypeVar("E", bound=Entity)


class EntityPool(Generic[E]):
    """Last-in, first-out cache of recycled entities."""

    def __init__(self):
        self._pool: List[E] = []

    def add(self, entity: E) -> None:
        """Put a dead entity in the pool for reuse."""
        self._pool.append(entity)

    def get(self) -> Optional[E]:
        """Take the most recently added entity, or None if the pool is empty."""
        if not self._pool:
            return None
        return self._pool.pop()

    def clear(self) -> None:
        self._pool.clear()

    def __len__(self) -> int:
        return len(self._pool)

    def __contains__(self, entity: object) -> bool:
        return any(e is entity for e in self._pool)
