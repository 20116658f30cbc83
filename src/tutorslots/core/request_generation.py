"""
Stale-response guard.

When a user changes the selected date before the previous lookup resolves,
the older response must not overwrite the newer one. Each lookup takes a
generation token; only the latest generation may deliver its result.
"""

import logging
from typing import Awaitable, TypeVar

from .exceptions import StaleResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestGeneration:
    """Monotonic generation counter for one logical view."""

    def __init__(self) -> None:
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def begin(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, generation: int) -> bool:
        return generation == self._current

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await a lookup under a fresh generation; raise if superseded meanwhile."""
        generation = self.begin()
        result = await awaitable
        if not self.is_current(generation):
            logger.debug("Discarding stale response generation=%s current=%s", generation, self._current)
            raise StaleResponseError(generation, self._current)
        return result
