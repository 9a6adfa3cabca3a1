"""
Single-flight loading for a logical dashboard view.

At most one fetch per view is in flight. Starting a new fetch supersedes the
previous one (it is cancelled, not queued) and abandoning the view discards
whatever is still pending.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ViewLoader(Generic[T]):
    def __init__(self, name: str = "view"):
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._abandoned = False

    @property
    def loading(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    async def load(self, fetch: Callable[[], Awaitable[T]]) -> Optional[T]:
        """
        Run ``fetch`` as the current load for this view.

        Returns the fetched value, or ``None`` when this load was superseded
        by a newer one or the view was abandoned before it finished.

        Raises:
            RuntimeError: If the view has already been abandoned.
        """
        if self._abandoned:
            raise RuntimeError(f"View '{self.name}' has been abandoned")

        if self.loading:
            logger.debug(f"Superseding in-flight load for view '{self.name}'")
            self._task.cancel()

        self._generation += 1
        generation = self._generation
        task = asyncio.ensure_future(fetch())
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if task.cancelled() and (generation != self._generation or self._abandoned):
                return None
            raise
        finally:
            if self._task is task and task.done():
                self._task = None

        if generation != self._generation or self._abandoned:
            return None
        return result

    def abandon(self) -> None:
        """Cancel the in-flight load and discard any later result."""
        self._abandoned = True
        if self.loading:
            self._task.cancel()
        self._task = None
