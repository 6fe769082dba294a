"""Per-collaborator concurrency limits."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from flyer_deck.utils.logging import get_logger


logger = get_logger(__name__)

LLM_COLLABORATOR = "llm"


class CollaboratorLimiter:
    """
    Bounds concurrent calls to each external collaborator.

    One semaphore per collaborator name (each tool, plus "llm"), created
    lazily. Workers are never capped; only the calls they make wait here.

    Example:
        limiter = CollaboratorLimiter(default_limit=4, limits={"llm": 2})
        async with limiter.slot("geocode"):
            ...
    """

    def __init__(self, default_limit: int = 4, limits: dict[str, int] | None = None):
        if default_limit < 1:
            raise ValueError("default_limit must be at least 1")
        self._default_limit = default_limit
        self._limits = dict(limits or {})
        self._semaphores: dict[str, asyncio.Semaphore] = {}

    def limit_for(self, name: str) -> int:
        return self._limits.get(name, self._default_limit)

    def _get_semaphore(self, name: str) -> asyncio.Semaphore:
        """Get or create the semaphore for a collaborator."""
        if name not in self._semaphores:
            self._semaphores[name] = asyncio.Semaphore(self.limit_for(name))
        return self._semaphores[name]

    @asynccontextmanager
    async def slot(self, name: str) -> AsyncIterator[None]:
        """Hold one concurrency slot for the named collaborator."""
        semaphore = self._get_semaphore(name)
        if semaphore.locked():
            logger.debug("Waiting for collaborator slot", collaborator=name)
        async with semaphore:
            yield
