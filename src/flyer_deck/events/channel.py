"""Multi-producer, single-consumer event channel."""

import asyncio
from typing import AsyncIterator

from flyer_deck.utils.logging import get_logger

from .models import Event


logger = get_logger(__name__)

_CLOSED = object()


class EventChannel:
    """
    Ordered asynchronous channel between workers and the stream consumer.

    Any number of tasks may push; exactly one consumer iterates. Pushes are
    non-blocking and keep arrival order. After close() the buffered events
    are still delivered, then iteration ends. Pushes after close are
    dropped and push() returns False.

    Example:
        channel = EventChannel()
        channel.push(event)
        channel.close()
        async for event in channel:
            ...
    """

    def __init__(self):
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        """Number of events pushed after close."""
        return self._dropped

    def push(self, event: Event) -> bool:
        """Append an event. Returns False when the channel is already closed."""
        if self._closed:
            self._dropped += 1
            logger.debug(
                "Event pushed after channel close, dropped",
                event_type=event.event_type.value,
            )
            return False
        self._queue.put_nowait(event)
        return True

    def close(self) -> None:
        """Stop accepting events. Idempotent; buffered events are kept."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[Event]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                # Leave the marker for any later iteration attempt
                self._queue.put_nowait(_CLOSED)
                return
            yield item  # type: ignore[misc]
