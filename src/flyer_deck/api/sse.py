"""SSE stream helpers."""

import asyncio
from typing import AsyncIterator

from flyer_deck.events.models import ErrorEvent, Event
from flyer_deck.utils.logging import get_logger


logger = get_logger(__name__)

# Timeout for graceful task cancellation
TASK_CANCEL_TIMEOUT = 5.0

KEEPALIVE = ": keepalive\n\n"

_DONE = object()


async def _pump(events: AsyncIterator[Event], queue: asyncio.Queue) -> None:
    """Move events from the run into the queue, then mark the end."""
    try:
        async for event in events:
            queue.put_nowait(event)
    finally:
        queue.put_nowait(_DONE)


async def event_stream(
    events: AsyncIterator[Event],
    cancel_event: asyncio.Event,
    keepalive: float = 15.0,
) -> AsyncIterator[str]:
    """
    Format a run's events as SSE, with keepalive comments while idle.

    If the client goes away (the generator is closed early), the run is
    cancelled through ``cancel_event`` and its task is torn down.

    Args:
        events: Event stream of one run
        cancel_event: Event that cancels the run when set
        keepalive: Seconds of silence before a keepalive comment

    Yields:
        SSE formatted strings
    """
    queue: asyncio.Queue = asyncio.Queue()
    task = asyncio.create_task(_pump(events, queue))

    try:
        while True:
            try:
                item = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield KEEPALIVE
                continue
            if item is _DONE:
                break
            yield item.to_sse()

        try:
            await task
        except Exception as e:
            logger.error("Event stream failed", error=str(e), exc_info=True)
            yield ErrorEvent.create("internal error").to_sse()

    finally:
        if not task.done():
            cancel_event.set()
            task.cancel()
            try:
                await asyncio.wait_for(task, timeout=TASK_CANCEL_TIMEOUT)
            except asyncio.CancelledError:
                pass
            except asyncio.TimeoutError:
                logger.warning(
                    "Run did not cancel gracefully within timeout, may leak resources"
                )
        _drain_queue(queue)


def _drain_queue(queue: asyncio.Queue) -> int:
    """Drain all remaining events from queue to free memory."""
    drained = 0
    while not queue.empty():
        queue.get_nowait()
        drained += 1
    if drained > 1:
        logger.debug("Drained events from queue during cleanup", drained=drained)
    return drained
