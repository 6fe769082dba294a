"""Deck orchestrator: fan out one worker per plan item, fan events back in.

Lifecycle of a run:
1. Build the shared context. Any failure here is fatal: one error event,
   then the stream ends. The build races ``cancel_event`` and is aborted
   if the event is set first.
2. Start one worker task per plan item and a supervisor task that waits
   for all of them and then closes the channel.
3. Drain the channel into the output stream as events arrive.
4. Emit end-of-run with every item in plan order and the total usage.

Setting ``cancel_event`` cancels the workers; the stream then ends with
an error event instead of end-of-run. Closing or cancelling the consumer
of run() cancels the workers as well.
"""

import asyncio
from typing import Any, AsyncIterator
from uuid import uuid4

from flyer_deck.core.context import ContextBuilder, ContextBuildResult, PrimaryInput
from flyer_deck.core.exceptions import ContextBuildError
from flyer_deck.core.models import GeneratedItem
from flyer_deck.core.plan import PlanItem, get_plan
from flyer_deck.core.usage import UsageAggregator
from flyer_deck.core.worker import SlideWorker, degraded_item
from flyer_deck.events.channel import EventChannel
from flyer_deck.events.models import (
    EndOfRunEvent,
    ErrorEvent,
    Event,
    SlideEndEvent,
    UsageEvent,
)
from flyer_deck.synthesis.base import Synthesizer
from flyer_deck.tools.registry import ToolRegistry
from flyer_deck.utils.logging import get_logger


logger = get_logger(__name__)

CANCELLED_MESSAGE = "run cancelled"


class DeckOrchestrator:
    """
    Runs a whole deck and exposes it as one ordered event stream.

    Example:
        orchestrator = DeckOrchestrator(builder, registry, synthesizer)
        async for event in orchestrator.run(primary_input):
            print(event.to_sse())
    """

    def __init__(
        self,
        context_builder: ContextBuilder,
        registry: ToolRegistry,
        synthesizer: Synthesizer | None,
        plan: list[PlanItem] | None = None,
    ):
        self._context_builder = context_builder
        self._registry = registry
        self._synthesizer = synthesizer
        self._plan = plan

    async def run(
        self,
        primary_input: PrimaryInput | dict[str, Any],
        cancel_event: asyncio.Event | None = None,
        request_id: str | None = None,
    ) -> AsyncIterator[Event]:
        request_id = request_id or str(uuid4())
        log = logger.bind(request_id=request_id)
        usage = UsageAggregator()

        if cancel_event is not None and cancel_event.is_set():
            yield ErrorEvent.create(CANCELLED_MESSAGE, request_id)
            return

        try:
            built = await self._build_context(primary_input, cancel_event)
        except ContextBuildError as e:
            log.error("Context build failed, aborting run", stage=e.stage, error=str(e))
            yield ErrorEvent.create(str(e), request_id)
            return
        except Exception as e:
            log.error(
                "Context build raised, aborting run",
                error=str(e),
                error_type=type(e).__name__,
            )
            yield ErrorEvent.create(f"context build failed: {e}", request_id)
            return

        # No worker may start once cancellation is requested
        if built is None or (cancel_event is not None and cancel_event.is_set()):
            log.info("Deck run cancelled before fan-out")
            yield ErrorEvent.create(CANCELLED_MESSAGE, request_id)
            return

        if built.extraction_usage is not None:
            record = usage.record("extract", built.extraction_usage)
            yield UsageEvent.create(record, request_id)

        plan = sorted(self._plan if self._plan is not None else get_plan(), key=lambda i: i.index)
        channel = EventChannel()
        tasks: dict[asyncio.Task, PlanItem] = {}
        for item in plan:
            worker = SlideWorker(
                item=item,
                context=built.context,
                channel=channel,
                usage=usage,
                registry=self._registry,
                synthesizer=self._synthesizer,
                request_id=request_id,
            )
            tasks[asyncio.create_task(worker.run(), name=f"slide-{item.index}")] = item

        supervisor = asyncio.create_task(self._supervise(list(tasks), channel))
        watcher = (
            asyncio.create_task(self._watch_cancel(cancel_event, list(tasks)))
            if cancel_event is not None
            else None
        )
        log.info("Deck run started", items=len(plan))

        try:
            async for event in channel:
                yield event

            if any(task.cancelled() for task in tasks):
                self._retrieve_exceptions(tasks)
                log.info("Deck run cancelled")
                yield ErrorEvent.create(CANCELLED_MESSAGE, request_id)
                return

            items: list[GeneratedItem] = []
            for task, item in tasks.items():
                error = task.exception()
                if error is None:
                    items.append(task.result())
                    continue
                # A worker must never raise; fill its slot so every index is present
                log.error(
                    "Worker raised past its isolation boundary",
                    index=item.index,
                    error=str(error),
                    error_type=type(error).__name__,
                )
                filler = degraded_item(item, f"internal error: {error}")
                items.append(filler)
                yield SlideEndEvent.create(filler, request_id)

            items.sort(key=lambda generated: generated.index)
            total = usage.total()
            log.info(
                "Deck run finished",
                degraded=sum(1 for generated in items if generated.degraded),
                prompt_units=total.input_tokens,
                completion_units=total.output_tokens,
            )
            yield EndOfRunEvent.create(items, total, request_id)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if watcher is not None:
                watcher.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            if not supervisor.done():
                await asyncio.gather(supervisor, return_exceptions=True)
            if channel.dropped:
                log.debug("Events dropped after channel close", dropped=channel.dropped)

    async def _build_context(
        self,
        primary_input: PrimaryInput | dict[str, Any],
        cancel_event: asyncio.Event | None,
    ) -> ContextBuildResult | None:
        """Build the shared context, or return None if cancel_event wins the race."""
        if cancel_event is None:
            return await self._context_builder.build(primary_input)

        build = asyncio.create_task(self._context_builder.build(primary_input), name="context-build")
        cancelled = asyncio.create_task(cancel_event.wait(), name="context-build-cancel")
        try:
            await asyncio.wait({build, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()
            if not build.done():
                build.cancel()
                await asyncio.gather(build, return_exceptions=True)

        if build.cancelled():
            return None
        return build.result()

    async def _supervise(self, tasks: list[asyncio.Task], channel: EventChannel) -> None:
        """Close the channel once every worker has settled, however it ended."""
        try:
            if tasks:
                await asyncio.wait(tasks)
        finally:
            channel.close()

    async def _watch_cancel(self, cancel_event: asyncio.Event, tasks: list[asyncio.Task]) -> None:
        await cancel_event.wait()
        cancelled = 0
        for task in tasks:
            if not task.done():
                task.cancel()
                cancelled += 1
        logger.info("Cancel requested", workers_cancelled=cancelled)

    @staticmethod
    def _retrieve_exceptions(tasks: dict[asyncio.Task, PlanItem]) -> None:
        """Mark failures as retrieved so the loop does not warn about them."""
        for task in tasks:
            if task.done() and not task.cancelled():
                task.exception()
