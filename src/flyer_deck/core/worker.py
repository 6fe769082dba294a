"""Per-item worker: one plan item from start event to end event.

States: START -> TOOL_PHASE -> SYNTHESIS_PHASE -> RENDER_PHASE -> END.

Guarantees for each plan item:
- exactly one start event, pushed before the first suspension point
- zero or one generating event (generative strategy only)
- exactly one end event, degraded if any phase failed

Failures inside a phase never escape run(); only cancellation does.
"""

import asyncio
from enum import Enum
from typing import Any

from flyer_deck.content.models import SlideContent, StaticContent, content_model_for, validate_content
from flyer_deck.core.context import GenerationContext
from flyer_deck.core.exceptions import SynthesisError
from flyer_deck.core.models import GeneratedItem, ToolResult
from flyer_deck.core.plan import PlanItem
from flyer_deck.core.usage import TokenUsage, UsageAggregator
from flyer_deck.events.channel import EventChannel
from flyer_deck.events.models import (
    Event,
    SlideEndEvent,
    SlideGeneratingEvent,
    SlideStartEvent,
    UsageEvent,
)
from flyer_deck.rendering import render, render_degraded, render_preview
from flyer_deck.synthesis.base import Synthesizer
from flyer_deck.synthesis.direct import assemble
from flyer_deck.synthesis.grounding import ground
from flyer_deck.synthesis.strategies import SynthesisStrategy, strategy_for
from flyer_deck.tools.bindings import ToolBinding, bindings_for
from flyer_deck.tools.registry import ToolRegistry
from flyer_deck.utils.logging import get_logger


logger = get_logger(__name__)


class WorkerState(str, Enum):
    PENDING = "pending"
    START = "start"
    TOOL_PHASE = "tool_phase"
    SYNTHESIS_PHASE = "synthesis_phase"
    RENDER_PHASE = "render_phase"
    END = "end"


def collect_source_refs(tool_results: list[ToolResult]) -> list[str]:
    """Order-preserving, de-duplicated union of sources from successful tools."""
    refs: list[str] = []
    for result in tool_results:
        if not result.ok:
            continue
        for ref in result.payload.get("sources", []):
            if ref not in refs:
                refs.append(ref)
    return refs


def degraded_item(item: PlanItem, reason: str) -> GeneratedItem:
    return GeneratedItem(
        index=item.index,
        title=item.title,
        artifact=render_degraded(item, reason),
        source_refs=[],
        degraded=True,
    )


class SlideWorker:
    """
    Runs one plan item through its phases.

    The worker shares only the event channel, the usage aggregator and
    the read-only context with other workers.
    """

    def __init__(
        self,
        item: PlanItem,
        context: GenerationContext,
        channel: EventChannel,
        usage: UsageAggregator,
        registry: ToolRegistry,
        synthesizer: Synthesizer | None = None,
        request_id: str | None = None,
    ):
        self.item = item
        self.context = context
        self.channel = channel
        self.usage = usage
        self.registry = registry
        self.synthesizer = synthesizer
        self.request_id = request_id
        self.strategy = strategy_for(item)
        self.state = WorkerState.PENDING
        self._log = logger.bind(
            index=item.index,
            content_type=item.content_type.value,
            strategy=self.strategy.value,
        )

    def _push(self, event: Event) -> None:
        self.channel.push(event)

    async def run(self) -> GeneratedItem:
        self.state = WorkerState.START
        self._push(SlideStartEvent.create(self.item.index, self.item.title, self.request_id))

        try:
            tool_results = await self._tool_phase()
            content = await self._synthesis_phase(tool_results)
            artifact = self._render_phase(content)
            result = GeneratedItem(
                index=self.item.index,
                title=self.item.title,
                artifact=artifact,
                source_refs=collect_source_refs(tool_results),
                degraded=False,
            )
        except Exception as e:
            reason = str(e) or type(e).__name__
            self._log.warning(
                "Slide generation failed, emitting degraded slide",
                phase=self.state.value,
                error=reason,
                error_type=type(e).__name__,
            )
            result = degraded_item(self.item, reason)

        self.state = WorkerState.END
        self._push(SlideEndEvent.create(result, self.request_id))
        self._log.debug("Slide finished", degraded=result.degraded)
        return result

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    async def _tool_phase(self) -> list[ToolResult]:
        bindings = bindings_for(self.item.content_type)
        if not bindings:
            return []
        self.state = WorkerState.TOOL_PHASE
        results = await asyncio.gather(*(self._call_tool(binding) for binding in bindings))
        failed = [r.tool_name for r in results if not r.ok]
        if failed:
            self._log.info("Tools failed for slide", tools=failed)
        return list(results)

    async def _call_tool(self, binding: ToolBinding) -> ToolResult:
        try:
            params = binding.build_params(self.context)
        except Exception as e:
            return ToolResult(tool_name=binding.tool_name, error=str(e) or type(e).__name__)
        return await self.registry.execute(binding.tool_name, params)

    async def _synthesis_phase(self, tool_results: list[ToolResult]) -> SlideContent:
        self.state = WorkerState.SYNTHESIS_PHASE
        content_type = self.item.content_type

        if self.strategy == SynthesisStrategy.STATIC:
            payload: SlideContent | dict[str, Any] = StaticContent(content_type=content_type)
        elif self.strategy == SynthesisStrategy.DIRECT:
            payload = assemble(self.item, self.context, tool_results)
        else:
            payload = await self._generate(tool_results)

        return validate_content(content_type, payload)

    async def _generate(self, tool_results: list[ToolResult]) -> dict[str, Any]:
        if self.synthesizer is None:
            raise SynthesisError(
                "No synthesizer configured", content_type=self.item.content_type.value
            )

        self._push(
            SlideGeneratingEvent.create(
                self.item.index,
                self.item.title,
                render_preview(self.item),
                self.request_id,
            )
        )

        try:
            result = await self.synthesizer.synthesize(
                self.item,
                content_model_for(self.item.content_type),
                self.context,
                tool_results,
            )
        except SynthesisError as e:
            if e.usage is not None:
                self._record_usage(e.usage)
            raise

        self._record_usage(result.usage)
        content = validate_content(self.item.content_type, result.content)
        return ground(self.item.content_type, content, self.context, tool_results)

    def _render_phase(self, content: SlideContent) -> str:
        self.state = WorkerState.RENDER_PHASE
        return render(content, self.item.title)

    def _record_usage(self, usage: TokenUsage) -> None:
        record = self.usage.record(f"slide-{self.item.index}", usage)
        self._push(UsageEvent.create(record, self.request_id))
