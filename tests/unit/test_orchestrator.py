"""Tests for the deck orchestrator."""

import asyncio

import pytest

from fakes import FakeExtractor, FakeSynthesizer, FakeTool
from flyer_deck.core import orchestrator as orchestrator_module
from flyer_deck.core.context import ContextBuilder, FlyerFacts
from flyer_deck.core.orchestrator import CANCELLED_MESSAGE, DeckOrchestrator
from flyer_deck.core.plan import get_plan
from flyer_deck.core.worker import SlideWorker
from flyer_deck.events import EventType


class BlockingTool(FakeTool):
    """Tool that never returns and records whether it was cancelled."""

    def __init__(self, name: str):
        super().__init__(name)
        self.cancelled = False

    async def execute(self, params):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return {}


class BrokenBuilder(ContextBuilder):
    """Builder failing with an error outside the context-build hierarchy."""

    async def build(self, primary_input):
        raise RuntimeError("context store unreachable")


class CancellingBuilder(ContextBuilder):
    """Builder that requests cancellation just as it finishes."""

    def __init__(self, registry, cancel_event):
        super().__init__(registry)
        self.cancel_event = cancel_event

    async def build(self, primary_input):
        built = await super().build(primary_input)
        self.cancel_event.set()
        return built


def make_orchestrator(registry, synthesizer, extractor=None, plan=None):
    builder = ContextBuilder(registry=registry, extractor=extractor)
    return DeckOrchestrator(builder, registry, synthesizer, plan=plan)


async def collect(orchestrator, primary_input, **kwargs):
    return [event async for event in orchestrator.run(primary_input, **kwargs)]


def types_of(events):
    return [event.event_type for event in events]


class TestDeckRun:
    """Tests for a complete run."""

    @pytest.mark.asyncio
    async def test_full_plan(self, registry, synthesizer, primary_input):
        """Test every item gets one start and one end, and end-of-run comes last."""
        orchestrator = make_orchestrator(registry, synthesizer)

        events = await collect(orchestrator, primary_input)

        starts = [e.data["index"] for e in events if e.event_type == EventType.START]
        ends = [e.data["index"] for e in events if e.event_type == EventType.END]
        assert sorted(starts) == list(range(12))
        assert sorted(ends) == list(range(12))
        for index in range(12):
            start_at = next(i for i, e in enumerate(events) if e.event_type == EventType.START and e.data["index"] == index)
            end_at = next(i for i, e in enumerate(events) if e.event_type == EventType.END and e.data["index"] == index)
            assert start_at < end_at

        final = events[-1]
        assert final.event_type == EventType.END_OF_RUN
        assert [item.index for item in final.items] == list(range(12))
        assert not any(item.degraded for item in final.items)
        assert types_of(events).count(EventType.END_OF_RUN) == 1
        assert EventType.ERROR not in types_of(events)

    @pytest.mark.asyncio
    async def test_usage_totals(self, registry, synthesizer, primary_input):
        """Test total usage is the sum of the three generative slides."""
        orchestrator = make_orchestrator(registry, synthesizer)

        events = await collect(orchestrator, primary_input)

        usage_events = [e for e in events if e.event_type == EventType.USAGE]
        assert sorted(e.data["step"] for e in usage_events) == ["slide-2", "slide-3", "slide-4"]
        assert events[-1].data["usage"] == {"promptUnits": 300, "completionUnits": 150}

    @pytest.mark.asyncio
    async def test_three_item_plan(self, registry, synthesizer, primary_input):
        plan = [get_plan()[i] for i in (10, 2, 0)]
        orchestrator = make_orchestrator(registry, synthesizer, plan=plan)

        events = await collect(orchestrator, primary_input)

        final = events[-1]
        assert [item.index for item in final.items] == [0, 2, 10]
        assert types_of(events).count(EventType.START) == 3
        assert types_of(events).count(EventType.END) == 3
        assert types_of(events).count(EventType.GENERATING) == 1

    @pytest.mark.asyncio
    async def test_request_id_on_every_event(self, registry, synthesizer, primary_input):
        orchestrator = make_orchestrator(registry, synthesizer, plan=get_plan()[:2])

        events = await collect(orchestrator, primary_input, request_id="req-42")

        assert {event.request_id for event in events} == {"req-42"}

    @pytest.mark.asyncio
    async def test_extraction_usage_reported_first(self, registry, synthesizer, primary_input, complete_facts):
        """Test flyer extraction runs when facts are incomplete and its usage is the first event."""
        extractor = FakeExtractor(facts=complete_facts)
        orchestrator = make_orchestrator(registry, synthesizer, extractor=extractor)
        sparse = primary_input.model_copy(update={"facts": FlyerFacts(layout="2LDK")})

        events = await collect(orchestrator, sparse)

        assert extractor.calls == 1
        assert events[0].event_type == EventType.USAGE
        assert events[0].data["step"] == "extract"
        assert events[-1].data["usage"]["promptUnits"] == 1200 + 300


class TestFailureIsolation:
    """Tests for per-item failure isolation."""

    @pytest.mark.asyncio
    async def test_tool_failure_degrades_only_its_slide(self, registry, synthesizer, primary_input):
        registry.add(FakeTool("nearby_facilities", error="quota exceeded"))
        orchestrator = make_orchestrator(registry, synthesizer)

        events = await collect(orchestrator, primary_input)

        items = events[-1].items
        assert [item.index for item in items if item.degraded] == [5]
        assert events[-1].event_type == EventType.END_OF_RUN

    @pytest.mark.asyncio
    async def test_geocode_failure_is_not_fatal(self, registry, synthesizer, primary_input):
        """Test location slides degrade but the run completes without a location."""
        registry.add(FakeTool("geocode", error="no candidate"))
        orchestrator = make_orchestrator(registry, synthesizer)

        events = await collect(orchestrator, primary_input)

        final = events[-1]
        assert final.event_type == EventType.END_OF_RUN
        degraded = {item.index for item in final.items if item.degraded}
        assert {5, 7} <= degraded
        assert 0 not in degraded and 10 not in degraded

    @pytest.mark.asyncio
    async def test_worker_raising_is_filled_in(self, registry, synthesizer, primary_input, monkeypatch):
        """Test a worker that raises past its own handling still gets an item and an end event."""

        class ExplodingWorker(SlideWorker):
            async def run(self):
                if self.item.index == 1:
                    raise RuntimeError("boom")
                return await super().run()

        monkeypatch.setattr(orchestrator_module, "SlideWorker", ExplodingWorker)
        orchestrator = make_orchestrator(registry, synthesizer, plan=get_plan()[:3])

        events = await collect(orchestrator, primary_input)

        final = events[-1]
        assert final.event_type == EventType.END_OF_RUN
        assert [item.index for item in final.items] == [0, 1, 2]
        assert final.items[1].degraded
        assert "boom" in final.items[1].artifact
        assert sorted(e.data["index"] for e in events if e.event_type == EventType.END) == [0, 1, 2]


class TestFatalContext:
    """Tests for context build failures."""

    @pytest.mark.asyncio
    async def test_extraction_failure_ends_run(self, registry, synthesizer, primary_input):
        extractor = FakeExtractor(error=RuntimeError("vision model unavailable"))
        orchestrator = make_orchestrator(registry, synthesizer, extractor=extractor)

        events = await collect(orchestrator, primary_input.model_copy(update={"facts": None}))

        assert types_of(events) == [EventType.ERROR]
        assert "vision model unavailable" in events[0].data["message"]
        assert synthesizer.calls == []

    @pytest.mark.asyncio
    async def test_invalid_input_ends_run(self, registry, synthesizer):
        orchestrator = make_orchestrator(registry, synthesizer)

        events = await collect(orchestrator, {"customer_name": "山田太郎"})

        assert types_of(events) == [EventType.ERROR]

    @pytest.mark.asyncio
    async def test_unexpected_build_error_ends_run(self, registry, synthesizer, primary_input):
        """Test any exception from the context build becomes one error event."""
        orchestrator = DeckOrchestrator(BrokenBuilder(registry), registry, synthesizer)

        events = await collect(orchestrator, primary_input)

        assert types_of(events) == [EventType.ERROR]
        assert "context store unreachable" in events[0].data["message"]
        assert synthesizer.calls == []


class TestCancellation:
    """Tests for cancelling a run."""

    @pytest.mark.asyncio
    async def test_cancel_event_ends_with_error(self, registry, primary_input):
        """Test setting the cancel event stops workers and ends with one error."""
        synthesizer = FakeSynthesizer(delay=10)
        orchestrator = make_orchestrator(registry, synthesizer)
        cancel_event = asyncio.Event()

        events = []
        async for event in orchestrator.run(primary_input, cancel_event=cancel_event):
            events.append(event)
            if event.event_type == EventType.START:
                cancel_event.set()

        assert events[-1].event_type == EventType.ERROR
        assert events[-1].data["message"] == CANCELLED_MESSAGE
        assert EventType.END_OF_RUN not in types_of(events)

    @pytest.mark.asyncio
    async def test_already_cancelled(self, registry, synthesizer, primary_input):
        cancel_event = asyncio.Event()
        cancel_event.set()
        orchestrator = make_orchestrator(registry, synthesizer)

        events = await collect(orchestrator, primary_input, cancel_event=cancel_event)

        assert types_of(events) == [EventType.ERROR]
        assert synthesizer.calls == []

    @pytest.mark.asyncio
    async def test_cancel_during_context_build(self, registry, synthesizer, primary_input, complete_facts):
        """Test cancelling during extraction aborts it and starts no worker."""
        extractor = FakeExtractor(facts=complete_facts, delay=10)
        orchestrator = make_orchestrator(registry, synthesizer, extractor=extractor)
        cancel_event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel_event.set)

        events = await asyncio.wait_for(
            collect(
                orchestrator,
                primary_input.model_copy(update={"facts": None}),
                cancel_event=cancel_event,
            ),
            timeout=5,
        )

        assert types_of(events) == [EventType.ERROR]
        assert events[0].data["message"] == CANCELLED_MESSAGE
        assert extractor.cancelled
        assert synthesizer.calls == []

    @pytest.mark.asyncio
    async def test_cancel_as_context_build_finishes(self, registry, synthesizer, primary_input):
        """Test a cancel set while the build returns still prevents fan-out."""
        cancel_event = asyncio.Event()
        builder = CancellingBuilder(registry, cancel_event)
        orchestrator = DeckOrchestrator(builder, registry, synthesizer)

        events = await collect(orchestrator, primary_input, cancel_event=cancel_event)

        assert types_of(events) == [EventType.ERROR]
        assert events[0].data["message"] == CANCELLED_MESSAGE
        assert synthesizer.calls == []

    @pytest.mark.asyncio
    async def test_closing_consumer_cancels_workers(self, registry, synthesizer, primary_input):
        """Test closing the stream early tears down in-flight tool calls."""
        blocking = BlockingTool("nearby_facilities")
        registry.add(blocking)
        orchestrator = make_orchestrator(registry, synthesizer)

        stream = orchestrator.run(primary_input)
        first = await stream.__anext__()
        assert first.event_type == EventType.START
        await asyncio.sleep(0.01)
        await stream.aclose()

        assert blocking.cancelled
