"""Tests for the per-item slide worker."""

import asyncio

import pytest

from fakes import PNG_BASE64, FakeSynthesizer, FakeTool
from flyer_deck.content.models import ContentType
from flyer_deck.core.plan import get_plan
from flyer_deck.core.usage import UsageAggregator
from flyer_deck.core.worker import SlideWorker, WorkerState, collect_source_refs
from flyer_deck.core.models import ToolResult
from flyer_deck.events import EventChannel, EventType


def plan_item(content_type: ContentType):
    return next(item for item in get_plan() if item.content_type == content_type)


async def run_worker(worker: SlideWorker, channel: EventChannel):
    result = await worker.run()
    channel.close()
    return result, [event async for event in channel]


def make_worker(content_type, context, registry, synthesizer=None):
    channel = EventChannel()
    usage = UsageAggregator()
    worker = SlideWorker(
        item=plan_item(content_type),
        context=context,
        channel=channel,
        usage=usage,
        registry=registry,
        synthesizer=synthesizer,
        request_id="req-1",
    )
    return worker, channel, usage


class TestStaticAndDirect:
    """Tests for static and direct strategies."""

    @pytest.mark.asyncio
    async def test_static_item(self, context, registry, synthesizer):
        """Test a static item emits start then end and calls nothing."""
        worker, channel, usage = make_worker(ContentType.TAX, context, registry, synthesizer)

        result, events = await run_worker(worker, channel)

        assert [e.event_type for e in events] == [EventType.START, EventType.END]
        assert not result.degraded
        assert result.source_refs == []
        assert synthesizer.calls == []
        assert usage.records() == []
        assert worker.state == WorkerState.END

    @pytest.mark.asyncio
    async def test_direct_item_uses_tool_payload(self, context, registry, tools):
        worker, channel, _ = make_worker(ContentType.NEARBY, context, registry)

        result, events = await run_worker(worker, channel)

        assert not result.degraded
        assert "マルエツ" in result.artifact
        assert result.source_refs == ["https://developers.google.com/maps/documentation/places"]
        assert tools["nearby_facilities"].calls == [
            {"latitude": context.location.latitude, "longitude": context.location.longitude}
        ]
        assert events[-1].item == result

    @pytest.mark.asyncio
    async def test_direct_item_degrades_when_tool_fails(self, context, registry):
        """Test a failing required tool yields a degraded slide, not an exception."""
        registry.add(FakeTool("nearby_facilities", error="quota exceeded"))
        worker, channel, _ = make_worker(ContentType.NEARBY, context, registry)

        result, events = await run_worker(worker, channel)

        assert result.degraded
        assert 'data-degraded="true"' in result.artifact
        assert "quota exceeded" in result.artifact
        assert [e.event_type for e in events] == [EventType.START, EventType.END]

    @pytest.mark.asyncio
    async def test_optional_tool_failure_does_not_degrade(self, context, registry):
        """Test hazard still renders when only the shelter lookup fails."""
        registry.add(FakeTool("shelters", error="upstream 500"))
        worker, channel, _ = make_worker(ContentType.HAZARD, context, registry)

        result, _ = await run_worker(worker, channel)

        assert not result.degraded
        assert result.source_refs == ["https://disaportal.gsi.go.jp/"]

    @pytest.mark.asyncio
    async def test_missing_location_degrades_location_slides(self, context, registry, tools):
        no_location = context.model_copy(update={"location": None})
        worker, channel, _ = make_worker(ContentType.NEARBY, no_location, registry)

        result, _ = await run_worker(worker, channel)

        assert result.degraded
        assert tools["nearby_facilities"].calls == []

    @pytest.mark.asyncio
    async def test_computed_items(self, context, registry):
        for content_type in (ContentType.FUNDING, ContentType.EXPENSES):
            worker, channel, _ = make_worker(content_type, context, registry)
            result, _ = await run_worker(worker, channel)
            assert not result.degraded, result.artifact


class TestGenerative:
    """Tests for the generative strategy."""

    @pytest.mark.asyncio
    async def test_generative_event_sequence(self, context, registry, synthesizer):
        """Test start, generating, usage and end arrive in that order."""
        worker, channel, usage = make_worker(
            ContentType.PROPERTY_HIGHLIGHT, context, registry, synthesizer
        )

        result, events = await run_worker(worker, channel)

        assert [e.event_type for e in events] == [
            EventType.START,
            EventType.GENERATING,
            EventType.USAGE,
            EventType.END,
        ]
        assert 'data-preview="true"' in events[1].data["partialArtifact"]
        assert events[2].data == {"step": "slide-2", "promptUnits": 100, "completionUnits": 50}
        assert not result.degraded
        assert [r.step for r in usage.records()] == ["slide-2"]

    @pytest.mark.asyncio
    async def test_synthesis_failure_records_usage_and_degrades(self, context, registry):
        synthesizer = FakeSynthesizer(fail_types={"floor-plan"})
        worker, channel, usage = make_worker(ContentType.FLOOR_PLAN, context, registry, synthesizer)

        result, events = await run_worker(worker, channel)

        assert result.degraded
        assert "model output invalid" in result.artifact
        assert EventType.USAGE in [e.event_type for e in events]
        assert usage.total().input_tokens == 100

    @pytest.mark.asyncio
    async def test_unexpected_synthesizer_error_degrades(self, context, registry):
        synthesizer = FakeSynthesizer(raise_types={"floor-plan"})
        worker, channel, _ = make_worker(ContentType.FLOOR_PLAN, context, registry, synthesizer)

        result, events = await run_worker(worker, channel)

        assert result.degraded
        assert events[-1].event_type == EventType.END

    @pytest.mark.asyncio
    async def test_no_synthesizer_degrades_without_preview(self, context, registry):
        worker, channel, _ = make_worker(ContentType.FLOOR_PLAN, context, registry, None)

        result, events = await run_worker(worker, channel)

        assert result.degraded
        assert [e.event_type for e in events] == [EventType.START, EventType.END]

    @pytest.mark.asyncio
    async def test_tool_failure_is_passed_to_synthesizer(self, context, registry, synthesizer):
        """Test a generative slide still gets written when its tools fail."""
        registry.add(FakeTool("nearest_stations", error="timeout"))
        registry.add(FakeTool("transit_routes", error="timeout"))
        worker, channel, _ = make_worker(ContentType.ACCESS, context, registry, synthesizer)

        result, _ = await run_worker(worker, channel)

        assert not result.degraded
        assert result.source_refs == []
        assert [item.content_type for item in synthesizer.calls] == [ContentType.ACCESS]
        # Routes written by the model are dropped without a route lookup
        assert "新宿" not in result.artifact
        assert "代々木" in result.artifact

    @pytest.mark.asyncio
    async def test_access_routes_come_from_route_lookup(self, context, registry, synthesizer):
        """Test travel times on the access slide are the looked-up ones, not the model's."""
        worker, channel, _ = make_worker(ContentType.ACCESS, context, registry, synthesizer)

        result, _ = await run_worker(worker, channel)

        assert not result.degraded
        assert "JR総武線 → JR中央線" in result.artifact
        assert "19分" in result.artifact
        assert "羽田空港" in result.artifact
        assert "新宿" not in result.artifact
        assert "https://developers.google.com/maps/documentation/routes" in result.source_refs

    @pytest.mark.asyncio
    async def test_floor_plan_image_is_the_flyer(self, context, registry):
        """Test an image URL written by the model is replaced by the flyer image."""
        synthesizer = FakeSynthesizer(
            overrides={"floor-plan": {"image_url": "https://tracker.example/pixel.png"}}
        )
        worker, channel, _ = make_worker(ContentType.FLOOR_PLAN, context, registry, synthesizer)

        result, _ = await run_worker(worker, channel)

        assert not result.degraded
        assert "tracker.example" not in result.artifact
        assert f'src="data:image/png;base64,{PNG_BASE64}"' in result.artifact


class TestWorkerCancellation:
    """Tests for cancellation."""

    @pytest.mark.asyncio
    async def test_cancellation_propagates_without_end_event(self, context, registry):
        registry.add(FakeTool("nearby_facilities", payload={}, delay=10))
        worker, channel, _ = make_worker(ContentType.NEARBY, context, registry)

        task = asyncio.create_task(worker.run())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        channel.close()
        events = [event async for event in channel]
        assert [e.event_type for e in events] == [EventType.START]


class TestSourceRefs:
    def test_union_preserves_order_and_skips_failures(self):
        results = [
            ToolResult(tool_name="a", payload={"sources": ["x", "y"]}),
            ToolResult(tool_name="b", error="boom", payload={"sources": ["z"]}),
            ToolResult(tool_name="c", payload={"sources": ["y", "w"]}),
        ]
        assert collect_source_refs(results) == ["x", "y", "w"]
