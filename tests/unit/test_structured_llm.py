"""Tests for structured LLM output and the model-backed synthesizer."""

import pytest

from flyer_deck.content.models import ContentType, FloorPlanContent
from flyer_deck.core.exceptions import SynthesisError
from flyer_deck.core.models import ToolResult
from flyer_deck.core.plan import get_plan
from flyer_deck.core.usage import TokenUsage
from flyer_deck.synthesis.generative import LLMSynthesizer
from flyer_deck.utils.llm import LLMResponse
from flyer_deck.utils.structured_llm import StructuredLLMCaller, StructuredOutputError


FLOOR_PLAN_JSON = (
    '{"points": [{"title": "南向き", "description": "明るい"}],'
    ' "specs": {"area": "70.5㎡", "layout": "3LDK"}}'
)


class FakeLLMClient:
    """Returns queued responses in order and records prompts."""

    def __init__(self, outputs: list[str]):
        self.outputs = list(outputs)
        self.prompts: list[str] = []
        self.images = []

    async def complete(self, prompt, system="", model="sonnet", images=None, **kwargs):
        self.prompts.append(prompt)
        self.images.append(images)
        return LLMResponse(
            content=self.outputs.pop(0),
            model="claude-test",
            usage=TokenUsage(input_tokens=10, output_tokens=5),
        )


class TestStructuredLLMCaller:
    """Tests for StructuredLLMCaller."""

    @pytest.mark.asyncio
    async def test_parses_fenced_json(self):
        client = FakeLLMClient([f"Here you go:\n```json\n{FLOOR_PLAN_JSON}\n```"])
        caller = StructuredLLMCaller(client)

        result = await caller.call_with_usage("write", FloorPlanContent)

        assert isinstance(result.data, FloorPlanContent)
        assert result.attempts == 1
        assert result.model == "claude-test"

    @pytest.mark.asyncio
    async def test_retries_with_error_feedback(self):
        """Test a schema error is fed back and usage accumulates across attempts."""
        client = FakeLLMClient(['{"points": []}', FLOOR_PLAN_JSON])
        caller = StructuredLLMCaller(client, max_retries=3)

        result = await caller.call_with_usage("write", FloorPlanContent)

        assert result.attempts == 2
        assert result.usage == TokenUsage(input_tokens=20, output_tokens=10)
        assert "PREVIOUS ATTEMPT FAILED" in client.prompts[1]
        assert "Schema Validation Error" in client.prompts[1]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        client = FakeLLMClient(["not json", "still not json"])
        caller = StructuredLLMCaller(client, max_retries=2)

        with pytest.raises(StructuredOutputError) as exc_info:
            await caller.call_with_usage("write", FloorPlanContent)

        assert len(exc_info.value.attempts) == 2
        assert exc_info.value.usage.input_tokens == 20

    def test_extract_json_from_prose(self):
        caller = StructuredLLMCaller(FakeLLMClient([]))
        text = 'Sure! {"a": {"b": "}"}} trailing'
        assert caller._extract_json(text) == '{"a": {"b": "}"}}'


class TestLLMSynthesizer:
    """Tests for LLMSynthesizer."""

    @pytest.mark.asyncio
    async def test_prompt_includes_facts_and_tool_results(self, context):
        client = FakeLLMClient([FLOOR_PLAN_JSON])
        synthesizer = LLMSynthesizer(StructuredLLMCaller(client))
        item = next(i for i in get_plan() if i.content_type == ContentType.FLOOR_PLAN)
        results = [
            ToolResult(tool_name="nearest_stations", payload={"stations": [{"name": "代々木"}]}),
            ToolResult(tool_name="shelters", error="timeout"),
        ]

        result = await synthesizer.synthesize(item, FloorPlanContent, context, results)

        assert isinstance(result.content, FloorPlanContent)
        assert result.usage.input_tokens == 10
        prompt = client.prompts[0]
        assert "パークハウス代々木" in prompt
        assert "代々木" in prompt
        assert '"error": "timeout"' in prompt
        assert item.title in prompt

    @pytest.mark.asyncio
    async def test_failure_carries_usage(self, context):
        client = FakeLLMClient(["nope", "nope", "nope"])
        synthesizer = LLMSynthesizer(StructuredLLMCaller(client, max_retries=3))
        item = next(i for i in get_plan() if i.content_type == ContentType.FLOOR_PLAN)

        with pytest.raises(SynthesisError) as exc_info:
            await synthesizer.synthesize(item, FloorPlanContent, context, [])

        assert exc_info.value.usage == TokenUsage(input_tokens=30, output_tokens=15)
        assert exc_info.value.content_type == "floor-plan"
