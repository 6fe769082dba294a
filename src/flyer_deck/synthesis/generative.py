"""Model-backed synthesizer."""

import json

from flyer_deck.config.prompts import SYNTHESIS_PROMPT, SYNTHESIS_SYSTEM_PROMPT
from flyer_deck.content.models import SlideContent
from flyer_deck.core.context import GenerationContext
from flyer_deck.core.exceptions import SynthesisError
from flyer_deck.core.models import ToolResult
from flyer_deck.core.plan import PlanItem
from flyer_deck.synthesis.base import SynthesisResult, Synthesizer
from flyer_deck.utils.logging import get_logger
from flyer_deck.utils.structured_llm import StructuredLLMCaller, StructuredOutputError


logger = get_logger(__name__)


class LLMSynthesizer(Synthesizer):
    """Writes slide content with structured LLM output."""

    def __init__(self, caller: StructuredLLMCaller, model: str = "sonnet"):
        self._caller = caller
        self._model = model

    async def synthesize(
        self,
        item: PlanItem,
        shape: type[SlideContent],
        context: GenerationContext,
        tool_results: list[ToolResult],
    ) -> SynthesisResult:
        prompt = self._build_prompt(item, context, tool_results)
        try:
            result = await self._caller.call_with_usage(
                prompt=prompt,
                response_model=shape,
                system=SYNTHESIS_SYSTEM_PROMPT,
                model=self._model,
            )
        except StructuredOutputError as e:
            raise SynthesisError(
                str(e), content_type=item.content_type.value, usage=e.usage
            ) from e

        logger.debug(
            "Slide content synthesized",
            index=item.index,
            content_type=item.content_type.value,
            attempts=result.attempts,
        )
        return SynthesisResult(content=result.data, usage=result.usage)

    def _build_prompt(
        self,
        item: PlanItem,
        context: GenerationContext,
        tool_results: list[ToolResult],
    ) -> str:
        hints = "\n".join(f"- {hint}" for hint in item.content_hints) or "- (none)"
        research = {
            result.tool_name: (
                result.payload if result.ok else {"error": result.error}
            )
            for result in tool_results
        }
        return SYNTHESIS_PROMPT.format(
            title=item.title,
            description=item.description,
            hints=hints,
            facts=json.dumps(context.prompt_facts(), ensure_ascii=False, indent=2),
            tool_results=json.dumps(research, ensure_ascii=False, indent=2) if research else "(none)",
        )
