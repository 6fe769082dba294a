"""Synthesizer contract."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from flyer_deck.content.models import SlideContent
from flyer_deck.core.context import GenerationContext
from flyer_deck.core.models import ToolResult
from flyer_deck.core.plan import PlanItem
from flyer_deck.core.usage import TokenUsage


@dataclass
class SynthesisResult:
    content: SlideContent
    usage: TokenUsage = field(default_factory=TokenUsage)


class Synthesizer(ABC):
    """
    Produces slide content of a given shape.

    Implementations must return an instance of ``shape``; the worker
    re-validates it before rendering either way. Failures raise
    SynthesisError, optionally carrying the usage spent so far.
    """

    @abstractmethod
    async def synthesize(
        self,
        item: PlanItem,
        shape: type[SlideContent],
        context: GenerationContext,
        tool_results: list[ToolResult],
    ) -> SynthesisResult:
        ...
