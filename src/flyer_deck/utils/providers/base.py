"""Base interface for LLM providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from flyer_deck.core.usage import TokenUsage


@dataclass
class ImageInput:
    """Base64 image passed alongside a prompt."""

    data: str
    media_type: str


@dataclass
class LLMResponse:
    """Unified response from any LLM provider."""

    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    stop_reason: str = ""
    provider: str = "unknown"


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Providers implement this interface so that synthesis and extraction
    do not depend on a specific SDK.
    """

    # Model aliases mapping - override in subclasses if different
    MODEL_ALIASES: dict[str, str] = {
        "haiku": "claude-3-5-haiku-20241022",
        "sonnet": "claude-3-5-sonnet-20241022",
    }

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'anthropic')."""
        ...

    def resolve_model(self, model: str) -> str:
        """Resolve model alias to full model ID."""
        return self.MODEL_ALIASES.get(model, model)

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system: str = "",
        model: str = "sonnet",
        max_tokens: int = 4096,
        temperature: float = 0.0,
        images: list[ImageInput] | None = None,
    ) -> LLMResponse:
        """
        Call LLM and get complete response.

        Args:
            prompt: User prompt
            system: System prompt
            model: Model name or alias
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            images: Optional images placed before the prompt text

        Returns:
            LLMResponse with content and metadata
        """
        ...
