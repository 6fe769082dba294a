"""Anthropic direct API provider.

Resilience patterns applied:
- Retry with exponential backoff for transient failures
- Circuit breaker to prevent cascade failures to overloaded API
- Timeout to bound operation duration
"""

from typing import Any

from anthropic import AsyncAnthropic

from flyer_deck.core.resilience import (
    llm_circuit_breaker,
    llm_retry,
    llm_timeout,
    wrap_anthropic_errors,
)
from flyer_deck.core.usage import TokenUsage
from flyer_deck.utils.logging import get_logger
from flyer_deck.utils.providers.base import BaseLLMProvider, ImageInput, LLMResponse


logger = get_logger(__name__)


class AnthropicProvider(BaseLLMProvider):
    """
    Direct Anthropic API provider.

    Uses the official Anthropic Python SDK. Supports image blocks for
    reading flyer scans.
    """

    def __init__(self, api_key: str):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
        """
        self._client = AsyncAnthropic(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return "anthropic"

    @llm_retry
    @llm_circuit_breaker
    @llm_timeout
    @wrap_anthropic_errors
    async def complete(
        self,
        prompt: str,
        system: str = "",
        model: str = "sonnet",
        max_tokens: int = 4096,
        temperature: float = 0.0,
        images: list[ImageInput] | None = None,
    ) -> LLMResponse:
        resolved_model = self.resolve_model(model)

        logger.debug(
            "Calling Anthropic API",
            model=resolved_model,
            prompt_length=len(prompt),
            system_length=len(system),
            images=len(images or []),
        )

        content: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.media_type,
                    "data": image.data,
                },
            }
            for image in images or []
        ]
        content.append({"type": "text", "text": prompt})

        api_params: dict[str, Any] = {
            "model": resolved_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": content}],
        }
        if system:
            api_params["system"] = system

        response = await self._client.messages.create(**api_params)

        text = "".join(block.text for block in response.content if block.type == "text")
        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )

        logger.debug(
            "Anthropic response received",
            model=resolved_model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            stop_reason=response.stop_reason,
        )

        return LLMResponse(
            content=text,
            model=resolved_model,
            usage=usage,
            stop_reason=response.stop_reason or "",
            provider=self.provider_name,
        )
