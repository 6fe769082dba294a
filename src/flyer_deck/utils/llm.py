"""Async LLM client wrapper."""

from flyer_deck.core.limiter import LLM_COLLABORATOR, CollaboratorLimiter
from flyer_deck.utils.logging import get_logger
from flyer_deck.utils.providers import (
    BaseLLMProvider,
    ImageInput,
    LLMResponse,
    create_provider,
)


logger = get_logger(__name__)

__all__ = ["LLMClient", "LLMResponse", "ImageInput"]


class LLMClient:
    """
    Async LLM client shared by every worker in the process.

    Features:
    - Model aliases ("haiku", "sonnet")
    - Automatic retry, circuit breaking and timeouts (in the provider)
    - Optional concurrency limit through a CollaboratorLimiter

    Example:
        client = LLMClient()
        response = await client.complete("Summarize...", model="sonnet")
    """

    def __init__(
        self,
        provider: BaseLLMProvider | str | None = None,
        limiter: CollaboratorLimiter | None = None,
        **provider_kwargs,
    ):
        """
        Initialize LLM client.

        Args:
            provider: Provider instance or name. Built from settings if not given.
            limiter: Optional limiter; calls hold an "llm" slot while in flight.
            **provider_kwargs: Provider-specific arguments (api_key)
        """
        if isinstance(provider, BaseLLMProvider):
            self._provider = provider
        else:
            self._provider = create_provider(provider, **provider_kwargs)
        self._limiter = limiter

        logger.info(
            "LLM client initialized",
            provider=self._provider.provider_name,
        )

    @property
    def provider_name(self) -> str:
        """Get the name of the current provider."""
        return self._provider.provider_name

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
            images: Optional image inputs

        Returns:
            LLMResponse with content and metadata
        """
        if self._limiter is None:
            return await self._complete(prompt, system, model, max_tokens, temperature, images)
        async with self._limiter.slot(LLM_COLLABORATOR):
            return await self._complete(prompt, system, model, max_tokens, temperature, images)

    async def _complete(
        self,
        prompt: str,
        system: str,
        model: str,
        max_tokens: int,
        temperature: float,
        images: list[ImageInput] | None,
    ) -> LLMResponse:
        return await self._provider.complete(
            prompt=prompt,
            system=system,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            images=images,
        )
