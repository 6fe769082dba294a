"""LLM provider implementations.

Usage:
    from flyer_deck.utils.providers import create_provider

    # Create provider based on settings
    provider = create_provider()

    # Or explicitly
    provider = create_provider("anthropic", api_key="sk-...")
"""

from flyer_deck.utils.providers.anthropic import AnthropicProvider
from flyer_deck.utils.providers.base import BaseLLMProvider, ImageInput, LLMResponse


def create_provider(
    provider: str | None = None,
    **kwargs,
) -> BaseLLMProvider:
    """
    Factory function to create an LLM provider.

    Args:
        provider: Provider name. Only "anthropic" is supported.
        **kwargs: Provider-specific arguments (api_key)

    Returns:
        Configured LLM provider instance

    Raises:
        ValueError: If the provider is unknown or the API key is missing
    """
    from flyer_deck.config.settings import get_settings

    settings = get_settings()
    provider_name = provider or "anthropic"

    if provider_name == "anthropic":
        api_key = kwargs.get("api_key") or settings.anthropic_api_key
        if not api_key:
            raise ValueError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY environment variable."
            )
        return AnthropicProvider(api_key=api_key)

    raise ValueError(
        f"Unknown LLM provider: {provider_name}. Supported providers: anthropic"
    )


__all__ = [
    "AnthropicProvider",
    "BaseLLMProvider",
    "ImageInput",
    "LLMResponse",
    "create_provider",
]
