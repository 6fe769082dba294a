"""Content shapes for every slide type."""

from flyer_deck.content.models import (
    CONTENT_MODELS,
    STATIC_CONTENT_TYPES,
    ContentType,
    SlideContent,
    StaticContent,
    validate_content,
)

__all__ = [
    "CONTENT_MODELS",
    "STATIC_CONTENT_TYPES",
    "ContentType",
    "SlideContent",
    "StaticContent",
    "validate_content",
]
