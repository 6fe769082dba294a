"""HTML rendering of slide content."""

from flyer_deck.content.models import CONTENT_MODELS, STATIC_CONTENT_TYPES, StaticContent
from flyer_deck.rendering import slides
from flyer_deck.rendering.renderer import (
    esc,
    registered_models,
    render,
    render_degraded,
    render_preview,
    safe_url,
    wrap_document,
)


def _check_exhaustive() -> None:
    missing = set(CONTENT_MODELS.values()) - registered_models()
    if StaticContent not in registered_models():
        missing.add(StaticContent)
    missing_static = STATIC_CONTENT_TYPES - set(slides.STATIC_BODIES)
    if missing or missing_static:
        names = sorted(m.__name__ for m in missing) + sorted(t.value for t in missing_static)
        raise ImportError(f"Slide renderers missing for: {', '.join(names)}")


_check_exhaustive()

__all__ = [
    "esc",
    "render",
    "render_degraded",
    "render_preview",
    "safe_url",
    "wrap_document",
]
