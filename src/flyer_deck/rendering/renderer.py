"""Pure rendering of validated content into HTML slide artifacts.

Every free-text value is HTML-escaped and every URL is restricted to
http, https or inline image data before it reaches the markup.
"""

import html
from functools import singledispatch
from typing import Any

from flyer_deck.content.models import CONTENT_MODELS, ContentType, SlideContent, StaticContent
from flyer_deck.core.exceptions import RenderError
from flyer_deck.core.plan import PlanItem
from flyer_deck.rendering.design_system import STYLESHEET


SAFE_URL_PREFIXES = ("http://", "https://", "data:image/")

_CONTENT_TYPES: dict[type[SlideContent], ContentType] = {
    model: content_type for content_type, model in CONTENT_MODELS.items()
}


def esc(value: Any) -> str:
    """Escape a value for HTML text or attribute context. None renders empty."""
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def safe_url(url: str | None) -> str:
    """Escaped URL if its scheme is allowed, otherwise an empty string."""
    if not url:
        return ""
    candidate = url.strip()
    if not candidate.lower().startswith(SAFE_URL_PREFIXES):
        return ""
    return esc(candidate)


def image_tag(url: str | None, alt: str = "") -> str:
    src = safe_url(url)
    if not src:
        return ""
    return f'<img src="{src}" alt="{esc(alt)}">'


def content_type_of(content: SlideContent) -> ContentType:
    if isinstance(content, StaticContent):
        return content.content_type
    try:
        return _CONTENT_TYPES[type(content)]
    except KeyError:
        raise RenderError(f"Unknown content model {type(content).__name__}") from None


def wrap_document(body: str, content_type: str, title: str | None = None, **attrs: str) -> str:
    """Wrap a slide body in a standalone HTML document."""
    extra = "".join(f' data-{esc(key)}="{esc(value)}"' for key, value in attrs.items())
    heading = f'<h2 class="slide__title">{esc(title)}</h2>' if title else ""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="ja"><head><meta charset="utf-8">'
        f"<title>{esc(title or content_type)}</title>"
        f"<style>{STYLESHEET}</style></head>"
        f'<body><section class="slide slide--{esc(content_type)}"'
        f' data-content-type="{esc(content_type)}"{extra}>'
        f"{heading}{body}</section></body></html>"
    )


@singledispatch
def render_body(content: SlideContent) -> str:
    """Slide body markup for a content model. Implementations live in slides.py."""
    raise RenderError(f"No renderer for {type(content).__name__}")


def render(content: SlideContent, title: str | None = None) -> str:
    """Render validated content to a complete HTML artifact."""
    content_type = content_type_of(content)
    return wrap_document(render_body(content), content_type.value, title)


def render_degraded(item: PlanItem, reason: str) -> str:
    """Artifact shown in place of a slide that failed."""
    body = (
        '<div class="error-banner" role="alert">'
        "このスライドは生成できませんでした</div>"
        f'<p class="error-reason">{esc(reason)}</p>'
    )
    return wrap_document(body, item.content_type.value, item.title, degraded="true")


def render_preview(item: PlanItem) -> str:
    """Placeholder artifact streamed while a slide is being written."""
    body = (
        '<div class="slide__body">'
        '<div class="skeleton"></div><div class="skeleton"></div>'
        "</div>"
    )
    return wrap_document(body, item.content_type.value, item.title, preview="true")


def registered_models() -> set[type]:
    return {cls for cls in render_body.registry if cls is not object and cls is not SlideContent}
