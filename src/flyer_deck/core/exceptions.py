"""Domain exceptions for deck generation."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flyer_deck.core.usage import TokenUsage


class FlyerDeckError(Exception):
    """Base exception for all deck generation errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class ContextBuildError(FlyerDeckError):
    """Shared context could not be built. Fatal for the whole run."""

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message, recoverable=False)
        self.stage = stage


class ToolError(FlyerDeckError):
    """Error raised by a tool during execution."""

    def __init__(
        self,
        message: str,
        tool_name: str | None = None,
        recoverable: bool = True,
    ):
        super().__init__(message, recoverable)
        self.tool_name = tool_name


class ContentValidationError(FlyerDeckError):
    """Synthesized or assembled content does not match its content shape."""

    def __init__(self, message: str, content_type: str | None = None):
        super().__init__(message)
        self.content_type = content_type


class SynthesisError(FlyerDeckError):
    """Error during content synthesis for a single slide."""

    def __init__(
        self,
        message: str,
        content_type: str | None = None,
        usage: "TokenUsage | None" = None,
    ):
        super().__init__(message)
        self.content_type = content_type
        self.usage = usage  # tokens spent before the failure


class RenderError(FlyerDeckError):
    """Error while rendering content into an artifact."""

    def __init__(self, message: str, content_type: str | None = None):
        super().__init__(message)
        self.content_type = content_type
