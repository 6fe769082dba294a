"""Event models and the progress channel."""

from flyer_deck.events.channel import EventChannel
from flyer_deck.events.models import (
    EndOfRunEvent,
    ErrorEvent,
    Event,
    SlideEndEvent,
    SlideGeneratingEvent,
    SlideStartEvent,
    UsageEvent,
)
from flyer_deck.events.types import EventType

__all__ = [
    "EventChannel",
    "EventType",
    "Event",
    "SlideStartEvent",
    "SlideGeneratingEvent",
    "SlideEndEvent",
    "UsageEvent",
    "ErrorEvent",
    "EndOfRunEvent",
]
