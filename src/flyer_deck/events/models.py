"""Event data models."""

import json
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from flyer_deck.core.models import GeneratedItem
from flyer_deck.core.usage import TokenUsage, UsageRecord

from .types import EventType


class Event(BaseModel):
    """Base event model. Wire payload lives in ``data`` with camelCase keys."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Event in its wire shape: ``{"type": ..., **data}``."""
        return {"type": self.event_type.value, **self.data}

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_wire(), ensure_ascii=False)

    def to_sse(self) -> str:
        """Format event for SSE stream."""
        return f"event: {self.event_type.value}\ndata: {self.to_json()}\n\n"


class SlideStartEvent(Event):
    """A worker has started on a plan item."""

    event_type: EventType = EventType.START

    @classmethod
    def create(cls, index: int, title: str, request_id: str | None = None) -> "SlideStartEvent":
        return cls(data={"index": index, "title": title}, request_id=request_id)


class SlideGeneratingEvent(Event):
    """Intermediate progress for a plan item, with a partial artifact."""

    event_type: EventType = EventType.GENERATING

    @classmethod
    def create(
        cls,
        index: int,
        title: str,
        partial_artifact: str,
        request_id: str | None = None,
    ) -> "SlideGeneratingEvent":
        return cls(
            data={"index": index, "title": title, "partialArtifact": partial_artifact},
            request_id=request_id,
        )


class SlideEndEvent(Event):
    """A plan item finished, successfully or degraded."""

    event_type: EventType = EventType.END
    item: GeneratedItem

    @classmethod
    def create(cls, item: GeneratedItem, request_id: str | None = None) -> "SlideEndEvent":
        return cls(item=item, data=item.to_wire(), request_id=request_id)


class UsageEvent(Event):
    """Model usage recorded for one pipeline step."""

    event_type: EventType = EventType.USAGE

    @classmethod
    def create(cls, record: UsageRecord, request_id: str | None = None) -> "UsageEvent":
        return cls(
            data={
                "step": record.step,
                "promptUnits": record.prompt_units,
                "completionUnits": record.completion_units,
            },
            request_id=request_id,
        )


class ErrorEvent(Event):
    """Run-level error. Terminal when emitted by the orchestrator."""

    event_type: EventType = EventType.ERROR

    @classmethod
    def create(cls, message: str, request_id: str | None = None) -> "ErrorEvent":
        return cls(data={"message": message}, request_id=request_id)


class EndOfRunEvent(Event):
    """Aggregate completion: every item in plan order plus total usage."""

    event_type: EventType = EventType.END_OF_RUN
    items: list[GeneratedItem] = Field(default_factory=list)

    @classmethod
    def create(
        cls,
        items: list[GeneratedItem],
        usage: TokenUsage,
        request_id: str | None = None,
    ) -> "EndOfRunEvent":
        return cls(
            items=items,
            data={
                "items": [item.to_wire() for item in items],
                "usage": {
                    "promptUnits": usage.input_tokens,
                    "completionUnits": usage.output_tokens,
                },
            },
            request_id=request_id,
        )
