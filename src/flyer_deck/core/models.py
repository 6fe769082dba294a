"""Value objects shared by workers, the orchestrator and the transport."""

from typing import Any

from pydantic import BaseModel, Field


class ToolResult(BaseModel):
    """Outcome of one tool call made during a worker's tool phase."""

    tool_name: str
    payload: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class GeneratedItem(BaseModel):
    """Final artifact for one plan item. Never mutated once produced."""

    model_config = {"frozen": True}

    index: int
    title: str
    artifact: str
    source_refs: list[str] = Field(default_factory=list)
    degraded: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "title": self.title,
            "artifact": self.artifact,
            "sourceRefs": list(self.source_refs),
            "degraded": self.degraded,
        }
