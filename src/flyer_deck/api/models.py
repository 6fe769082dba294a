"""API request/response models."""

from pydantic import BaseModel, Field

from flyer_deck.core.context import PrimaryInput


class GenerateDeckRequest(PrimaryInput):
    """Request body for deck generation. Same fields as PrimaryInput."""


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str
    active_runs: int = 0


class PlanItemResponse(BaseModel):
    index: int
    content_type: str
    title: str
    data_source: str
    strategy: str


class PlanResponse(BaseModel):
    """Response model for the deck plan."""

    version: str
    items: list[PlanItemResponse] = Field(default_factory=list)


class ToolsResponse(BaseModel):
    tools: list[str]
    count: int
