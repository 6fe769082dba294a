"""FastAPI routes for the deck API."""

import asyncio
from uuid import uuid4

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from flyer_deck import __version__
from flyer_deck.api.dependencies import ApplicationDep, SettingsDep
from flyer_deck.api.models import (
    GenerateDeckRequest,
    HealthResponse,
    PlanItemResponse,
    PlanResponse,
    ToolsResponse,
)
from flyer_deck.api.sse import event_stream
from flyer_deck.core.plan import PLAN_VERSION, get_plan
from flyer_deck.synthesis.strategies import strategy_for
from flyer_deck.utils.logging import get_logger


logger = get_logger(__name__)
router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(application: ApplicationDep) -> HealthResponse:
    """Application status, version and number of in-flight runs."""
    return HealthResponse(
        status="shutting_down" if application.is_shutting_down else "ok",
        version=__version__,
        active_runs=application.active_runs,
    )


@router.get("/plan", response_model=PlanResponse)
async def get_deck_plan() -> PlanResponse:
    """The fixed slide plan every run follows."""
    return PlanResponse(
        version=PLAN_VERSION,
        items=[
            PlanItemResponse(
                index=item.index,
                content_type=item.content_type.value,
                title=item.title,
                data_source=item.data_source.value,
                strategy=strategy_for(item).value,
            )
            for item in get_plan()
        ],
    )


@router.get("/tools", response_model=ToolsResponse)
async def list_tools(application: ApplicationDep) -> ToolsResponse:
    tools = application.registry.list_tools() if application.registry else []
    return ToolsResponse(tools=tools, count=len(tools))


@router.post("/decks/generate")
async def generate_deck(
    deck_request: GenerateDeckRequest,
    application: ApplicationDep,
    settings: SettingsDep,
) -> StreamingResponse:
    """
    Generate a deck with SSE progress.

    Events, in order per slide:
    - start: a slide worker began
    - generating: a preview while the model writes the slide (optional)
    - end: the finished (or degraded) slide artifact
    Plus usage events, and finally end-of-run with every slide in order,
    or a single error event when the run cannot start or is cancelled.
    """
    if application.is_shutting_down:
        raise HTTPException(status_code=503, detail="Service is shutting down")

    request_id = str(uuid4())
    cancel_event = application.track_run(request_id)
    orchestrator = application.create_orchestrator()
    logger.info("Deck generation requested", request_id=request_id)

    async def stream():
        timer = asyncio.get_running_loop().call_later(
            settings.run_timeout_seconds, cancel_event.set
        )
        try:
            async for chunk in event_stream(
                orchestrator.run(deck_request, cancel_event, request_id),
                cancel_event,
                keepalive=settings.sse_keepalive_seconds,
            ):
                yield chunk
        finally:
            timer.cancel()
            application.untrack_run(request_id)

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Request-ID": request_id,
        },
    )
