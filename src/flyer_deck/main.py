"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flyer_deck import __version__
from flyer_deck.api.routes import router
from flyer_deck.app import Application
from flyer_deck.config.settings import get_settings
from flyer_deck.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(application: Application | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        application: Pre-built Application (tests inject fakes here)

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    application = application or Application(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await application.startup()
        app.state.application = application
        yield
        await application.shutdown()

    app = FastAPI(
        title="Flyer Deck API",
        description="Concurrent slide-deck generation from real-estate flyers",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "name": "Flyer Deck API",
            "version": __version__,
            "docs": "/docs",
        }

    return app


# Create application instance
app = create_app()


def main() -> None:
    """Entry point for running the application."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "flyer_deck.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
