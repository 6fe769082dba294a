"""FastAPI dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from flyer_deck.app import Application
from flyer_deck.config.settings import Settings, get_settings


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


async def get_application(request: Request) -> Application:
    """Get the Application instance from application state."""
    return request.app.state.application


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ApplicationDep = Annotated[Application, Depends(get_application)]
