"""Configuration."""

from flyer_deck.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
