"""Utility modules."""

from flyer_deck.utils.logging import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
