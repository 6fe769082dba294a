"""Tools: external lookups and local calculators used by slide workers."""

from flyer_deck.tools.base import HttpTool, Tool
from flyer_deck.tools.registry import ToolRegistry

__all__ = ["HttpTool", "Tool", "ToolRegistry"]
