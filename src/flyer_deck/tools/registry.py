"""Registry for tools."""

import time
from typing import Any

import httpx

from flyer_deck.config.settings import Settings
from flyer_deck.core.limiter import CollaboratorLimiter
from flyer_deck.core.models import ToolResult
from flyer_deck.tools.base import Tool
from flyer_deck.utils.logging import get_logger


logger = get_logger(__name__)


class ToolRegistry:
    """
    Registry of tool instances available to workers.

    Design Pattern: Registry

    execute() never raises: unknown tools, parameter errors and provider
    failures all come back as a ToolResult with ``error`` set.

    Usage:
        registry = ToolRegistry()
        registry.add(GeocodeTool(client, url))
        result = await registry.execute("geocode", {"address": "..."})
    """

    def __init__(self, limiter: CollaboratorLimiter | None = None):
        self._tools: dict[str, Tool] = {}
        self._limiter = limiter

    def add(self, tool: Tool) -> Tool:
        """Register a tool instance under its name."""
        if tool.name in self._tools:
            logger.warning("Overwriting existing tool", tool=tool.name)
        self._tools[tool.name] = tool
        logger.debug("Registered tool", tool=tool.name)
        return tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    async def execute(self, name: str, params: dict[str, Any] | None = None) -> ToolResult:
        """
        Execute a tool by name.

        Args:
            name: Registered tool name
            params: Parameters passed to the tool

        Returns:
            ToolResult with payload on success or error on failure
        """
        start_time = time.monotonic()

        tool = self._tools.get(name)
        if tool is None:
            return ToolResult(
                tool_name=name,
                error=f"Tool not registered: {name}",
                duration_ms=(time.monotonic() - start_time) * 1000,
            )

        try:
            if self._limiter is None:
                payload = await tool.execute(params or {})
            else:
                async with self._limiter.slot(name):
                    payload = await tool.execute(params or {})
        except Exception as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            logger.warning(
                "Tool execution failed",
                tool=name,
                error=str(e) or type(e).__name__,
                duration_ms=round(duration_ms, 1),
            )
            return ToolResult(
                tool_name=name,
                error=str(e) or type(e).__name__,
                duration_ms=duration_ms,
            )

        duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug("Tool executed", tool=name, duration_ms=round(duration_ms, 1))
        return ToolResult(tool_name=name, payload=payload, duration_ms=duration_ms)

    @classmethod
    def with_builtin_tools(
        cls,
        client: httpx.AsyncClient,
        settings: Settings,
        limiter: CollaboratorLimiter | None = None,
    ) -> "ToolRegistry":
        """Create a registry holding every builtin tool."""
        from flyer_deck.tools.builtin import create_builtin_tools

        registry = cls(limiter=limiter)
        for tool in create_builtin_tools(client, settings):
            registry.add(tool)
        return registry
