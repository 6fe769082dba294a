"""Base classes for tools.

A tool is a data fetcher: it takes a parameter dict built from the shared
generation context and returns a JSON-like payload dict. Tools raise on
failure; the registry turns failures into ToolResult errors so a failing
tool never aborts a worker.

Payloads may carry a "sources" list of URLs or provider names; workers
collect them into the slide's source references.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from flyer_deck.core.exceptions import ToolError
from flyer_deck.core.resilience import (
    tool_circuit_breaker,
    tool_retry,
    tool_timeout,
    wrap_httpx_errors,
)


class Tool(ABC):
    """
    Base class for tools.

    Example:
        class EchoTool(Tool):
            name = "echo"
            description = "Returns its parameters"

            async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
                return dict(params)
    """

    # Metadata - must be set by subclasses
    name: str
    description: str

    @abstractmethod
    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        Execute the tool.

        Args:
            params: Tool parameters

        Returns:
            Payload dict

        Raises:
            ToolError: On invalid parameters or unusable provider responses
        """
        pass

    def require(self, params: dict[str, Any], *keys: str) -> list[Any]:
        """Return required parameters in order, raising ToolError if any is missing."""
        missing = [key for key in keys if params.get(key) in (None, "")]
        if missing:
            raise ToolError(
                f"Missing required parameters: {', '.join(missing)}",
                tool_name=self.name,
                recoverable=False,
            )
        return [params[key] for key in keys]


class HttpTool(Tool):
    """
    Tool backed by an external HTTP API.

    Requests go through the shared httpx client with timeout, retry and a
    circuit breaker owned by this tool instance.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client
        breaker = tool_circuit_breaker()
        self._send = tool_retry(breaker(tool_timeout(wrap_httpx_errors(self._send_once))))

    async def _send_once(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | list[tuple[str, str]] | None = None,
        headers: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        response = await self._client.request(
            method, url, params=params, headers=headers, json=json
        )
        response.raise_for_status()
        return response

    async def get(
        self,
        url: str,
        params: dict[str, Any] | list[tuple[str, str]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._send("GET", url, params=params, headers=headers)

    async def post(
        self,
        url: str,
        json: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._send("POST", url, headers=headers, json=json)
