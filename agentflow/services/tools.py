"""Registry of external tools agents may invoke during role processing."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


@dataclass(slots=True)
class ToolServer:
    """A named tool endpoint.

    Without a handler the server simulates the call and echoes the payload.
    """

    name: str
    endpoint: str
    handler: Optional[ToolHandler] = None
    latency: float = 0.0

    async def execute(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.handler is not None:
            return await self.handler(payload)
        await asyncio.sleep(self.latency)
        return {"server": self.name, "status": "ok", "result": payload}


class ToolRegistry:
    """Registry maintaining tool servers by tool name."""

    def __init__(self) -> None:
        self._servers: Dict[str, ToolServer] = {}

    def register(self, tool: str, server: ToolServer) -> None:
        self._servers[tool] = server

    def get(self, tool: str) -> ToolServer:
        if tool not in self._servers:
            raise KeyError(f"No tool server registered for: {tool}")
        return self._servers[tool]

    async def execute(self, tool: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.get(tool).execute(payload)


def simulated_registry(tools: Iterable[str]) -> ToolRegistry:
    """Build a registry with a simulated server for every tool name."""
    registry = ToolRegistry()
    for tool in tools:
        registry.register(tool, ToolServer(name=f"{tool}-sim", endpoint=f"mock://{tool}"))
    return registry
