"""Tool registry for dynamic tool management."""

import time
from typing import Any

from loguru import logger

from archivist.agent.tools.base import Tool


class ToolRegistry:
    """Registry for agent tools. ``execute`` never raises; failures come back as text."""

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool."""
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        """Unregister a tool by name."""
        self._tools.pop(name, None)

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def get_definitions(self) -> list[dict[str, Any]]:
        """Get all tool definitions in OpenAI format."""
        return [tool.to_schema() for tool in self._tools.values()]

    async def execute(self, name: str, params: dict[str, Any]) -> str:
        """Execute a tool by name with given parameters."""
        tool = self._tools.get(name)
        if not tool:
            return f"Error: Tool '{name}' not found"

        errors = tool.validate_params(params)
        if errors:
            return f"Error: Invalid parameters: {'; '.join(errors)}"

        start = time.perf_counter()
        try:
            result = await tool.execute(**params)
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            result = f"Error executing {name}: {e}"

        logger.debug(f"Tool {name} finished in {(time.perf_counter() - start) * 1000:.1f}ms")
        return result

    @property
    def tool_names(self) -> list[str]:
        """Get list of registered tool names."""
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
