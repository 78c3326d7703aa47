"""Agent tools."""

from archivist.agent.tools.base import Tool
from archivist.agent.tools.memory import (
    ArchivalMemoryInsertTool,
    ArchivalMemorySearchTool,
    CoreMemoryAppendTool,
    CoreMemoryReplaceTool,
    create_memory_tools,
)
from archivist.agent.tools.registry import ToolRegistry

__all__ = [
    "ArchivalMemoryInsertTool",
    "ArchivalMemorySearchTool",
    "CoreMemoryAppendTool",
    "CoreMemoryReplaceTool",
    "Tool",
    "ToolRegistry",
    "create_memory_tools",
]
