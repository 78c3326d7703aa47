"""Memory tools: core memory append/replace, archival insert/search."""

import json
from typing import TYPE_CHECKING, Any

from loguru import logger

from archivist.agent.tools.base import Tool
from archivist.memory.core import CoreMemory
from archivist.memory.search import HybridSearch
from archivist.memory.store import FactStore

if TYPE_CHECKING:
    from archivist.memory import UserMemory

ARCHIVAL_SOURCE = "archival"


def _success(data: dict[str, Any] | None = None) -> str:
    return json.dumps(data or {"success": True}, indent=2, ensure_ascii=False)


def _error(message: str) -> str:
    return json.dumps({"error": message}, ensure_ascii=False)


class CoreMemoryAppendTool(Tool):
    """Append content under a core memory section."""

    def __init__(self, core: CoreMemory):
        self._core = core

    @property
    def name(self) -> str:
        return "memory_core_append"

    @property
    def description(self) -> str:
        return (
            "Add information to your core memory under a section. Core memory is always "
            "visible to you. Use for important facts about the user, preferences, and "
            "ongoing context. Sections: 'About the User', 'Preferences', 'Current Projects', "
            "or create your own."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "section": {"type": "string", "description": "Section heading to append under"},
                "content": {"type": "string", "description": "Content to append to the section"},
            },
            "required": ["section", "content"],
        }

    async def execute(self, section: str, content: str, **kwargs: Any) -> str:
        result = self._core.append(section, content)
        return _success() if result.ok else _error(result.error)


class CoreMemoryReplaceTool(Tool):
    """Replace text inside one core memory section."""

    def __init__(self, core: CoreMemory):
        self._core = core

    @property
    def name(self) -> str:
        return "memory_core_replace"

    @property
    def description(self) -> str:
        return (
            "Update information in your core memory by replacing specific text within a "
            "section. Use when facts change or need correction."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "section": {"type": "string", "description": "Section heading to update"},
                "old_text": {"type": "string", "description": "Existing text to replace"},
                "new_text": {"type": "string", "description": "New text to insert"},
            },
            "required": ["section", "old_text", "new_text"],
        }

    async def execute(self, section: str, old_text: str, new_text: str, **kwargs: Any) -> str:
        result = self._core.replace(section, old_text, new_text)
        return _success() if result.ok else _error(result.error)


class ArchivalMemoryInsertTool(Tool):
    """Store a fact in archival memory."""

    def __init__(self, store: FactStore, embed):
        self._store = store
        self._embed = embed

    @property
    def name(self) -> str:
        return "memory_archival_insert"

    @property
    def description(self) -> str:
        return (
            "Store a fact in long-term archival memory. Use for detailed information "
            "that does not need to be in core memory."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "Content to store in archival memory"},
            },
            "required": ["content"],
        }

    async def execute(self, content: str, **kwargs: Any) -> str:
        if not content.strip():
            return _error("Content is empty")

        embedding = None
        if self._embed is not None:
            try:
                embedding = await self._embed(content)
            except Exception as e:
                logger.warning(f"Embedding failed, storing fact keyword-only: {e}")

        try:
            fact_id = self._store.add_fact(content, ARCHIVAL_SOURCE, embedding)
        except Exception as e:
            return _error(f"Failed to store fact: {e}")

        payload: dict[str, Any] = {"success": True, "id": fact_id}
        if embedding is None:
            payload["embedded"] = False
        return _success(payload)


class ArchivalMemorySearchTool(Tool):
    """Hybrid search over archival memory."""

    def __init__(self, search: HybridSearch):
        self._search = search

    @property
    def name(self) -> str:
        return "memory_archival_search"

    @property
    def description(self) -> str:
        return (
            "Search your long-term archival memory for relevant facts. Use when you need "
            "detailed information not in core memory."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query for archival memory"},
            },
            "required": ["query"],
        }

    async def execute(self, query: str, **kwargs: Any) -> str:
        try:
            results = await self._search.search(query)
        except Exception as e:
            return _error(f"Archival search failed: {e}")

        return _success({
            "results": [
                {
                    "id": r.id,
                    "content": r.content,
                    "source": r.source,
                    "score": r.combined_score,
                    "matchedBy": r.matched_by,
                }
                for r in results
            ]
        })


def create_memory_tools(memory: "UserMemory") -> list[Tool]:
    """All four memory tools bound to one user's memory."""
    embed = memory.embed if memory.provider else None
    return [
        CoreMemoryAppendTool(memory.core),
        CoreMemoryReplaceTool(memory.core),
        ArchivalMemoryInsertTool(memory.store, embed),
        ArchivalMemorySearchTool(memory.search),
    ]
