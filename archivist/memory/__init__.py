"""
Two-tier memory for archivist.

- Core memory: a small markdown document always injected into the context.
- Archival memory: a per-user fact store searched with hybrid
  (keyword + vector) retrieval.
"""

from pathlib import Path

from loguru import logger

from archivist.memory.core import CoreMemory
from archivist.memory.indexer import MemoryIndexer, chunk_text
from archivist.memory.search import HybridSearch, HybridSearchOptions, reciprocal_rank_fusion
from archivist.memory.store import FactStore
from archivist.memory.types import (
    CoreMemoryErrorKind,
    CoreMemoryResult,
    Fact,
    ScoredResult,
    SearchResult,
)

__all__ = [
    "CoreMemory",
    "CoreMemoryErrorKind",
    "CoreMemoryResult",
    "Fact",
    "FactStore",
    "HybridSearch",
    "HybridSearchOptions",
    "MemoryIndexer",
    "ScoredResult",
    "SearchResult",
    "UserMemory",
    "chunk_text",
    "open_user_memory",
    "reciprocal_rank_fusion",
]


class UserMemory:
    """Everything one user's memory needs, wired together."""

    def __init__(
        self,
        user_id: str,
        user_dir: Path,
        core: CoreMemory,
        store: FactStore,
        provider=None,
        options: HybridSearchOptions | None = None,
    ):
        self.user_id = user_id
        self.user_dir = user_dir
        self.core = core
        self.store = store
        self.provider = provider
        self.search = HybridSearch(store, self.embed if provider else None, options)
        self.indexer = MemoryIndexer(store, provider)

    async def embed(self, text: str) -> list[float] | None:
        """Embed text, or None when no provider is configured or the call fails."""
        if self.provider is None:
            return None
        try:
            return await self.provider.embed(text)
        except Exception as e:
            logger.warning(f"Embedding unavailable for user {self.user_id}: {e}")
            return None

    def context(self) -> str:
        """Core memory block for the system prompt."""
        content = self.core.read().strip()
        if not content:
            return ""
        return f"# Core Memory\n\n{content}"

    async def aclose(self) -> None:
        self.store.close()
        if self.provider is not None:
            await self.provider.aclose()


def open_user_memory(config, user_id: str | None = None) -> UserMemory:
    """
    Open (creating if needed) the memory of one user.

    Layout: ``<data_dir>/users/<user_id>/core-memory.md`` and ``memory.db``.
    """
    from archivist.providers.embeddings import EmbeddingProvider
    from archivist.utils.helpers import get_user_dir

    user_id = user_id or config.default_user
    user_dir = get_user_dir(config.data_path, user_id)
    memory_config = config.memory

    return UserMemory(
        user_id=user_id,
        user_dir=user_dir,
        core=CoreMemory(user_dir, max_bytes=memory_config.core.max_bytes),
        store=FactStore.for_user(user_dir),
        provider=EmbeddingProvider.from_config(memory_config.embedding),
        options=HybridSearchOptions.from_config(memory_config.search),
    )
