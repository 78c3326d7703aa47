"""Chunk markdown text and index it into the fact store."""

import re
from typing import TYPE_CHECKING

from loguru import logger

from archivist.errors import EmbeddingError
from archivist.memory.store import FactStore, content_hash

if TYPE_CHECKING:
    from archivist.providers.embeddings import EmbeddingProvider

_HEADING_RE = re.compile(r"^#{1,6}\s+")
_PARAGRAPH_BREAK_RE = re.compile(r"\n\n+")
CHARS_PER_TOKEN = 4


def chunk_text(text: str, max_tokens: int = 512) -> list[str]:
    """
    Split text into chunks for indexing.

    Markdown headings start a new chunk (the heading stays with its body).
    If that leaves a single oversized chunk, fall back to paragraph packing.
    """
    chunks: list[str] = []
    current: list[str] = []
    for line in text.split("\n"):
        if _HEADING_RE.match(line) and current:
            chunks.append("\n".join(current).strip())
            current = [line]
        else:
            current.append(line)
    if current:
        chunks.append("\n".join(current).strip())
    chunks = [c for c in chunks if c]

    max_chars = max_tokens * CHARS_PER_TOKEN
    if len(chunks) == 1 and len(chunks[0]) > max_chars:
        return _chunk_by_paragraph(chunks[0], max_chars)

    return chunks


def _chunk_by_paragraph(text: str, max_chars: int) -> list[str]:
    chunks: list[str] = []
    current = ""
    for para in _PARAGRAPH_BREAK_RE.split(text):
        if current and len(current) + len(para) > max_chars:
            chunks.append(current.strip())
            current = para
        else:
            current = f"{current}\n\n{para}" if current else para
    if current.strip():
        chunks.append(current.strip())
    return chunks


class MemoryIndexer:
    """Index documents (e.g. a migrated memory file) as archival facts."""

    def __init__(self, store: FactStore, provider: "EmbeddingProvider | None" = None):
        self.store = store
        self.provider = provider

    async def index_text(self, text: str, source: str) -> int:
        """Index new chunks of ``text``; chunks already stored are skipped. Returns facts added."""
        if not text.strip():
            return 0

        chunks = dict.fromkeys(chunk_text(text))
        pending = [c for c in chunks if not self.store.has_content_hash(content_hash(c))]
        if not pending:
            return 0

        embeddings: list[list[float] | None] = [None] * len(pending)
        if self.provider is not None:
            try:
                vectors = list(await self.provider.embed_batch(pending))
            except EmbeddingError as e:
                logger.warning(f"Batch embedding failed, indexing {len(pending)} chunks keyword-only: {e}")
            else:
                if len(vectors) == len(pending):
                    embeddings = vectors
                else:
                    logger.warning(
                        f"Batch embedding returned {len(vectors)} vectors for {len(pending)} chunks, "
                        "indexing keyword-only"
                    )

        for chunk, embedding in zip(pending, embeddings, strict=True):
            self.store.add_fact(chunk, source, embedding)

        logger.info(f"Indexed {len(pending)} chunks from {source}")
        return len(pending)
