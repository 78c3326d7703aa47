"""External providers used by archivist."""

from archivist.providers.embeddings import EmbeddingProvider

__all__ = ["EmbeddingProvider"]
