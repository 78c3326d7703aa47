"""Shared error types for archivist.

Goal: don't silently turn infrastructure failures into model "content".
Storage/provider/tool failures should be explicit and handled at the right layer.
Expected memory conditions (core memory full, section missing) are not errors;
they are returned as values, see ``archivist.memory.types.CoreMemoryResult``.
"""


class ArchivistError(Exception):
    """Base error for archivist."""


class StorageError(ArchivistError):
    """Fact store read/write failed. Never retried."""


class ProviderCallError(ArchivistError):
    """External provider call failed (network/auth/model/etc.)."""


class EmbeddingError(ProviderCallError):
    """Embedding provider could not produce a vector."""


class EmbeddingInputError(EmbeddingError):
    """Embedding input is empty."""


class EmbeddingAPIError(EmbeddingError):
    """Embedding API answered with an error status or an unusable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EmbeddingNetworkError(EmbeddingError):
    """Embedding API could not be reached."""


class EmbeddingTimeoutError(EmbeddingError):
    """Embedding API did not answer in time."""

