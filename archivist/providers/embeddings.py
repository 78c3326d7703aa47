"""Embedding provider for OpenAI-compatible /embeddings APIs (Together by default)."""

from typing import Any

import httpx
from loguru import logger

from archivist.config.schema import EmbeddingConfig
from archivist.errors import (
    EmbeddingAPIError,
    EmbeddingInputError,
    EmbeddingNetworkError,
    EmbeddingTimeoutError,
)

DEFAULT_API_BASE = "https://api.together.xyz/v1"
DEFAULT_MODEL = "togethercomputer/m2-bert-80M-8k-retrieval"
DEFAULT_TIMEOUT = 15.0


class EmbeddingProvider:
    """
    Turns text into fixed-length float vectors over HTTP.

    Every failure is raised as one of four distinct errors:
    ``EmbeddingInputError`` (empty input), ``EmbeddingAPIError`` (error
    status, carries ``status_code``), ``EmbeddingNetworkError`` and
    ``EmbeddingTimeoutError``. Results are not cached.
    """

    def __init__(
        self,
        api_key: str,
        api_base: str = DEFAULT_API_BASE,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: EmbeddingConfig) -> "EmbeddingProvider | None":
        """Build a provider, or None when embeddings are disabled or lack credentials."""
        if not config.available:
            logger.warning("Embedding provider unavailable; archival search is keyword-only")
            return None
        return cls(
            api_key=config.api_key,
            api_base=config.api_base,
            model=config.model,
            timeout=config.timeout,
        )

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        _ensure_non_empty(text)
        return (await self._request(text))[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts in one request, preserving order."""
        if not texts:
            return []
        for text in texts:
            _ensure_non_empty(text)
        return await self._request(texts)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, payload_input: str | list[str]) -> list[list[float]]:
        try:
            response = await self.client.post(
                f"{self.api_base}/embeddings",
                json={"model": self.model, "input": payload_input},
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise EmbeddingTimeoutError("Embedding API request timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise EmbeddingAPIError(
                f"Embedding API error: {status} {e.response.reason_phrase}", status_code=status
            ) from e
        except httpx.RequestError as e:
            raise EmbeddingNetworkError(f"Embedding API request failed: {e}") from e
        except ValueError as e:
            raise EmbeddingAPIError(
                f"Embedding API returned invalid JSON: {e}", status_code=response.status_code
            ) from e

        expected = 1 if isinstance(payload_input, str) else len(payload_input)
        return _parse_embeddings(data, response.status_code, expected)


def _ensure_non_empty(text: str) -> None:
    if not text or not text.strip():
        raise EmbeddingInputError("Embedding input is empty")


def _parse_embeddings(data: Any, status_code: int, expected: int) -> list[list[float]]:
    items = data.get("data") if isinstance(data, dict) else None
    if not items:
        raise EmbeddingAPIError("Embedding API returned no data", status_code=status_code)
    if len(items) != expected:
        raise EmbeddingAPIError(
            f"Embedding API returned {len(items)} embeddings for {expected} inputs",
            status_code=status_code,
        )
    # OpenAI-style responses carry an index; keep input order if present.
    items = sorted(items, key=lambda item: item.get("index", 0))
    return [item["embedding"] for item in items]
