"""
Hybrid search: keyword (FTS5) + vector, fused with Reciprocal Rank Fusion.

    score(doc) = vector_weight / (k + rank_vec) + keyword_weight / (k + rank_kw)

Ranks are 1-based positions in each result list; raw bm25 and cosine scores
never enter the formula.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from loguru import logger

from archivist.config.schema import SearchConfig
from archivist.memory.store import FactStore
from archivist.memory.types import MatchMethod, ScoredResult, SearchResult

EmbedFn = Callable[[str], Awaitable[list[float] | None]]


@dataclass(frozen=True)
class HybridSearchOptions:
    vector_weight: float = 0.7
    keyword_weight: float = 0.3
    k: float = 60
    limit: int = 5

    @classmethod
    def from_config(cls, config: SearchConfig) -> "HybridSearchOptions":
        return cls(
            vector_weight=config.vector_weight,
            keyword_weight=config.keyword_weight,
            k=config.k,
            limit=config.limit,
        )


def reciprocal_rank_fusion(
    keyword_results: list[ScoredResult],
    vector_results: list[ScoredResult],
    options: HybridSearchOptions = HybridSearchOptions(),
) -> list[SearchResult]:
    """
    Merge two ranked lists by fact id.

    A fact in both lists accumulates both contributions and is tagged
    ``["keyword", "vector"]``. If an id repeats within one list only its
    best (first) rank counts. Ties keep first-seen order, keyword list first.
    """
    merged: dict[str, SearchResult] = {}

    def accumulate(results: list[ScoredResult], weight: float, method: MatchMethod) -> None:
        for rank, result in enumerate(results, start=1):
            contribution = weight / (options.k + rank)
            existing = merged.get(result.id)
            if existing is None:
                merged[result.id] = SearchResult(
                    id=result.id,
                    content=result.content,
                    source=result.source,
                    timestamp=result.timestamp,
                    score=result.score,
                    combined_score=contribution,
                    matched_by=[method],
                )
            elif method not in existing.matched_by:
                existing.combined_score += contribution
                existing.matched_by.append(method)

    accumulate(keyword_results, options.keyword_weight, "keyword")
    accumulate(vector_results, options.vector_weight, "vector")

    ranked = sorted(merged.values(), key=lambda r: r.combined_score, reverse=True)
    return ranked[: options.limit]


class HybridSearch:
    """
    Query one user's fact store through both retrieval paths.

    The query is embedded once per call (no caching). If the embedding
    function returns None, fails, or yields a vector whose size does not
    match the stored embeddings, vector search is skipped and results come
    from keyword search alone. Store failures propagate.
    """

    def __init__(self, store: FactStore, embed: EmbedFn | None, options: HybridSearchOptions | None = None):
        self.store = store
        self.embed = embed
        self.options = options or HybridSearchOptions()

    async def search(self, query: str) -> list[SearchResult]:
        if not query.strip():
            return []

        # Each path fetches twice the final limit.
        fetch = self.options.limit * 2
        embedding = await self._embed_query(query)

        keyword_call = asyncio.to_thread(self.store.search_keyword, query, fetch)
        if embedding is None:
            keyword_results, vector_results = await keyword_call, []
        else:
            keyword_results, vector_results = await asyncio.gather(
                keyword_call,
                asyncio.to_thread(self.store.search_vector, embedding, fetch),
            )

        return reciprocal_rank_fusion(keyword_results, vector_results, self.options)

    async def __call__(self, query: str) -> list[SearchResult]:
        return await self.search(query)

    async def _embed_query(self, query: str) -> list[float] | None:
        if self.embed is None:
            return None
        try:
            embedding = await self.embed(query)
        except Exception as e:
            logger.warning(f"Query embedding failed, falling back to keyword search: {e}")
            return None
        if embedding is None:
            logger.debug("No query embedding available, keyword search only")
            return None
        dimension = self.store.dimension
        if not embedding or (dimension is not None and len(embedding) != dimension):
            logger.warning(
                f"Query embedding has {len(embedding)} dimensions, store uses {dimension}; "
                "falling back to keyword search"
            )
            return None
        return embedding
