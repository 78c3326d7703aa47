"""Types for the memory system."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

MatchMethod = Literal["keyword", "vector"]


@dataclass
class Fact:
    """A single stored unit of archival memory."""

    id: str
    content: str
    source: str
    timestamp: int  # milliseconds since the epoch
    hash: str = ""
    has_embedding: bool = False


@dataclass
class ScoredResult:
    """A fact returned by one retrieval path.

    ``score`` units depend on the path: bm25 (lower is better) for keyword,
    cosine similarity for vector. Never compare them across paths.
    """

    id: str
    content: str
    source: str
    timestamp: int
    score: float


@dataclass
class SearchResult(ScoredResult):
    """A fused hybrid search result."""

    combined_score: float = 0.0
    matched_by: list[MatchMethod] = field(default_factory=list)


class CoreMemoryErrorKind(str, Enum):
    CAPACITY = "capacity"
    SECTION_NOT_FOUND = "section_not_found"
    TEXT_NOT_FOUND = "text_not_found"


@dataclass(frozen=True)
class CoreMemoryResult:
    """Outcome of a core memory mutation: success, or an error kind plus message."""

    ok: bool
    kind: CoreMemoryErrorKind | None = None
    error: str = ""

    @classmethod
    def success(cls) -> "CoreMemoryResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, kind: CoreMemoryErrorKind, error: str) -> "CoreMemoryResult":
        return cls(ok=False, kind=kind, error=error)

    def __bool__(self) -> bool:
        return self.ok
