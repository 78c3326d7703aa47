"""Per-user fact store: SQLite + FTS5 for keywords, float32 BLOBs for embeddings."""

import hashlib
import sqlite3
import threading
import time
import uuid
from functools import wraps
from pathlib import Path

import numpy as np
from loguru import logger

from archivist.errors import StorageError
from archivist.memory.types import Fact, ScoredResult

FACT_DB_FILE = "memory.db"

# Raw little-endian float32, no header: dimensionality is len(blob) // 4.
EMBEDDING_DTYPE = np.dtype("<f4")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS facts (
    id TEXT PRIMARY KEY,
    content TEXT NOT NULL,
    source TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    hash TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_facts_hash ON facts(hash);

CREATE VIRTUAL TABLE IF NOT EXISTS facts_fts USING fts5(
    content,
    content='facts',
    content_rowid='rowid'
);

CREATE TRIGGER IF NOT EXISTS facts_ai AFTER INSERT ON facts BEGIN
    INSERT INTO facts_fts(rowid, content) VALUES (NEW.rowid, NEW.content);
END;

CREATE TRIGGER IF NOT EXISTS facts_ad AFTER DELETE ON facts BEGIN
    INSERT INTO facts_fts(facts_fts, rowid, content) VALUES ('delete', OLD.rowid, OLD.content);
END;

CREATE TRIGGER IF NOT EXISTS facts_au AFTER UPDATE ON facts BEGIN
    INSERT INTO facts_fts(facts_fts, rowid, content) VALUES ('delete', OLD.rowid, OLD.content);
    INSERT INTO facts_fts(rowid, content) VALUES (NEW.rowid, NEW.content);
END;

CREATE TABLE IF NOT EXISTS fact_embeddings (
    id TEXT PRIMARY KEY,
    embedding BLOB NOT NULL,
    FOREIGN KEY (id) REFERENCES facts(id) ON DELETE CASCADE
);
"""


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def serialize_embedding(embedding: list[float]) -> bytes:
    return np.asarray(embedding, dtype=EMBEDDING_DTYPE).tobytes()


def deserialize_embedding(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob, dtype=EMBEDDING_DTYPE)


def _fts_phrase(query: str) -> str:
    """Quote the whole query as a single FTS5 phrase (quote characters dropped)."""
    return '"' + _strip_quotes(query) + '"'


def _strip_quotes(query: str) -> str:
    return query.replace('"', "").replace("'", "")


def _storage_errors(method):
    """Re-raise sqlite failures as StorageError."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except sqlite3.Error as e:
            logger.error(f"Fact store {method.__name__} failed ({self.db_path}): {e}")
            raise StorageError(f"{method.__name__} failed: {e}") from e

    return wrapper


class FactStore:
    """
    Archival memory for one user.

    Facts are immutable once written; revising one means remove + add.
    Keyword search goes through an FTS5 index kept in sync with the
    ``facts`` table by triggers, so a row and its index entry are always
    written in the same transaction. Vector search is a brute-force cosine
    scan over every stored embedding.

    One instance per user. The connection runs in WAL mode, so readers on
    other connections see a consistent snapshot while this one writes.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        try:
            self._conn: sqlite3.Connection | None = sqlite3.connect(
                self.db_path, check_same_thread=False, timeout=30.0
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open fact store {self.db_path}: {e}") from e
        self._dimension: int | None = self._load_dimension()

    @classmethod
    def for_user(cls, user_dir: Path) -> "FactStore":
        return cls(Path(user_dir) / FACT_DB_FILE)

    def close(self) -> None:
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise sqlite3.ProgrammingError("fact store is closed")
        return self._conn

    @property
    def dimension(self) -> int | None:
        """Embedding dimensionality shared by every fact, None until one is stored."""
        return self._dimension

    @_storage_errors
    def _load_dimension(self) -> int | None:
        row = self.conn.execute("SELECT length(embedding) FROM fact_embeddings LIMIT 1").fetchone()
        return row[0] // EMBEDDING_DTYPE.itemsize if row else None

    def _check_dimension(self, size: int) -> None:
        if self._dimension is not None and size != self._dimension:
            raise ValueError(
                f"Embedding has {size} dimensions, store uses {self._dimension}"
            )

    # -- Writes --

    @_storage_errors
    def add_fact(self, content: str, source: str, embedding: list[float] | None = None) -> str:
        """
        Store a fact and (optionally) its embedding. Returns the new fact id.

        Passing ``embedding=None`` stores the fact without a vector: it stays
        reachable through keyword search only.
        """
        blob = None
        if embedding is not None:
            blob = serialize_embedding(embedding)
            self._check_dimension(len(blob) // EMBEDDING_DTYPE.itemsize)

        fact_id = str(uuid.uuid4())
        timestamp = int(time.time() * 1000)

        with self._lock:
            try:
                self.conn.execute(
                    "INSERT INTO facts (id, content, source, timestamp, hash) VALUES (?, ?, ?, ?, ?)",
                    (fact_id, content, source, timestamp, content_hash(content)),
                )
                if blob is not None:
                    self.conn.execute(
                        "INSERT INTO fact_embeddings (id, embedding) VALUES (?, ?)",
                        (fact_id, sqlite3.Binary(blob)),
                    )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
            if blob is not None and self._dimension is None:
                self._dimension = len(blob) // EMBEDDING_DTYPE.itemsize

        logger.debug(f"Added fact {fact_id} ({source}): {content[:50]}")
        return fact_id

    @_storage_errors
    def remove_fact(self, fact_id: str) -> None:
        """Delete a fact and its embedding. Unknown ids are ignored."""
        with self._lock:
            try:
                self.conn.execute("DELETE FROM fact_embeddings WHERE id = ?", (fact_id,))
                cursor = self.conn.execute("DELETE FROM facts WHERE id = ?", (fact_id,))
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        if cursor.rowcount:
            logger.debug(f"Removed fact {fact_id}")

    # -- Reads --

    @_storage_errors
    def get_fact(self, fact_id: str) -> Fact | None:
        with self._lock:
            row = self.conn.execute(
                "SELECT f.id, f.content, f.source, f.timestamp, f.hash, fe.id IS NOT NULL "
                "FROM facts f LEFT JOIN fact_embeddings fe ON f.id = fe.id WHERE f.id = ?",
                (fact_id,),
            ).fetchone()
        return Fact(*row[:5], has_embedding=bool(row[5])) if row else None

    @_storage_errors
    def recent_facts(self, limit: int = 20) -> list[Fact]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT f.id, f.content, f.source, f.timestamp, f.hash, fe.id IS NOT NULL "
                "FROM facts f LEFT JOIN fact_embeddings fe ON f.id = fe.id "
                "ORDER BY f.timestamp DESC, f.rowid DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [Fact(*row[:5], has_embedding=bool(row[5])) for row in rows]

    @_storage_errors
    def count(self) -> int:
        with self._lock:
            return self.conn.execute("SELECT COUNT(*) FROM facts").fetchone()[0]

    @_storage_errors
    def has_content_hash(self, hash_: str) -> bool:
        with self._lock:
            row = self.conn.execute("SELECT 1 FROM facts WHERE hash = ? LIMIT 1", (hash_,)).fetchone()
        return row is not None

    @_storage_errors
    def search_keyword(self, query: str, limit: int) -> list[ScoredResult]:
        """BM25-ranked full-text search. Lower (more negative) score is better."""
        if not _strip_quotes(query).strip():
            return []

        with self._lock:
            rows = self.conn.execute(
                """
                SELECT f.id, f.content, f.source, f.timestamp, bm25(facts_fts) AS score
                FROM facts_fts
                JOIN facts f ON facts_fts.rowid = f.rowid
                WHERE facts_fts MATCH ?
                ORDER BY bm25(facts_fts)
                LIMIT ?
                """,
                (_fts_phrase(query), limit),
            ).fetchall()
        return [ScoredResult(*row) for row in rows]

    @_storage_errors
    def search_vector(self, embedding: list[float], limit: int) -> list[ScoredResult]:
        """Cosine similarity against every stored embedding, best first."""
        with self._lock:
            rows = self.conn.execute(
                "SELECT f.id, f.content, f.source, f.timestamp, fe.embedding "
                "FROM facts f JOIN fact_embeddings fe ON f.id = fe.id ORDER BY f.rowid"
            ).fetchall()
        if not rows:
            return []

        query = np.asarray(embedding, dtype=np.float64)
        self._check_dimension(query.shape[0])
        matrix = np.stack([deserialize_embedding(row[4]) for row in rows]).astype(np.float64)
        similarities = cosine_similarities(query, matrix)

        # Stable sort keeps insertion order among equal similarities.
        order = np.argsort(-similarities, kind="stable")[:limit]
        return [
            ScoredResult(
                id=rows[i][0],
                content=rows[i][1],
                source=rows[i][2],
                timestamp=rows[i][3],
                score=float(similarities[i]),
            )
            for i in order
        ]


def cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` with each row; zero vectors score 0."""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(norms == 0, 0.0, dots / np.where(norms == 0, 1.0, norms))
