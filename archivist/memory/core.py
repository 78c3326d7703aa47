"""
Core memory - a small, section-addressable note buffer.

The document is always injected into the agent's context, so it is kept
under a fixed byte budget. Sections are introduced by ``## <label>`` lines;
a section body runs until the next ``## `` line or end of document.

Stored as ``core-memory.md`` inside the user's directory. A legacy
single-blob ``memory.md`` found next to it is copied in on first use.
"""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from archivist.memory.types import CoreMemoryErrorKind, CoreMemoryResult
from archivist.utils.helpers import ensure_dir

CORE_MEMORY_FILE = "core-memory.md"
LEGACY_MEMORY_FILE = "memory.md"
DEFAULT_MAX_BYTES = 4096
HEADING_PREFIX = "## "


@dataclass
class _Span:
    """Line span of one section: heading line plus body up to (not including) ``end``."""
    heading: int
    end: int

    @property
    def body_start(self) -> int:
        return self.heading + 1


def _split_lines(text: str) -> list[str]:
    return text.split("\n") if text else []


def _scan_sections(lines: list[str]) -> dict[str, _Span]:
    """One pass over the lines; the first heading with a given label wins."""
    spans: dict[str, _Span] = {}
    current: _Span | None = None
    for i, line in enumerate(lines):
        if line.startswith(HEADING_PREFIX):
            if current is not None:
                current.end = i
            current = _Span(heading=i, end=len(lines))
            spans.setdefault(line[len(HEADING_PREFIX):], current)
    return spans


class CoreMemory:
    """
    Size-bounded markdown document for one user.

    Mutations never raise for expected conditions; they return a
    ``CoreMemoryResult``. Every mutation is checked against ``max_bytes``
    before anything is written, so a rejected call leaves the file untouched.
    """

    def __init__(self, data_dir: Path, max_bytes: int = DEFAULT_MAX_BYTES):
        self.data_dir = ensure_dir(Path(data_dir))
        self.file_path = self.data_dir / CORE_MEMORY_FILE
        self.max_bytes = max_bytes
        self._migrate_legacy()

    def _migrate_legacy(self) -> None:
        legacy = self.data_dir / LEGACY_MEMORY_FILE
        if self.file_path.exists() or not legacy.exists():
            return
        self.file_path.write_bytes(legacy.read_bytes())
        logger.info(f"Migrated {legacy.name} to {self.file_path.name} in {self.data_dir}")

    @property
    def full_message(self) -> str:
        return (
            f"Core memory is full ({self.max_bytes // 1024}KB limit). Move less important "
            "information to archival memory using memory_archival_insert."
        )

    def read(self) -> str:
        """Return the full document, or "" if none exists yet."""
        if not self.file_path.exists():
            return ""
        return self.file_path.read_text(encoding="utf-8")

    def size(self) -> int:
        return len(self.read().encode("utf-8"))

    def sections(self) -> list[str]:
        return list(_scan_sections(_split_lines(self.read())))

    def append(self, section: str, content: str) -> CoreMemoryResult:
        """Append content to the end of a section, creating the section if needed."""
        if not content:
            return CoreMemoryResult.success()

        lines = _split_lines(self.read())
        span = _scan_sections(lines).get(section)
        new_lines = content.split("\n")

        if span is None:
            if lines and lines[-1] != "":
                lines.append("")
            lines.append(f"{HEADING_PREFIX}{section}")
            lines.extend(new_lines)
        else:
            lines[span.end:span.end] = new_lines

        return self._commit(lines)

    def replace(self, section: str, old_text: str, new_text: str) -> CoreMemoryResult:
        """Replace the first occurrence of ``old_text`` inside one section's body."""
        lines = _split_lines(self.read())
        span = _scan_sections(lines).get(section)

        if span is None:
            return CoreMemoryResult.failure(
                CoreMemoryErrorKind.SECTION_NOT_FOUND, f"Section '{section}' not found"
            )

        body = "\n".join(lines[span.body_start:span.end])
        if old_text not in body:
            return CoreMemoryResult.failure(
                CoreMemoryErrorKind.TEXT_NOT_FOUND, f"Text not found in section '{section}'"
            )

        lines[span.body_start:span.end] = _split_lines(body.replace(old_text, new_text, 1))
        return self._commit(lines)

    def _commit(self, lines: list[str]) -> CoreMemoryResult:
        document = "\n".join(lines)
        if len(document.encode("utf-8")) > self.max_bytes:
            logger.debug(f"Core memory write rejected: over {self.max_bytes} bytes")
            return CoreMemoryResult.failure(CoreMemoryErrorKind.CAPACITY, self.full_message)
        self.file_path.write_text(document, encoding="utf-8")
        return CoreMemoryResult.success()
