"""Tests for CoreMemory: sections, capacity budget, replace scoping, legacy migration."""

from archivist.memory.core import CORE_MEMORY_FILE, LEGACY_MEMORY_FILE, CoreMemory
from archivist.memory.types import CoreMemoryErrorKind


def _core_with(data_dir, content: str, max_bytes: int = 4096) -> CoreMemory:
    (data_dir / CORE_MEMORY_FILE).write_text(content, encoding="utf-8")
    return CoreMemory(data_dir, max_bytes=max_bytes)


# ============================================================================
# Read
# ============================================================================


def test_read_missing_document_is_empty(data_dir):
    """Reading before any write returns an empty string."""
    core = CoreMemory(data_dir)
    assert core.read() == ""
    assert not core.file_path.exists()


def test_sections_listed_in_document_order(data_dir, core_document):
    """sections() returns headings in document order."""
    core = _core_with(data_dir, core_document)
    assert core.sections() == ["About the User", "Preferences"]


# ============================================================================
# Append
# ============================================================================


def test_append_creates_section_in_empty_document(data_dir):
    """Appending to an empty document creates the section."""
    core = CoreMemory(data_dir)

    result = core.append("About the User", "Name: Alice")

    assert result.ok
    assert core.read() == "## About the User\nName: Alice"


def test_append_new_section_is_separated_by_blank_line(data_dir):
    """A new section is separated from the previous one by a blank line."""
    core = CoreMemory(data_dir)
    core.append("About the User", "Name: Alice")

    core.append("Preferences", "Likes tea")

    assert core.read() == "## About the User\nName: Alice\n\n## Preferences\nLikes tea"


def test_append_existing_section_inserts_before_next_heading(data_dir):
    """Appending to an existing section lands before the next heading."""
    core = _core_with(data_dir, "## A\nx\n## B\ny")

    assert core.append("A", "z\nw").ok

    assert core.read() == "## A\nx\nz\nw\n## B\ny"


def test_append_to_last_section_goes_to_end(data_dir, core_document):
    """Appending to the last section appends at the end of the document."""
    core = _core_with(data_dir, core_document)

    assert core.append("Preferences", "Dark mode")

    assert core.read().endswith("Likes tea\nLives in Berlin\nDark mode")


def test_append_empty_content_is_noop(data_dir):
    """Empty content succeeds without creating the file."""
    core = CoreMemory(data_dir)

    result = core.append("Anything", "")

    assert result.ok
    assert not core.file_path.exists()


def test_section_match_is_exact(data_dir):
    """Section labels are matched case-sensitively."""
    core = _core_with(data_dir, "## Preferences\nLikes tea")

    core.append("preferences", "Dark mode")

    assert core.sections() == ["Preferences", "preferences"]


# ============================================================================
# Capacity
# ============================================================================


def test_append_over_budget_is_rejected_without_writing(data_dir):
    """An over-budget append fails and leaves the file bytes unchanged."""
    core = CoreMemory(data_dir, max_bytes=64)
    assert core.append("Notes", "short").ok
    before = core.file_path.read_bytes()

    result = core.append("Notes", "x" * 100)

    assert not result.ok
    assert result.kind is CoreMemoryErrorKind.CAPACITY
    assert "memory_archival_insert" in result.error
    assert core.file_path.read_bytes() == before


def test_append_exactly_at_budget_is_allowed(data_dir):
    """A document of exactly max_bytes is accepted, one more byte is not."""
    core = CoreMemory(data_dir, max_bytes=64)

    # "## N\n" is 5 bytes
    assert core.append("N", "a" * 59).ok
    assert core.size() == 64
    assert core.append("N", "b").kind is CoreMemoryErrorKind.CAPACITY
    assert core.size() == 64


def test_budget_counts_bytes_not_characters(data_dir):
    """The budget counts UTF-8 bytes, not characters."""
    core = CoreMemory(data_dir, max_bytes=16)

    # 5 bytes of heading + 6 two-byte characters = 17 bytes
    result = core.append("N", "é" * 6)

    assert result.kind is CoreMemoryErrorKind.CAPACITY
    assert core.read() == ""


def test_document_never_exceeds_budget_over_many_appends(data_dir):
    """Repeated appends never push the file past the budget."""
    core = CoreMemory(data_dir, max_bytes=512)

    outcomes = [core.append(f"Section {i % 4}", f"fact number {i}") for i in range(100)]

    assert any(not r.ok for r in outcomes)
    assert len(core.file_path.read_bytes()) <= 512


def test_full_message_names_the_limit(data_dir):
    """The capacity message states the limit in KB."""
    core = CoreMemory(data_dir)
    assert "4KB" in core.full_message


# ============================================================================
# Replace
# ============================================================================


def test_replace_missing_section(data_dir, core_document):
    """Replacing in an unknown section reports SECTION_NOT_FOUND."""
    core = _core_with(data_dir, core_document)

    result = core.replace("Projects", "a", "b")

    assert result.kind is CoreMemoryErrorKind.SECTION_NOT_FOUND
    assert "Projects" in result.error
    assert core.read() == core_document


def test_replace_missing_text(data_dir, core_document):
    """Replacing absent text reports TEXT_NOT_FOUND."""
    core = _core_with(data_dir, core_document)

    result = core.replace("Preferences", "Likes coffee", "Likes juice")

    assert result.kind is CoreMemoryErrorKind.TEXT_NOT_FOUND
    assert "Preferences" in result.error
    assert core.read() == core_document


def test_replace_only_touches_named_section(data_dir, core_document):
    """Identical text in another section is left alone."""
    core = _core_with(data_dir, core_document)

    assert core.replace("Preferences", "Lives in Berlin", "Lives in Paris").ok

    content = core.read()
    assert "## About the User\nName: Alice\nLives in Berlin\n" in content
    assert content.endswith("## Preferences\nLikes tea\nLives in Paris")


def test_replace_text_only_in_other_section_is_not_found(data_dir, core_document):
    """Text that exists only in another section is not found."""
    core = _core_with(data_dir, core_document)

    result = core.replace("Preferences", "Name: Alice", "Name: Bob")

    assert result.kind is CoreMemoryErrorKind.TEXT_NOT_FOUND
    assert core.read() == core_document


def test_replace_cannot_match_across_next_heading(data_dir):
    """Old text may not span into the next section."""
    core = _core_with(data_dir, "## A\nfoo\n## B\nbar")

    result = core.replace("A", "foo\n## B", "gone")

    assert result.kind is CoreMemoryErrorKind.TEXT_NOT_FOUND


def test_replace_first_occurrence_only(data_dir):
    """Only the first occurrence inside the section is replaced."""
    core = _core_with(data_dir, "## Pets\na cat\na cat")

    assert core.replace("Pets", "cat", "dog").ok

    assert core.read() == "## Pets\na dog\na cat"


def test_replace_with_empty_text_drops_lines(data_dir):
    """Replacing with an empty string removes the text."""
    core = _core_with(data_dir, "## A\nold\n## B\nkeep")

    assert core.replace("A", "old", "").ok

    assert core.read() == "## A\n## B\nkeep"


def test_replace_is_capacity_gated(data_dir):
    """A replacement that would exceed the budget is rejected."""
    core = _core_with(data_dir, "## N\nab", max_bytes=16)

    result = core.replace("N", "ab", "x" * 20)

    assert result.kind is CoreMemoryErrorKind.CAPACITY
    assert core.read() == "## N\nab"


# ============================================================================
# Legacy migration
# ============================================================================


def test_legacy_memory_file_is_migrated(data_dir):
    """A legacy memory.md is copied in and kept in place."""
    legacy = data_dir / LEGACY_MEMORY_FILE
    legacy.write_text("## About the User\nName: Alice", encoding="utf-8")

    core = CoreMemory(data_dir)

    assert core.read() == "## About the User\nName: Alice"
    assert legacy.exists()


def test_migration_runs_once(data_dir):
    """Migration does not overwrite an existing core memory document."""
    legacy = data_dir / LEGACY_MEMORY_FILE
    legacy.write_text("## Old\nv1", encoding="utf-8")
    CoreMemory(data_dir).append("Old", "v2")

    legacy.write_text("## Old\nchanged", encoding="utf-8")
    core = CoreMemory(data_dir)

    assert core.read() == "## Old\nv1\nv2"


def test_no_legacy_file_means_no_document(data_dir):
    """Without a legacy file no document is created."""
    CoreMemory(data_dir)
    assert not (data_dir / CORE_MEMORY_FILE).exists()


def test_result_truthiness(data_dir):
    """CoreMemoryResult is truthy on success and falsy on failure."""
    core = CoreMemory(data_dir, max_bytes=256)

    assert core.append("Notes", "fits")
    assert not core.append("Notes", "x" * 300)
