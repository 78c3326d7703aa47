"""Shared fixtures for memory tests."""

import pytest

from archivist.memory.store import FactStore


@pytest.fixture
def data_dir(tmp_path):
    """A per-user data directory."""
    path = tmp_path / "users" / "alice"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def store(tmp_path):
    """A fresh fact store, closed after the test."""
    fact_store = FactStore(tmp_path / "memory.db")
    yield fact_store
    fact_store.close()


@pytest.fixture
def core_document():
    """A core memory document with two sections."""
    return (
        "## About the User\n"
        "Name: Alice\n"
        "Lives in Berlin\n"
        "\n"
        "## Preferences\n"
        "Likes tea\n"
        "Lives in Berlin"
    )
