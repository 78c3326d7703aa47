"""Utility functions for archivist."""

from archivist.utils.helpers import ensure_dir, get_user_dir, validate_user_id

__all__ = [
    "ensure_dir",
    "get_user_dir",
    "validate_user_id",
]
