"""Path helpers."""

import re
from pathlib import Path

VALID_USER_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


def ensure_dir(p: Path) -> Path:
    """Create a directory (and parents) if missing, return it."""
    p.mkdir(parents=True, exist_ok=True)
    return p


def validate_user_id(user_id: str) -> str:
    if not VALID_USER_ID_PATTERN.match(user_id):
        raise ValueError("Invalid user id: must be alphanumeric with _ or -, max 64 chars")
    return user_id


def get_user_dir(data_dir: Path, user_id: str) -> Path:
    """Per-user directory: <data_dir>/users/<user_id>/."""
    return ensure_dir(Path(data_dir) / "users" / validate_user_id(user_id))
