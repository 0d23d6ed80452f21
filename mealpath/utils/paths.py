"""File path resolution using platformdirs.

In dev mode paths resolve relative to the project root. When
MEALPATH_DATA_DIR is set, or when running from an installed package
outside a checkout, the platform user data directory is used:
  macOS: ~/Library/Application Support/mealpath/
  Linux: ~/.local/share/mealpath/
"""

import os
from pathlib import Path

import platformdirs

APP_NAME = "mealpath"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _is_checkout() -> bool:
    """Return True when running from a source checkout."""
    return (_PROJECT_ROOT / "pyproject.toml").exists()


def get_data_dir() -> Path:
    """Return the directory for persistent data (DB, uploads)."""
    override = os.environ.get("MEALPATH_DATA_DIR", "").strip()
    if override:
        return Path(override)
    if _is_checkout():
        return _PROJECT_ROOT
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))


def get_upload_dir() -> Path:
    """Return the root directory for uploaded artifacts."""
    return get_data_dir() / "uploads"


def get_default_db_path() -> Path:
    """Return the default SQLite database file path."""
    return get_data_dir() / "mealpath.db"


def ensure_dirs_exist() -> None:
    """Create all required directories if they don't exist."""
    for d in [get_data_dir(), get_upload_dir()]:
        d.mkdir(parents=True, exist_ok=True)
