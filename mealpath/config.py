"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from mealpath.utils.paths import get_default_db_path, get_upload_dir

MIB = 1024 * 1024


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _database_url() -> str:
    database_url = os.environ.get("DATABASE_URL", "").strip()
    if database_url:
        return database_url

    db_path = os.environ.get("MEALPATH_DB_PATH", "").strip()
    if db_path:
        if db_path.startswith("sqlite:"):
            return db_path
        return f"sqlite:///{db_path}"

    return f"sqlite:///{get_default_db_path()}"


def _allowed_origins() -> list[str]:
    raw = os.environ.get("ALLOWED_ORIGINS", "").strip()
    if not raw:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    """Configuration values shared by the API, services and storage."""

    app_name: str = "mealpath"
    version: str = "0.1.0"
    database_url: str = field(default_factory=_database_url)
    sql_echo: bool = field(default_factory=lambda: _env_bool("SQL_ECHO"))
    upload_dir: str = field(
        default_factory=lambda: os.environ.get("MEALPATH_UPLOAD_DIR", "").strip()
        or str(get_upload_dir())
    )
    artifact_storage_backend: str = field(
        default_factory=lambda: os.environ.get("ARTIFACT_STORAGE_BACKEND", "local")
        .strip()
        .lower()
    )
    max_artifact_bytes: int = field(
        default_factory=lambda: int(os.environ.get("MAX_ARTIFACT_BYTES", str(20 * MIB)))
    )
    jwt_secret: str = field(
        default_factory=lambda: os.environ.get("JWT_SECRET", "dev-secret-change-me")
    )
    jwt_issuer: str = field(
        default_factory=lambda: os.environ.get("JWT_ISSUER", "mealpath.identity")
    )
    jwt_ttl_seconds: int = field(
        default_factory=lambda: int(os.environ.get("JWT_TTL_SECONDS", str(30 * 24 * 3600)))
    )
    allowed_origins: list[str] = field(default_factory=_allowed_origins)
    admin_email: str = field(
        default_factory=lambda: os.environ.get("MEALPATH_ADMIN_EMAIL", "").strip()
    )
    admin_password: str = field(
        default_factory=lambda: os.environ.get("MEALPATH_ADMIN_PASSWORD", "")
    )
    admin_phone: str = field(
        default_factory=lambda: os.environ.get("MEALPATH_ADMIN_PHONE", "").strip()
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
