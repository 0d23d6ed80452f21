"""Artifact storage backends for registration uploads.

Provides a pluggable storage interface so uploaded profile photos,
license scans and partner documents are not tied to one filesystem
layout. Deletion is always best-effort: it runs inside cleanup and
compensation paths that must not mask the error that triggered them.
"""

from __future__ import annotations

import errno
import logging
import os
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from mealpath.config import get_settings
from mealpath.db.models import ArtifactKind

logger = logging.getLogger(__name__)

# errno values that indicate a lock or busy condition worth retrying.
_TRANSIENT_ERRNOS = frozenset({errno.EPERM, errno.EBUSY, errno.EACCES})

# Subdirectory per artifact kind
_KIND_DIRS: dict[str, str] = {
    ArtifactKind.profile_photo.value: "deliveryAgents/profile",
    ArtifactKind.license_photo.value: "deliveryAgents/licenses",
    ArtifactKind.partner_document.value: "partners/docs",
}


@dataclass
class ArtifactMetadata:
    """Descriptive metadata supplied with an upload."""

    kind: str
    original_name: str
    content_type: str


class ArtifactStore(Protocol):
    """Storage contract used by the registration saga."""

    def store(self, data: bytes, metadata: ArtifactMetadata) -> str:
        """Persist an artifact and return a storage reference."""

    def remove(self, refs: str | Iterable[str] | None) -> None:
        """Best-effort removal of one or more references. Never raises."""

    def exists(self, ref: str) -> bool:
        """Return True when the referenced artifact exists."""


def _build_artifact_filename(original_name: str) -> str:
    """Build a collision-free filename keeping the original extension."""
    ext = Path(original_name).suffix.lower() or ".jpg"
    return f"{int(time.time() * 1000)}_{uuid4().hex[:12]}{ext}"


class LocalArtifactStore:
    """Filesystem-backed artifact storage."""

    def __init__(
        self,
        base_dir: str | Path,
        retries: int = 3,
        retry_delay: float = 0.2,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.retries = retries
        self.retry_delay = retry_delay

    def store(self, data: bytes, metadata: ArtifactMetadata) -> str:
        target_dir = self.base_dir / _KIND_DIRS.get(metadata.kind, "misc")
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / _build_artifact_filename(metadata.original_name)
        path.write_bytes(data)
        logger.debug("Stored %s artifact at %s (%d bytes)", metadata.kind, path, len(data))
        return str(path)

    def exists(self, ref: str) -> bool:
        return Path(ref).exists()

    def remove(self, refs: str | Iterable[str] | None) -> None:
        """Delete one or more stored files.

        Missing files are skipped. Lock/busy/permission errors are retried
        ``retries`` times with a fixed ``retry_delay``; anything else, or
        running out of attempts, is logged and dropped.

        Args:
            refs: A single path, an iterable of paths, or None.
        """
        if not refs:
            return
        paths = [refs] if isinstance(refs, str) else list(refs)
        for ref in paths:
            if not ref:
                continue
            try:
                self._remove_one(Path(ref).resolve())
            except Exception as e:
                logger.warning("Artifact removal failed unexpectedly for %s: %s", ref, e)

    def _remove_one(self, path: Path) -> None:
        if not path.exists():
            return
        attempt = 0
        while True:
            try:
                os.unlink(path)
                return
            except FileNotFoundError:
                return
            except OSError as e:
                attempt += 1
                if e.errno in _TRANSIENT_ERRNOS and attempt <= self.retries:
                    time.sleep(self.retry_delay)
                    continue
                logger.warning(
                    "Artifact removal failed for %s after %d attempt(s): %s",
                    path, attempt, e,
                )
                return


def build_artifact_store(base_dir: str | Path | None = None) -> ArtifactStore:
    """Build the artifact store backend from configuration."""
    settings = get_settings()
    backend = settings.artifact_storage_backend
    if backend in {"", "local"}:
        return LocalArtifactStore(base_dir or settings.upload_dir)
    raise RuntimeError(
        f"Unsupported ARTIFACT_STORAGE_BACKEND={backend!r}. Use 'local'."
    )
