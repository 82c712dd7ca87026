"""Persists derived artifacts into a bundle's source tree."""

from __future__ import annotations

import asyncio
import os
import uuid
from pathlib import Path

from .logger import ArtifactWriteError, get_logger
from .models import Bundle, WrittenArtifact

logger = get_logger(__name__)


def _atomic_write_text(path: Path, text: str) -> None:
    # Write to temp file first, then rename (atomic on most filesystems)
    temp_path = path.with_suffix(f".tmp.{uuid.uuid4().hex[:8]}")
    try:
        temp_path.write_text(text, encoding="utf-8")
        temp_path.replace(path)
    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


class FileArtifactWriter:
    """Writes artifacts under ``bundle.root`` without blocking the event loop.

    Rewriting an artifact with identical content leaves the file untouched so
    its mtime does not invalidate downstream caches.
    """

    def _target_path(self, bundle: Bundle, relative_path: str) -> Path:
        root = Path(os.path.abspath(bundle.root))
        rel = Path(relative_path)
        if rel.is_absolute() or ".." in rel.parts:
            raise ValueError(f"artifact path escapes bundle root: {relative_path}")
        return root / rel

    def _persist(self, bundle: Bundle, relative_path: str, source: str) -> WrittenArtifact:
        target = self._target_path(bundle, relative_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            unchanged = target.read_text(encoding="utf-8") == source
        except (OSError, UnicodeDecodeError):
            unchanged = False
        if unchanged:
            logger.debug("artifact %s unchanged", target)
        else:
            _atomic_write_text(target, source)
            logger.debug("wrote artifact %s (%d bytes)", target, len(source))
        return WrittenArtifact(bundle_name=bundle.name, relative_path=relative_path, full_path=str(target))

    async def write(self, bundle: Bundle, relative_path: str, source: str) -> WrittenArtifact:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._persist, bundle, relative_path, source)
        except (OSError, ValueError) as exc:
            raise ArtifactWriteError(f"failed to write {relative_path} in bundle {bundle.name}: {exc}") from exc


__all__ = ["FileArtifactWriter"]
