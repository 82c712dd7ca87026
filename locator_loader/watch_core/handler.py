"""Watchdog event handler feeding bundle file changes into the change queue."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from locator_loader.bundles import LocalBundleApi

from .config import LOGGER

TRACKED_EVENTS = frozenset({"created", "modified", "deleted", "moved"})


class BundleHandler(FileSystemEventHandler):
    """Enqueues changed files that belong to a bundle.

    Both ends of a move are enqueued. Directories, hidden paths, files outside
    every bundle and anything under a bundle's output directory are ignored,
    so compiler output never feeds back into the watcher.
    """

    def __init__(self, api: LocalBundleApi, queue):
        super().__init__()
        self.api = api
        self.queue = queue

    def wanted(self, path: str) -> Optional[Path]:
        full = os.path.abspath(path)
        bundle = self.api.bundle_for(full)
        if bundle is None or os.path.isdir(full):
            return None
        rel = Path(os.path.relpath(full, bundle.root))
        if any(part.startswith(".") for part in rel.parts):
            return None
        out = bundle.output_dir
        if out and (full == out or full.startswith(out.rstrip(os.sep) + os.sep)):
            return None
        return Path(full)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in TRACKED_EVENTS:
            return
        for raw in (event.src_path, getattr(event, "dest_path", None)):
            path = self.wanted(os.fsdecode(raw)) if raw else None
            if path is not None:
                LOGGER.debug("%s: %s", event.event_type, path)
                self.queue.add(path)


__all__ = ["BundleHandler", "TRACKED_EVENTS"]
