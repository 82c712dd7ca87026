"""Cumulative per-bundle module registry."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from .models import ModuleDescriptor


class ModuleRegistry:
    """Maps bundle name -> (cache key -> ModuleDescriptor).

    The cache key is the source path that produced the descriptor. Entries are
    replaced in place and never evicted; a bundle only appears once something
    has been registered for it. One registry is owned by each plugin instance,
    so several plugins can live in the same process.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bundles: Dict[str, Dict[str, ModuleDescriptor]] = {}

    def register(self, bundle_name: str, cache_key: str, descriptor: ModuleDescriptor) -> None:
        with self._lock:
            self._bundles.setdefault(bundle_name, {})[cache_key] = descriptor

    def lookup(self, bundle_name: str) -> Optional[Dict[str, ModuleDescriptor]]:
        """Return a snapshot of the bundle's modules, or None if none were ever registered."""
        with self._lock:
            modules = self._bundles.get(bundle_name)
            return dict(modules) if modules is not None else None

    def bundles(self) -> List[str]:
        with self._lock:
            return list(self._bundles)

    def clear(self) -> None:
        with self._lock:
            self._bundles.clear()

    def __contains__(self, bundle_name: str) -> bool:
        with self._lock:
            return bundle_name in self._bundles


__all__ = ["ModuleRegistry"]
