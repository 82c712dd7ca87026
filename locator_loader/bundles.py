"""Bundle API over plain directories on disk."""

from __future__ import annotations

import asyncio
import os
from typing import Awaitable, Dict, Iterable, List, Optional, TypeVar, Union

from .logger import ValidationError
from .models import Bundle

T = TypeVar("T")

SKIP_DIRS = {"node_modules", "__pycache__"}


def _normalize_extensions(extensions: Union[str, Iterable[str], None]) -> Optional[set]:
    if extensions is None:
        return None
    if isinstance(extensions, str):
        extensions = [extensions]
    return {"." + e.lstrip(".") for e in extensions}


class LocalBundleApi:
    """Serves bundle file listings and schedules the pipeline's async work.

    The bundle's resolved output directory, hidden directories and
    ``node_modules`` are never listed.
    """

    def __init__(self, bundles: Iterable[Bundle] = ()):
        self._bundles: Dict[str, Bundle] = {}
        for bundle in bundles:
            self.add(bundle)

    def add(self, bundle: Bundle) -> Bundle:
        existing = self._bundles.get(bundle.name)
        if existing is not None and os.path.abspath(existing.root) != os.path.abspath(bundle.root):
            raise ValidationError(f"bundle name {bundle.name!r} already used for {existing.root}")
        self._bundles[bundle.name] = bundle
        return bundle

    def get(self, bundle_name: str) -> Bundle:
        try:
            return self._bundles[bundle_name]
        except KeyError:
            raise ValidationError(f"unknown bundle {bundle_name!r}") from None

    def names(self) -> List[str]:
        return list(self._bundles)

    def bundle_for(self, path: str) -> Optional[Bundle]:
        """Innermost bundle whose root contains ``path``."""
        full = os.path.abspath(path)
        best: Optional[Bundle] = None
        for bundle in self._bundles.values():
            root = os.path.abspath(bundle.root)
            if full == root or full.startswith(root + os.sep):
                if best is None or len(root) > len(os.path.abspath(best.root)):
                    best = bundle
        return best

    def get_bundle_files(self, bundle_name: str, extensions: Union[str, Iterable[str], None] = None) -> List[str]:
        bundle = self.get(bundle_name)
        wanted = _normalize_extensions(extensions)
        excluded = os.path.abspath(bundle.output_dir) if bundle.output_dir else None
        files: List[str] = []
        for dirpath, dirnames, filenames in os.walk(bundle.root):
            dirnames[:] = sorted(
                d for d in dirnames
                if not d.startswith(".") and d not in SKIP_DIRS
                and os.path.abspath(os.path.join(dirpath, d)) != excluded
            )
            for name in sorted(filenames):
                if wanted is None or os.path.splitext(name)[1] in wanted:
                    files.append(os.path.abspath(os.path.join(dirpath, name)))
        return files

    def promise(self, awaitable: Awaitable[T]) -> "asyncio.Future[T]":
        return asyncio.ensure_future(awaitable)


__all__ = ["LocalBundleApi"]
