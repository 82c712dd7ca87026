"""Batch processing: turn a debounced batch of paths into per-bundle change events."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from locator_loader.bundles import LocalBundleApi
from locator_loader.models import BuildResult, Bundle, ChangeEvent
from locator_loader.pipeline import LoaderPlugin

from .config import LOGGER as logger


def group_by_bundle(api: LocalBundleApi, paths: Iterable[Path]) -> Dict[str, List[Path]]:
    groups: Dict[str, List[Path]] = {}
    for p in sorted(set(Path(x) for x in paths)):
        bundle = api.bundle_for(str(p))
        if bundle is None:
            logger.debug("no bundle owns %s", p)
            continue
        groups.setdefault(bundle.name, []).append(p)
    return groups


def process_paths(
    paths: Iterable[Path],
    plugin: LoaderPlugin,
    api: LocalBundleApi,
    loop: asyncio.AbstractEventLoop,
    timeout: Optional[float] = None,
) -> Dict[str, Optional[BuildResult]]:
    """Submit one event per bundle to ``loop`` and wait for all of them.

    Called from the change queue's worker thread. A failing bundle is logged
    and does not stop the others.
    """
    futures = {}
    for bundle_name, files in group_by_bundle(api, paths).items():
        bundle: Bundle = api.get(bundle_name)
        event = ChangeEvent.from_paths(bundle, files)
        futures[bundle_name] = asyncio.run_coroutine_threadsafe(plugin.process(event, api), loop)

    results: Dict[str, Optional[BuildResult]] = {}
    for bundle_name, future in futures.items():
        try:
            results[bundle_name] = future.result(timeout)
        except Exception as exc:
            logger.error("[build_failed] %s: %s", bundle_name, exc)
            results[bundle_name] = None
            continue
        if results[bundle_name] is None:
            logger.info("[skipped] %s: nothing to build", bundle_name)
        else:
            logger.info("[built] %s (%d files)", bundle_name, len(results[bundle_name].build_set))
    return results


__all__ = ["group_by_bundle", "process_paths"]
