"""Build-set computation for a batch of modified files."""

from __future__ import annotations

import os
from typing import Iterable, List, Optional

from .capabilities import ModuleExtractor
from .logger import get_logger
from .models import BUILD_FILENAME, MODULE_EXTENSION, loader_file_name
from .registry import ModuleRegistry

logger = get_logger(__name__)


def _within(path: str, directory: str) -> bool:
    directory = directory.rstrip(os.sep)
    return path == directory or path.startswith(directory + os.sep)


def builds_in_bundle(
    bundle_name: str,
    modified_files: Optional[Iterable[str]],
    build_files: Optional[Iterable[str]],
    *,
    registry: ModuleRegistry,
    extractor: ModuleExtractor,
) -> List[str]:
    """Return the ordered list of files that must be compiled for this change.

    Both inputs are sorted first so identical sets always produce the same
    build set, and therefore the same loader artifact bytes. Every descriptor
    that parses is registered, including build.json files whose build ends up
    skipped, so later events see the full module set.
    """
    modified = sorted(modified_files or [])
    candidates = sorted(build_files or [])
    own_loader = loader_file_name(bundle_name)
    builds: List[str] = []

    modified_modules: List[str] = []
    for path in modified:
        if os.path.splitext(path)[1] != MODULE_EXTENSION:
            continue
        modified_modules.append(path)
        # the generated loader must not trigger its own rebuild
        if os.path.basename(path) == own_loader:
            continue
        descriptor = extractor.extract_module(path)
        if descriptor is None:
            logger.debug("skipping %s: not a module", path)
            continue
        registry.register(bundle_name, path, descriptor)
        builds.append(path)

    modified_set = set(modified)
    for path in candidates:
        if os.path.basename(path) != BUILD_FILENAME:
            continue
        descriptor = extractor.extract_build(path)
        if descriptor is None:
            logger.debug("skipping %s: invalid build descriptor", path)
            continue
        registry.register(bundle_name, path, descriptor)
        directory = os.path.dirname(path)
        if path in modified_set or any(_within(m, directory) for m in modified_modules):
            builds.append(path)
        else:
            logger.debug("build %s untouched by this change", path)

    return builds


__all__ = ["builds_in_bundle"]
