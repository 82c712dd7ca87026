"""Default module extraction for YUI sources and shifter build.json files."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Optional

from .logger import get_logger
from .models import BuildVariant, ModuleDescriptor

logger = get_logger(__name__)

_ADD_RE = re.compile(r"YUI\.add\(\s*(['\"])(?P<name>[^'\"]+)\1\s*,")
_TAIL_RE = re.compile(
    r"\}\s*,\s*(['\"])(?P<version>[^'\"]*)\1\s*(?:,\s*(?P<config>\{.*\}))?\s*\)\s*;?\s*\Z",
    re.S,
)
_REQUIRES_RE = re.compile(r"requires\s*:\s*\[(?P<items>[^\]]*)\]")
_AFFINITY_RE = re.compile(r"affinity\s*:\s*(['\"])(?P<affinity>client|server)\1")
_STRING_RE = re.compile(r"(['\"])([^'\"]+)\1")


def _read_text(path: str) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("cannot read %s: %s", path, exc)
        return None


def parse_module_source(text: str) -> Optional[Dict[str, Any]]:
    """Extract name, version and meta config from a ``YUI.add(...)`` module.

    Returns None when the text does not declare a module.
    """
    m = _ADD_RE.search(text)
    if not m:
        return None
    info: Dict[str, Any] = {"name": m.group("name"), "version": "", "config": {}}
    tail = _TAIL_RE.search(text, m.end())
    if tail:
        info["version"] = tail.group("version")
        meta = tail.group("config") or ""
        requires = _REQUIRES_RE.search(meta)
        if requires:
            info["config"]["requires"] = [s for _, s in _STRING_RE.findall(requires.group("items"))]
        affinity = _AFFINITY_RE.search(meta)
        if affinity:
            info["config"]["affinity"] = affinity.group("affinity")
    return info


class SourceExtractor:
    """Recognizes ``YUI.add`` module files and shifter ``build.json`` descriptors."""

    def extract_module(self, path: str) -> Optional[ModuleDescriptor]:
        text = _read_text(path)
        if text is None:
            return None
        info = parse_module_source(text)
        if info is None:
            return None
        name = info["name"]
        return ModuleDescriptor(
            name=name,
            buildfile=path,
            builds={name: BuildVariant(name=name, config=info["config"])},
        )

    def extract_build(self, path: str) -> Optional[ModuleDescriptor]:
        text = _read_text(path)
        if text is None:
            return None
        try:
            data = json.loads(text)
        except ValueError as exc:
            logger.debug("invalid json in %s: %s", path, exc)
            return None
        if not isinstance(data, dict):
            return None
        name = data.get("name")
        builds = data.get("builds")
        if not isinstance(name, str) or not isinstance(builds, dict):
            return None
        variants: Dict[str, BuildVariant] = {}
        for build_name, build in builds.items():
            config = build.get("config") if isinstance(build, dict) else None
            variants[build_name] = BuildVariant(name=build_name, config=dict(config or {}))
        return ModuleDescriptor(name=name, buildfile=path, builds=variants)


__all__ = ["SourceExtractor", "parse_module_source"]
