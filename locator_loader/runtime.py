"""In-process loader runtime: group, server-module and attach registration."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .logger import ContextLogger, get_logger
from .metadata import parse_loader_source
from .models import WrittenArtifact

LOGGER = ContextLogger(get_logger("locator_loader.runtime"))

GROUP_DIR_TOKEN = "{{groupDir}}"
COMBO_DEFAULTS: Dict[str, Any] = {
    "maxURLLength": 1024,
    "comboBase": "/combo~",
    "comboSep": "~",
}


def _is_remote(url: str) -> bool:
    return url.startswith(("http://", "https://", "//"))


class LoaderRuntime:
    """Keeps the loader configuration a server would expose to its clients.

    ``register_group`` reads the group back out of the generated loader
    module; a missing or mismatched group is a misconfiguration that is
    logged and otherwise ignored.
    """

    def __init__(self, default_base: Optional[str] = None, default_root: Optional[str] = None):
        self.default_base = default_base
        self.default_root = default_root
        self._lock = threading.Lock()
        self.config: Dict[str, Any] = {"groups": {}}
        self.group_folders: Dict[str, str] = {}
        self.seed: List[str] = []
        self.server_modules: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.attached: Dict[str, List[str]] = {}

    def _group_settings(self, existing: Dict[str, Any], group_dir: str) -> Dict[str, Any]:
        base = existing.get("base") or self.default_base or f"/{GROUP_DIR_TOKEN}/"
        root = existing.get("root") or self.default_root or f"/{GROUP_DIR_TOKEN}/"
        base = base.replace(GROUP_DIR_TOKEN, group_dir)
        root = root.replace(GROUP_DIR_TOKEN, group_dir)
        settings = {"base": base, "root": root, "local": not _is_remote(base), **COMBO_DEFAULTS}
        for key, value in existing.items():
            settings.setdefault(key, value)
        return settings

    def register_group(self, bundle_name: str, output_dir: str, artifact: WrittenArtifact) -> Optional[Dict[str, Any]]:
        log = LOGGER.bind(bundle=bundle_name)
        try:
            meta = parse_loader_source(Path(artifact.full_path).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("cannot read loader module", file=artifact.full_path, error=str(exc))
            return None
        if meta is None:
            log.warning("missing group config in loader module", file=artifact.full_path)
            return None
        if meta["group"] != bundle_name:
            log.warning("group name mismatch", group=meta["group"])
            return None

        group_dir = os.path.basename(os.path.normpath(output_dir))
        with self._lock:
            groups = self.config.setdefault("groups", {})
            settings = self._group_settings(groups.get(bundle_name) or {}, group_dir)
            groups[bundle_name] = settings
            self.group_folders[bundle_name] = output_dir
            if meta["name"] not in self.seed:
                self.seed.append(meta["name"])
        log.info("registered loader group", base=settings["base"], root=settings["root"])
        return settings

    def register_modules(self, bundle_name: str, modules: Dict[str, Dict[str, Any]]) -> None:
        with self._lock:
            self.server_modules[bundle_name] = dict(modules or {})
        LOGGER.debug("registered server modules", bundle=bundle_name, count=len(modules or {}))

    def attach_modules(self, bundle_name: str, module_names: Iterable[str]) -> None:
        names = list(module_names or [])
        with self._lock:
            known = self.server_modules.get(bundle_name, {})
            unknown = [n for n in names if n not in known]
            self.attached[bundle_name] = names
        if unknown:
            LOGGER.warning("attaching modules not registered on the server", bundle=bundle_name, modules=unknown)
        LOGGER.debug("attached server modules", bundle=bundle_name, modules=names)


__all__ = ["COMBO_DEFAULTS", "LoaderRuntime"]
