"""Drives the external shifter compiler over a build set."""

from __future__ import annotations

import asyncio
import hashlib
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .async_subprocess import AsyncSubprocessManager
from .bundles import SKIP_DIRS
from .config import COMPILER_TIMEOUT_SECS, DEFAULT_COMPILER
from .logger import CompilerError, get_logger
from .models import BUILD_FILENAME, LOADER_PREFIX, MODULE_EXTENSION

logger = get_logger(__name__)


def _sha1_file(h, path: Path) -> None:
    try:
        h.update(path.read_bytes())
    except OSError:
        h.update(b"\0missing")


def _is_generated_loader(name: str) -> bool:
    return name.startswith(LOADER_PREFIX) and name.endswith(MODULE_EXTENSION)


def _inputs_under(directory: str, output_dir: str) -> List[str]:
    """Source files under ``directory``, skipping build output and generated files."""
    out = os.path.abspath(output_dir)
    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = [
            d
            for d in dirnames
            if not d.startswith(".")
            and d not in SKIP_DIRS
            and os.path.abspath(os.path.join(dirpath, d)) != out
        ]
        for name in filenames:
            if name.startswith(".") or _is_generated_loader(name):
                continue
            found.append(os.path.join(dirpath, name))
    return sorted(found)


def fingerprint(path: str, output_dir: str, args: Sequence[str]) -> str:
    """Content hash of everything a build of ``path`` depends on.

    A build.json covers the source files under its directory; a module file
    only covers itself. The output directory and compiler args are part of
    the key. Build output, ``node_modules``, hidden entries and generated
    loader modules are not inputs, so a successful build never invalidates
    its own fingerprint.
    """
    h = hashlib.sha1()
    h.update(output_dir.encode("utf-8"))
    h.update("\0".join(args).encode("utf-8"))
    p = Path(path)
    if p.name == BUILD_FILENAME:
        for child in _inputs_under(str(p.parent), output_dir):
            h.update(os.path.relpath(child, p.parent).encode("utf-8"))
            _sha1_file(h, Path(child))
    else:
        _sha1_file(h, p)
    return h.hexdigest()


class ShifterCompiler:
    """Runs one compiler process per entry of the build set, in order.

    With ``cache`` enabled an entry whose fingerprint matches the last
    successful build into the same output directory is skipped.
    """

    def __init__(
        self,
        executable: str = DEFAULT_COMPILER,
        manager: Optional[AsyncSubprocessManager] = None,
        timeout: float = COMPILER_TIMEOUT_SECS,
    ):
        self.executable = executable
        self.manager = manager or AsyncSubprocessManager(timeout=timeout)
        self._lock = threading.Lock()
        self._fingerprints: Dict[str, str] = {}

    def command_for(self, path: str, output_dir: str, args: Sequence[str]) -> List[str]:
        cmd = [self.executable, "--build-dir", output_dir]
        if os.path.basename(path) != BUILD_FILENAME:
            cmd += ["--yui-module", path]
        return cmd + list(args)

    def _cached(self, path: str, digest: str) -> bool:
        with self._lock:
            return self._fingerprints.get(path) == digest

    def _remember(self, path: str, digest: str) -> None:
        with self._lock:
            self._fingerprints[path] = digest

    async def compile(self, files: Sequence[str], *, output_dir: str, cache: bool, args: Sequence[str]) -> None:
        Path(output_dir).mkdir(parents=True, exist_ok=True)
        loop = asyncio.get_running_loop()
        for path in files:
            # hashing walks whole directories; keep it off the event loop
            digest = await loop.run_in_executor(None, fingerprint, path, output_dir, list(args))
            if cache and self._cached(path, digest):
                logger.debug("skip unchanged build %s", path)
                continue
            cmd = self.command_for(path, output_dir, args)
            result = await self.manager.run_async(cmd, cwd=os.path.dirname(path) or None)
            if not result.ok:
                stderr = result.stderr.strip()
                raise CompilerError(
                    f"{self.executable} failed for {path} (exit={result.code}): {stderr[:500]}",
                    returncode=result.code,
                    stderr=stderr,
                )
            logger.info("built %s -> %s", path, output_dir)
            self._remember(path, digest)


__all__ = ["ShifterCompiler", "fingerprint"]
