"""
Async subprocess manager for locator-loader.

Runs compiler processes without blocking the event loop. Every call has a
timeout after which the process is terminated (then killed), and processes
still running can be torn down together on shutdown.
"""

import asyncio
import itertools
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

logger = logging.getLogger("locator_loader.async_subprocess")

# grace period between terminate() and kill()
TERMINATE_GRACE_SECS = 5.0


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one subprocess run; ``code`` is -1 when it never started or timed out."""

    ok: bool
    code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False


def _decode(data: Optional[bytes]) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


class AsyncSubprocessManager:
    """
    Async subprocess runner with bookkeeping.

    Usage::

        async with AsyncSubprocessManager(timeout=60) as mgr:
            result = await mgr.run_async(["shifter", "--build-dir", out], cwd=src)
            if not result.ok:
                ...
    """

    def __init__(self, timeout: float = 300.0):
        self.timeout = timeout
        self._ids = itertools.count(1)
        self._running: Dict[int, asyncio.subprocess.Process] = {}
        self._stats = {"started": 0, "completed": 0, "failed": 0, "timeout": 0}

    async def run_async(
        self,
        cmd: List[str],
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> ProcessResult:
        """
        Run ``cmd`` (an argument list, never a shell string) and capture its output.

        Args:
            cmd: Executable followed by its arguments
            env: Environment for the child; defaults to a copy of ours
            cwd: Working directory for the child

        Returns:
            ProcessResult; start failures and timeouts are reported, not raised
        """
        run_id = next(self._ids)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                env=env if env is not None else os.environ.copy(),
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("cannot start %s: %s", cmd[0] if cmd else "<empty command>", exc)
            self._stats["failed"] += 1
            return ProcessResult(ok=False, code=-1, stderr=str(exc))

        self._running[run_id] = proc
        self._stats["started"] += 1
        logger.debug("run %d started: %s", run_id, cmd)
        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("run %d timed out after %ss", run_id, self.timeout)
            await self._terminate(run_id, proc)
            self._finish(run_id, "timeout")
            return ProcessResult(ok=False, code=-1, stderr=f"timed out after {self.timeout}s", timed_out=True)

        self._finish(run_id, "completed" if proc.returncode == 0 else "failed")
        return ProcessResult(ok=proc.returncode == 0, code=proc.returncode, stdout=_decode(out), stderr=_decode(err))

    def _finish(self, run_id: int, outcome: str) -> None:
        if self._running.pop(run_id, None) is not None:
            self._stats[outcome] += 1

    async def _terminate(self, run_id: int, proc: asyncio.subprocess.Process) -> None:
        try:
            proc.terminate()
            await asyncio.wait_for(proc.wait(), timeout=TERMINATE_GRACE_SECS)
        except asyncio.TimeoutError:
            logger.warning("run %d ignored SIGTERM, killing", run_id)
            proc.kill()
            await proc.wait()
        except ProcessLookupError:
            pass

    async def cleanup_all_processes(self) -> None:
        """Terminate every subprocess still running."""
        pending = list(self._running.items())
        self._running.clear()
        for run_id, proc in pending:
            await self._terminate(run_id, proc)
        if pending:
            logger.info("terminated %d leftover compiler processes", len(pending))

    def get_stats(self) -> Dict[str, int]:
        return {**self._stats, "active_processes": len(self._running)}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup_all_processes()


__all__ = ["AsyncSubprocessManager", "ProcessResult"]
