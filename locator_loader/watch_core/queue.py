"""Debounced change queue used by the watcher."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Set

from .config import DELAY_SECS, LOGGER


class ChangeQueue:
    """Collects changed paths and hands them to ``process_cb`` as sorted batches.

    A batch is flushed once ``delay`` seconds pass without a new path. Batches
    run one at a time on the queue's worker thread; paths that arrive while a
    batch is being processed make up the next one.
    """

    def __init__(self, process_cb: Callable[[List[Path]], None], delay: Optional[float] = None):
        self._process_cb = process_cb
        self._delay = DELAY_SECS if delay is None else delay
        self._cond = threading.Condition()
        self._paths: Set[Path] = set()
        self._deadline: Optional[float] = None
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="change-queue", daemon=True)
        self._worker.start()

    def add(self, p: Path) -> None:
        with self._cond:
            if self._closed:
                return
            self._paths.add(p)
            self._deadline = time.monotonic() + self._delay
            self._cond.notify()

    def _next_batch(self) -> Optional[List[Path]]:
        with self._cond:
            while not self._closed:
                if self._deadline is None:
                    self._cond.wait()
                    continue
                remaining = self._deadline - time.monotonic()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue
                batch = sorted(self._paths)
                self._paths.clear()
                self._deadline = None
                return batch
        return None

    def _run(self) -> None:
        while True:
            batch = self._next_batch()
            if batch is None:
                return
            try:
                self._process_cb(batch)
            except Exception:
                LOGGER.exception("processing %d changed paths failed", len(batch))

    def cancel(self) -> None:
        """Drop unflushed paths and stop the worker once the current batch is done."""
        with self._cond:
            self._closed = True
            self._paths.clear()
            self._deadline = None
            self._cond.notify_all()


__all__ = ["ChangeQueue"]
