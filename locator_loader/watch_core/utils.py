"""Misc utilities shared across watch_core modules."""

from __future__ import annotations

from typing import Type

from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .config import LOGGER


def create_observer(use_polling: bool, observer_cls: Type[Observer] = Observer) -> Observer:
    """Create a watchdog observer based on configuration."""
    if use_polling:
        LOGGER.info("[watch_mode] Using polling observer for filesystem events")
        return PollingObserver()
    return observer_cls()


__all__ = ["create_observer"]
