"""Watcher settings, read once at import."""

from __future__ import annotations

from locator_loader.logger import env_bool, env_float, get_logger

LOGGER = get_logger("locator_loader.watch")

# quiet period before a batch of file events is flushed
DELAY_SECS = env_float("WATCH_DEBOUNCE_SECS", 1.0, LOGGER)

USE_POLLING = env_bool("WATCH_USE_POLLING", False, LOGGER)
