"""Core building blocks for the ``watch`` command.

Modules:
    config: debounce / observer settings and logger
    queue: debounced change queue implementation
    handler: watchdog event handler logic
    processor: batch -> per-bundle change events
    utils: observer construction
"""

from . import config, queue, handler, processor, utils

__all__ = [
    "config",
    "queue",
    "handler",
    "processor",
    "utils",
]
