"""Watch command: rebuild bundle loaders on file changes (daemon mode)."""
from __future__ import annotations

import argparse
import asyncio
import sys
import threading
import time

from cli.commands.build import build_all
from cli.core import make_api, make_plugin


def cmd_watch(args: argparse.Namespace) -> None:
    """Watch bundle roots and run the pipeline for every debounced batch of changes."""
    from watchdog.observers import Observer
    from locator_loader.watch_core.config import USE_POLLING
    from locator_loader.watch_core.handler import BundleHandler
    from locator_loader.watch_core.processor import process_paths
    from locator_loader.watch_core.queue import ChangeQueue
    from locator_loader.watch_core.utils import create_observer

    api = make_api(args)
    plugin = make_plugin(args)

    loop = asyncio.new_event_loop()
    worker = threading.Thread(target=loop.run_forever, name="loader-pipeline", daemon=True)
    worker.start()

    for name in api.names():
        bundle = api.get(name)
        bundle.resolve_output_dir(plugin.options.build_dir)
        print(f"Watching {bundle.root} -> bundle={name} output={bundle.output_dir}", file=sys.stderr)

    if not getattr(args, "no_initial_build", False):
        summary = asyncio.run_coroutine_threadsafe(build_all(plugin, api, api.names()), loop).result()
        for name, entry in summary.items():
            print(f"[initial] {name}: {entry['status']}", file=sys.stderr)

    q = ChangeQueue(lambda paths: process_paths(paths, plugin, api, loop))
    handler = BundleHandler(api, q)

    use_polling = bool(getattr(args, "polling", False) or USE_POLLING)
    obs = create_observer(use_polling, observer_cls=Observer)
    for name in api.names():
        obs.schedule(handler, api.get(name).root, recursive=True)
    obs.start()

    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        print("\nStopping watcher...", file=sys.stderr)
    finally:
        q.cancel()
        obs.stop()
        obs.join()
        loop.call_soon_threadsafe(loop.stop)
        worker.join(timeout=5.0)
