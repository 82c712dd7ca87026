"""Build command: one-shot build of every bundle, as if all files had changed."""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any, Dict

from cli.core import make_api, make_plugin, output_json, run_async
from locator_loader.bundles import LocalBundleApi
from locator_loader.models import ChangeEvent
from locator_loader.pipeline import LoaderPlugin


async def build_all(plugin: LoaderPlugin, api: LocalBundleApi, names) -> Dict[str, Dict[str, Any]]:
    """Run one full-bundle event per bundle concurrently and summarize the outcomes."""
    names = list(names)
    events = []
    for name in names:
        bundle = api.get(name)
        bundle.resolve_output_dir(plugin.options.build_dir)
        events.append(ChangeEvent.from_paths(bundle, api.get_bundle_files(name)))
    outcomes = await asyncio.gather(*(plugin.process(e, api) for e in events), return_exceptions=True)

    summary: Dict[str, Dict[str, Any]] = {}
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, Exception):
            summary[name] = {"status": "failed", "error": str(outcome)}
        elif outcome is None:
            summary[name] = {"status": "skipped"}
        else:
            summary[name] = {
                "status": "built",
                "output_dir": api.get(name).output_dir,
                "artifact": outcome.artifact.full_path,
                "build_set": outcome.build_set,
            }
    return summary


def cmd_build(args: argparse.Namespace) -> None:
    """Build loader metadata and compile modules for the given bundles."""
    api = make_api(args)
    plugin = make_plugin(args)
    summary = run_async(build_all(plugin, api, api.names()))
    ok = all(entry["status"] != "failed" for entry in summary.values())
    output_json({"ok": ok, "bundles": summary})
    if not ok:
        sys.exit(1)
