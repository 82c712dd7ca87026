"""Shared helpers for CLI commands."""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, List

from locator_loader.bundles import LocalBundleApi
from locator_loader.compiler import ShifterCompiler
from locator_loader.config import DEFAULT_COMPILER, LoaderOptions
from locator_loader.logger import ValidationError
from locator_loader.models import Bundle
from locator_loader.pipeline import LoaderPlugin


def parse_bundle(spec: str, build_directory: str = "build") -> Bundle:
    """Parse ``NAME=PATH`` or ``PATH`` (name defaults to the directory name)."""
    name, sep, path = spec.partition("=")
    if not sep:
        name, path = "", spec
    root = os.path.abspath(path or ".")
    if not os.path.isdir(root):
        raise ValidationError(f"bundle root is not a directory: {root}")
    return Bundle(name=name or os.path.basename(root), root=root, build_directory=build_directory)


def make_api(args: argparse.Namespace) -> LocalBundleApi:
    build_directory = getattr(args, "build_directory", None) or "build"
    specs: List[str] = getattr(args, "bundles", None) or ["."]
    return LocalBundleApi(parse_bundle(s, build_directory) for s in specs)


def make_options(args: argparse.Namespace) -> LoaderOptions:
    return LoaderOptions.from_env(
        register_group=getattr(args, "register_group", None),
        register_server_modules=getattr(args, "register_server_modules", None),
        use_server_modules=getattr(args, "use_server_modules", None),
        cache=False if getattr(args, "no_cache", False) else None,
        build_dir=getattr(args, "build_dir", None),
        filter=getattr(args, "filter", None),
        args=getattr(args, "compiler_args", None),
    )


def make_plugin(args: argparse.Namespace) -> LoaderPlugin:
    compiler = ShifterCompiler(executable=getattr(args, "compiler", None) or DEFAULT_COMPILER)
    return LoaderPlugin(make_options(args), compiler=compiler)


def output_json(data: Any) -> None:
    """Write JSON to stdout; every command reports through here."""
    json.dump(data, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def run_async(coro) -> Any:
    """Run an async coroutine from sync CLI context."""
    return asyncio.run(coro)
