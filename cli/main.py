"""locator-loader command line: ``build``, ``watch`` and ``describe``."""
from __future__ import annotations

import argparse
import importlib
import json
import os
import sys
import traceback

# command -> (module, function); imported on dispatch, after .env is loaded
COMMANDS = {
    "build": ("cli.commands.build", "cmd_build"),
    "watch": ("cli.commands.watch", "cmd_watch"),
    "describe": ("cli.commands.describe", "cmd_describe"),
}


def _bundle_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("bundles", nargs="*", default=["."], metavar="[NAME=]PATH",
                   help="Bundle roots (name defaults to the directory name)")
    p.add_argument("--build-directory", default="build",
                   help="Output directory name, relative to each bundle root")


def _option_args(p: argparse.ArgumentParser) -> None:
    # flags default to None so unset ones fall through to LOADER_* variables
    p.add_argument("--build-dir", help="Shared output directory for every bundle")
    p.add_argument("--register-group", action="store_true", default=None,
                   help="Register each bundle's loader group with the runtime")
    p.add_argument("--register-server-modules", action="store_true", default=None,
                   help="Register server-side module metadata (needs --register-group)")
    p.add_argument("--use-server-modules", action="store_true", default=None,
                   help="Attach server-side modules (needs --register-server-modules)")
    p.add_argument("--no-cache", action="store_true", help="Always recompile")
    p.add_argument("--filter", help="Only consider changed files whose bundle-relative path matches")
    p.add_argument("--compiler", help="Module compiler executable")
    p.add_argument("--compiler-arg", dest="compiler_args", action="append",
                   help="Extra compiler argument (repeatable, replaces the defaults)")


def build_parser() -> argparse.ArgumentParser:
    from cli._version import __version__

    parser = argparse.ArgumentParser(
        prog="locator-loader",
        description="Build YUI loader metadata for bundles and compile their modules",
    )
    parser.add_argument("--debug", action="store_true", help="Debug logging and stack traces on error")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Build every bundle once")
    _bundle_args(build)
    _option_args(build)

    watch = sub.add_parser("watch", help="Rebuild bundles on file changes (daemon)")
    _bundle_args(watch)
    _option_args(watch)
    watch.add_argument("--polling", action="store_true", help="Use the polling observer")
    watch.add_argument("--no-initial-build", action="store_true", help="Skip the startup build")

    describe = sub.add_parser("describe", help="Print the plugin descriptor")
    _option_args(describe)
    return parser


def main(argv=None) -> None:
    from dotenv import load_dotenv

    load_dotenv()
    # LOADER_* module-level defaults are read on first import
    from locator_loader.logger import configure_logging, safe_bool

    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging("DEBUG" if args.debug else None, json_format=safe_bool(os.environ.get("LOG_JSON"), False))

    mod_path, fn_name = COMMANDS[args.command]
    try:
        getattr(importlib.import_module(mod_path), fn_name)(args)
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as exc:
        json.dump({"ok": False, "error": str(exc)}, sys.stdout, default=str)
        sys.stdout.write("\n")
        if args.debug:
            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
