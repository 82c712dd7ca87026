"""Describe command: print the plugin descriptor for the effective options."""
from __future__ import annotations

import argparse

from cli.core import make_options, output_json


def cmd_describe(args: argparse.Namespace) -> None:
    output_json(make_options(args).describe())
