"""Default metadata compiler for the synthetic loader module."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Mapping, Optional

from .models import CompiledLoader, ModuleDescriptor

_TEMPLATE = """YUI.add({name}, function (Y, NAME) {{
    Y.applyConfig({config});
}}, "", {{"requires": ["loader-base"]}});
"""
_SOURCE_RE = re.compile(
    r'^YUI\.add\((?P<name>"(?:[^"\\]|\\.)*"), function \(Y, NAME\) \{\n'
    r'    Y\.applyConfig\((?P<config>.*)\);\n\}, ""',
    re.S,
)


def module_map(group: str, view: Mapping[str, ModuleDescriptor]) -> Dict[str, Dict[str, Any]]:
    """Flatten a metadata view into ``build name -> loader config``."""
    modules: Dict[str, Dict[str, Any]] = {}
    for mod in view.values():
        for build, variant in mod.builds.items():
            entry = dict(variant.config)
            entry["group"] = group
            modules[build] = entry
    return modules


class LoaderMetaBuilder:
    """Compiles a module view into ``loader-<bundle>`` source text.

    Output is a pure function of its inputs: keys are sorted so the same
    view always yields the same bytes.
    """

    def compile(self, name: str, group: str, view: Mapping[str, ModuleDescriptor]) -> CompiledLoader:
        modules = module_map(group, view)
        config = {"groups": {group: {"modules": modules}}}
        source = _TEMPLATE.format(
            name=json.dumps(name),
            config=json.dumps(config, sort_keys=True, indent=4).replace("\n", "\n    "),
        )
        return CompiledLoader(name=name, group=group, source=source, json=modules)


def parse_loader_source(text: str) -> Optional[Dict[str, Any]]:
    """Read name, group and modules back out of a generated loader module."""
    m = _SOURCE_RE.match(text)
    if not m:
        return None
    try:
        name = json.loads(m.group("name"))
        groups = json.loads(m.group("config")).get("groups") or {}
    except (ValueError, AttributeError):
        return None
    if len(groups) != 1:
        return None
    group, config = next(iter(groups.items()))
    return {"name": name, "group": group, "modules": (config or {}).get("modules") or {}}


__all__ = ["LoaderMetaBuilder", "module_map", "parse_loader_source"]
