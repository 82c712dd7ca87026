"""Client / server split of a bundle's module metadata."""

from __future__ import annotations

from typing import Dict, Mapping

from .models import (
    BuildVariant,
    ModuleDescriptor,
    PartitionedMetadata,
    loader_file_name,
    loader_module_name,
)


def _add_variant(side: Dict[str, ModuleDescriptor], mod: ModuleDescriptor, build: str,
                 variant: BuildVariant) -> None:
    view = side.get(mod.name)
    if view is None:
        view = side[mod.name] = mod.trimmed()
    view.builds[build] = variant


def partition_metadata(bundle_name: str, modules: Mapping[str, ModuleDescriptor]) -> PartitionedMetadata:
    """Split the cumulative module set of a bundle by build affinity.

    A build goes to the server unless it is marked ``client`` and to the
    client unless it is marked ``server``. Only qualifying builds are copied,
    and descriptors registered under different cache keys with the same
    module name share one view. The synthetic ``loader-<bundle>`` module is
    always added to the client side with a single client-only build, and
    never to the server side.
    """
    meta = PartitionedMetadata()
    for mod in modules.values():
        for build, variant in mod.builds.items():
            affinity = variant.affinity
            if affinity != "client":
                _add_variant(meta.server, mod, build, variant)
            if affinity != "server":
                _add_variant(meta.client, mod, build, variant)

    name = loader_module_name(bundle_name)
    meta.server.pop(name, None)
    loader = meta.client.get(name)
    if loader is None:
        loader = meta.client[name] = ModuleDescriptor(name=name, buildfile=loader_file_name(bundle_name))
    loader.builds[name] = BuildVariant(name=name, config={"affinity": "client"})
    return meta


__all__ = ["partition_metadata"]
