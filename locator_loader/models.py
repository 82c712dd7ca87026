"""Data model shared by the classifier, partitioner and pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional

Affinity = Literal["client", "server"]

MODULE_EXTENSION = ".js"
BUILD_FILENAME = "build.json"
LOADER_PREFIX = "loader-"


def loader_module_name(bundle_name: str) -> str:
    """Name of the synthetic loader module generated for a bundle."""
    return LOADER_PREFIX + bundle_name


def loader_file_name(bundle_name: str) -> str:
    return loader_module_name(bundle_name) + MODULE_EXTENSION


@dataclass
class BuildVariant:
    """One compiled build of a module, as declared by its buildfile."""

    name: str
    config: Dict[str, Any] = field(default_factory=dict)

    @property
    def affinity(self) -> Optional[str]:
        return self.config.get("affinity") if self.config else None


@dataclass
class ModuleDescriptor:
    """A module unit extracted from a module source file or a build.json."""

    name: str
    buildfile: str
    builds: Dict[str, BuildVariant] = field(default_factory=dict)

    def trimmed(self) -> "ModuleDescriptor":
        """Copy of the descriptor with no builds; the partitioner fills it."""
        return ModuleDescriptor(name=self.name, buildfile=self.buildfile, builds={})


@dataclass
class Bundle:
    """A named tree of sources with its own build output location.

    ``output_dir`` is resolved lazily by :meth:`resolve_output_dir` and is
    never overwritten once set.
    """

    name: str
    root: str
    build_directory: str = "build"
    output_dir: Optional[str] = None

    def resolve_output_dir(self, override: Optional[str] = None) -> str:
        if not self.output_dir:
            if override:
                self.output_dir = override
            else:
                build_dir = self.build_directory
                if not os.path.isabs(build_dir):
                    build_dir = os.path.join(self.root, build_dir)
                self.output_dir = os.path.abspath(build_dir)
        return self.output_dir


@dataclass(frozen=True)
class ChangedFile:
    full_path: str
    relative_path: str


@dataclass
class ChangeEvent:
    """One batch of filesystem changes for a single bundle."""

    bundle: Bundle
    files: Mapping[str, ChangedFile] = field(default_factory=dict)

    @classmethod
    def from_paths(cls, bundle: Bundle, paths) -> "ChangeEvent":
        files = {}
        for p in paths:
            full = os.path.abspath(str(p))
            files[full] = ChangedFile(full_path=full, relative_path=os.path.relpath(full, bundle.root))
        return cls(bundle=bundle, files=files)


@dataclass
class PartitionedMetadata:
    client: Dict[str, ModuleDescriptor] = field(default_factory=dict)
    server: Dict[str, ModuleDescriptor] = field(default_factory=dict)


@dataclass
class CompiledLoader:
    """Output of the metadata compiler: loader source plus its JSON view."""

    name: str
    group: str
    source: str
    json: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class WrittenArtifact:
    bundle_name: str
    relative_path: str
    full_path: str


@dataclass
class BuildResult:
    bundle_name: str
    build_set: List[str]
    artifact: WrittenArtifact
    client: CompiledLoader
    server: Optional[CompiledLoader] = None


__all__ = [
    "Affinity",
    "BUILD_FILENAME",
    "Bundle",
    "BuildResult",
    "BuildVariant",
    "ChangeEvent",
    "ChangedFile",
    "CompiledLoader",
    "MODULE_EXTENSION",
    "ModuleDescriptor",
    "PartitionedMetadata",
    "WrittenArtifact",
    "loader_file_name",
    "loader_module_name",
]
