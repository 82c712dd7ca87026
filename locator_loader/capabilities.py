"""Contracts the pipeline consumes from its collaborators.

Default implementations live in :mod:`extractors`, :mod:`metadata`,
:mod:`writer`, :mod:`compiler`, :mod:`runtime` and :mod:`bundles`; anything
matching these protocols can be injected instead.
"""

from __future__ import annotations

from typing import Any, Awaitable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, TypeVar

from .models import Bundle, CompiledLoader, ModuleDescriptor, WrittenArtifact

T = TypeVar("T")


class ModuleExtractor(Protocol):
    def extract_module(self, path: str) -> Optional[ModuleDescriptor]:
        """Parse a module source file; None when it is not a module. Never raises."""
        ...

    def extract_build(self, path: str) -> Optional[ModuleDescriptor]:
        """Parse a build.json; None when it is not a valid build descriptor. Never raises."""
        ...


class MetadataCompiler(Protocol):
    def compile(self, name: str, group: str, view: Mapping[str, ModuleDescriptor]) -> CompiledLoader:
        ...


class ArtifactWriter(Protocol):
    def write(self, bundle: Bundle, relative_path: str, source: str) -> Awaitable[WrittenArtifact]:
        ...


class Compiler(Protocol):
    def compile(
        self,
        files: Sequence[str],
        *,
        output_dir: str,
        cache: bool,
        args: Sequence[str],
    ) -> Awaitable[None]:
        ...


class RuntimeIntegration(Protocol):
    def register_group(self, bundle_name: str, output_dir: str, artifact: WrittenArtifact) -> Any:
        ...

    def register_modules(self, bundle_name: str, modules: Dict[str, Dict[str, Any]]) -> Any:
        ...

    def attach_modules(self, bundle_name: str, module_names: Iterable[str]) -> Any:
        ...


class BundleApi(Protocol):
    def get_bundle_files(self, bundle_name: str, extensions: Iterable[str]) -> List[str]:
        ...

    def promise(self, awaitable: Awaitable[T]) -> Awaitable[T]:
        ...


__all__ = [
    "ArtifactWriter",
    "BundleApi",
    "Compiler",
    "RuntimeIntegration",
    "MetadataCompiler",
    "ModuleExtractor",
]
