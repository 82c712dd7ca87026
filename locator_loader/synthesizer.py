"""Glue between partitioned metadata, the metadata compiler and the artifact writer."""

from __future__ import annotations

from typing import Mapping

from .capabilities import ArtifactWriter, MetadataCompiler
from .models import Bundle, CompiledLoader, ModuleDescriptor, WrittenArtifact, loader_file_name, loader_module_name


class LoaderSynthesizer:
    def __init__(self, compiler: MetadataCompiler, writer: ArtifactWriter):
        self.compiler = compiler
        self.writer = writer

    def compile_client(self, bundle_name: str, view: Mapping[str, ModuleDescriptor]) -> CompiledLoader:
        return self.compiler.compile(loader_module_name(bundle_name), bundle_name, view)

    def compile_server(self, bundle_name: str, view: Mapping[str, ModuleDescriptor]) -> CompiledLoader:
        return self.compiler.compile(loader_module_name(bundle_name) + "-server", bundle_name, view)

    async def persist(self, bundle: Bundle, loader: CompiledLoader) -> WrittenArtifact:
        """Write the client loader as ``loader-<bundle>.js``; write errors propagate unchanged."""
        return await self.writer.write(bundle, loader_file_name(bundle.name), loader.source)


__all__ = ["LoaderSynthesizer"]
