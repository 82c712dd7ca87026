"""Per-event build pipeline: classify, partition, synthesize, persist, register, compile."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Dict, List, Optional

from .capabilities import ArtifactWriter, BundleApi, Compiler, MetadataCompiler, ModuleExtractor, RuntimeIntegration
from .classifier import builds_in_bundle
from .compiler import ShifterCompiler
from .config import LoaderOptions
from .extractors import SourceExtractor
from .logger import ContextLogger, get_logger
from .metadata import LoaderMetaBuilder
from .models import Bundle, BuildResult, ChangeEvent
from .partition import partition_metadata
from .registry import ModuleRegistry
from .runtime import LoaderRuntime
from .synthesizer import LoaderSynthesizer
from .writer import FileArtifactWriter

LOGGER = ContextLogger(get_logger("locator_loader.pipeline"))


class LoaderPlugin:
    """Builds loader metadata for a bundle and compiles its modules on every change.

    Example::

        plugin = LoaderPlugin(LoaderOptions(register_group=True, register_server_modules=True))
        pending = plugin.bundle_updated(event, api)
        if pending is not None:
            result = await pending

    Events for the same bundle are processed one at a time; different bundles
    build concurrently. Collaborators default to the implementations shipped
    in this package and can be replaced individually.
    """

    def __init__(
        self,
        options: Optional[LoaderOptions] = None,
        *,
        registry: Optional[ModuleRegistry] = None,
        extractor: Optional[ModuleExtractor] = None,
        metadata_compiler: Optional[MetadataCompiler] = None,
        writer: Optional[ArtifactWriter] = None,
        compiler: Optional[Compiler] = None,
        runtime: Optional[RuntimeIntegration] = None,
    ):
        self.options = options or LoaderOptions()
        self.registry = registry or ModuleRegistry()
        self.extractor = extractor or SourceExtractor()
        self.synthesizer = LoaderSynthesizer(metadata_compiler or LoaderMetaBuilder(), writer or FileArtifactWriter())
        self.compiler = compiler or ShifterCompiler()
        self.runtime = runtime or LoaderRuntime()
        self._bundle_locks: Dict[str, asyncio.Lock] = {}

    def describe(self) -> Dict[str, Any]:
        return self.options.describe()

    def _lock_for(self, bundle_name: str) -> asyncio.Lock:
        lock = self._bundle_locks.get(bundle_name)
        if lock is None:
            lock = self._bundle_locks[bundle_name] = asyncio.Lock()
        return lock

    def _modified_files(self, event: ChangeEvent) -> List[str]:
        accept = self.options.filter
        return [
            f.full_path
            for f in (event.files or {}).values()
            if accept is None or accept(event.bundle, f.relative_path)
        ]

    def bundle_updated(self, event: ChangeEvent, api: BundleApi) -> Optional[Awaitable[BuildResult]]:
        """Handle one change event.

        Returns None when the event has nothing to build (no module was ever
        registered for the bundle, or the build set is empty); otherwise the
        awaitable produced by ``api.promise`` that resolves to a
        :class:`BuildResult` or raises the first failure.

        Classification runs synchronously, before the bundle lock is taken,
        so the no-op decision can be returned without awaiting. Its registry
        writes are therefore visible to a build already in progress for the
        same bundle; that build only reads the registry once, at partition
        time, under the lock.
        """
        bundle = event.bundle
        log = LOGGER.bind(bundle=bundle.name)
        bundle.resolve_output_dir(self.options.build_dir)

        files = self._modified_files(event)
        log.debug("classifying", modified=len(files))
        builds = builds_in_bundle(
            bundle.name,
            files,
            api.get_bundle_files(bundle.name, extensions="json"),
            registry=self.registry,
            extractor=self.extractor,
        )
        if self.registry.lookup(bundle.name) is None or not builds:
            log.debug("nothing to build")
            return None
        return api.promise(self._run(bundle, builds, log))

    async def process(self, event: ChangeEvent, api: BundleApi) -> Optional[BuildResult]:
        pending = self.bundle_updated(event, api)
        if pending is None:
            return None
        return await pending

    async def _run(self, bundle: Bundle, builds: List[str], log: ContextLogger) -> BuildResult:
        async with self._lock_for(bundle.name):
            try:
                result = await self._build(bundle, builds, log)
            except Exception as exc:
                log.exception("build failed", error=str(exc))
                raise
        log.info("build complete", files=len(result.build_set))
        return result

    async def _build(self, bundle: Bundle, builds: List[str], log: ContextLogger) -> BuildResult:
        opts = self.options
        log.debug("partitioning")
        meta = partition_metadata(bundle.name, self.registry.lookup(bundle.name) or {})

        log.debug("synthesizing", client=len(meta.client), server=len(meta.server))
        client = self.synthesizer.compile_client(bundle.name, meta.client)
        artifact = await self.synthesizer.persist(bundle, client)

        server = None
        if opts.register_group:
            log.debug("registering group", output_dir=bundle.output_dir)
            self.runtime.register_group(bundle.name, bundle.output_dir, artifact)
            if opts.register_server_modules:
                server = self.synthesizer.compile_server(bundle.name, meta.server)
                self.runtime.register_modules(
                    bundle.name, opts.register_server_modules.apply(bundle.name, server.json)
                )
                if opts.use_server_modules:
                    self.runtime.attach_modules(
                        bundle.name, opts.use_server_modules.apply(bundle.name, list(server.json))
                    )

        build_set = builds + [artifact.full_path]
        log.debug("compiling", files=len(build_set))
        await self.compiler.compile(build_set, output_dir=bundle.output_dir, cache=opts.cache, args=opts.args)
        return BuildResult(
            bundle_name=bundle.name,
            build_set=build_set,
            artifact=artifact,
            client=client,
            server=server,
        )


__all__ = ["LoaderPlugin"]
