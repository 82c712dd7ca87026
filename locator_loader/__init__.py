"""Incremental YUI loader-metadata builds for locator bundles."""

from .config import LoaderOptions, ModuleTransform
from .logger import ArtifactWriteError, CompilerError, ConfigurationError, LoaderError, ValidationError
from .models import (
    Bundle,
    BuildResult,
    BuildVariant,
    ChangedFile,
    ChangeEvent,
    CompiledLoader,
    ModuleDescriptor,
    PartitionedMetadata,
    WrittenArtifact,
)
from .pipeline import LoaderPlugin
from .registry import ModuleRegistry

__all__ = [
    "ArtifactWriteError",
    "Bundle",
    "BuildResult",
    "BuildVariant",
    "ChangeEvent",
    "ChangedFile",
    "CompiledLoader",
    "CompilerError",
    "ConfigurationError",
    "LoaderError",
    "LoaderOptions",
    "LoaderPlugin",
    "ModuleDescriptor",
    "ModuleRegistry",
    "ModuleTransform",
    "PartitionedMetadata",
    "ValidationError",
    "WrittenArtifact",
]
