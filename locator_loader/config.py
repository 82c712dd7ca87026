"""Plugin options and their environment-variable counterparts."""

from __future__ import annotations

import os
import re
import shlex
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Pattern, Union

from .logger import ConfigurationError, env_bool, env_float, get_logger

LOGGER = get_logger("locator_loader.config")

DEFAULT_ARGS: List[str] = ["--no-coverage", "--no-lint", "--silent", "--quiet", "--no-global-config"]
DEFAULT_COMPILER = os.environ.get("LOADER_COMPILER", "shifter")
COMPILER_TIMEOUT_SECS = env_float("LOADER_COMPILER_TIMEOUT", 300.0, LOGGER)

FilterFn = Callable[[Any, str], bool]
TransformFn = Callable[[str, Any], Any]


@dataclass(frozen=True)
class ModuleTransform:
    """Resolved form of a ``bool | callable`` option.

    ``enabled`` says whether the step runs at all; ``fn`` (when present)
    receives ``(bundle_name, value)`` and returns the value to use instead.
    """

    enabled: bool = False
    fn: Optional[TransformFn] = None

    @classmethod
    def resolve(cls, value: Union[bool, TransformFn, "ModuleTransform", None]) -> "ModuleTransform":
        if isinstance(value, ModuleTransform):
            return value
        if callable(value):
            return cls(enabled=True, fn=value)
        return cls(enabled=bool(value))

    def apply(self, bundle_name: str, value: Any) -> Any:
        return self.fn(bundle_name, value) if self.fn is not None else value

    def __bool__(self) -> bool:
        return self.enabled


def resolve_filter(value: Union[None, str, Pattern, FilterFn]) -> Optional[FilterFn]:
    """Turn a regex (string or compiled) or predicate into a ``(bundle, relative_path)`` predicate."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = re.compile(value)
        except re.error as exc:
            raise ConfigurationError(f"invalid filter expression {value!r}: {exc}") from exc
    if isinstance(value, re.Pattern):
        pattern = value
        return lambda bundle, relative_path: bool(pattern.search(relative_path))
    if callable(value):
        return value
    raise ConfigurationError(f"filter must be a regular expression or a callable, got {type(value).__name__}")


@dataclass
class LoaderOptions:
    register_group: bool = False
    register_server_modules: ModuleTransform = field(default_factory=ModuleTransform)
    use_server_modules: ModuleTransform = field(default_factory=ModuleTransform)
    cache: bool = True
    build_dir: Optional[str] = None
    args: List[str] = field(default_factory=lambda: list(DEFAULT_ARGS))
    filter: Optional[FilterFn] = None

    def __post_init__(self) -> None:
        self.register_server_modules = ModuleTransform.resolve(self.register_server_modules)
        self.use_server_modules = ModuleTransform.resolve(self.use_server_modules)
        self.filter = resolve_filter(self.filter)
        self.args = list(self.args) if self.args is not None else list(DEFAULT_ARGS)
        if self.build_dir:
            self.build_dir = os.path.abspath(self.build_dir)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None, **overrides: Any) -> "LoaderOptions":
        env = os.environ if environ is None else environ
        kwargs: Dict[str, Any] = {
            "register_group": env_bool("LOADER_REGISTER_GROUP", False, LOGGER, env),
            "register_server_modules": env_bool("LOADER_REGISTER_SERVER_MODULES", False, LOGGER, env),
            "use_server_modules": env_bool("LOADER_USE_SERVER_MODULES", False, LOGGER, env),
            "cache": env_bool("LOADER_CACHE", True, LOGGER, env),
            "build_dir": env.get("LOADER_BUILD_DIR") or None,
            "filter": env.get("LOADER_FILTER") or None,
        }
        if env.get("LOADER_ARGS"):
            kwargs["args"] = shlex.split(env["LOADER_ARGS"])
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)

    def describe(self) -> Dict[str, Any]:
        """Plugin descriptor: what the plugin builds and how the compiler is driven."""
        return {
            "summary": "Plugin to build YUI Loader metadata for a bundle",
            "types": ["*"],
            "cache": self.cache,
            "args": list(self.args),
            "register_group": self.register_group,
            "register_server_modules": self.register_server_modules.enabled,
            "use_server_modules": self.use_server_modules.enabled,
            "build_dir": self.build_dir,
            "filter": self.filter is not None,
        }


__all__ = [
    "COMPILER_TIMEOUT_SECS",
    "DEFAULT_ARGS",
    "DEFAULT_COMPILER",
    "LoaderOptions",
    "ModuleTransform",
    "resolve_filter",
]
