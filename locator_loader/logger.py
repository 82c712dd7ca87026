"""Logging setup, contextual logging and the locator-loader error taxonomy.

Records emitted through :class:`ContextLogger` carry their bound fields
(``bundle``, ``file``, ...) as ``record.extra_fields``; the JSON formatter
flattens them into the emitted object.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Mapping, MutableMapping, Optional, Tuple, Union

_PLAIN_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
_RECORD_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})
_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def _resolve_level(level: Union[int, str, None] = None) -> int:
    if isinstance(level, int):
        return level
    name = str(level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


logging.basicConfig(level=_resolve_level(), format=_PLAIN_FORMAT, stream=sys.stderr)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with bound context fields at top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info and record.exc_info[1] is not None:
            err = record.exc_info[1]
            payload["error_type"] = type(err).__name__
            payload["error"] = str(err)
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: Union[int, str, None] = None, json_format: bool = False) -> None:
    """Apply a level (falls back to ``LOG_LEVEL``) and output format to the root handlers."""
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    formatter = JSONFormatter() if json_format else logging.Formatter(_PLAIN_FORMAT)
    for handler in root.handlers:
        if type(handler) is logging.StreamHandler:
            handler.setFormatter(formatter)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class ContextLogger(logging.LoggerAdapter):
    """Adapter whose keyword arguments become structured fields.

    ``log.info("built", files=3)`` logs ``"built"`` with
    ``extra_fields == {**bound_context, "files": 3}``.
    """

    def __init__(self, logger: logging.Logger, **context: Any):
        super().__init__(logger, context)

    @property
    def context(self) -> Mapping[str, Any]:
        return self.extra

    def bind(self, **context: Any) -> "ContextLogger":
        return ContextLogger(self.logger, **{**self.extra, **context})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        fields = dict(self.extra)
        for key in [k for k in kwargs if k not in _RECORD_KWARGS]:
            fields[key] = kwargs.pop(key)
        extra = dict(kwargs.get("extra") or {})
        extra["extra_fields"] = fields
        kwargs["extra"] = extra
        return msg, kwargs


class LoaderError(Exception):
    """Base class for failures that reject a build event."""


class ArtifactWriteError(LoaderError):
    """The loader module could not be written into the bundle."""


class CompilerError(LoaderError):
    """The module compiler exited unsuccessfully."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ValidationError(LoaderError):
    """Bad input from the caller (unknown bundle, bad bundle root, ...)."""


class ConfigurationError(LoaderError):
    """Invalid option value."""


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def safe_float(value: Any, default: float, logger: Optional[logging.Logger] = None, context: str = "") -> float:
    """``float(value)``, or ``default`` for blank or unparseable input (the latter is logged)."""
    if _blank(value):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        if logger is not None:
            logger.warning("ignoring %s=%r: not a number", context, value)
        return default


def safe_bool(value: Any, default: bool, logger: Optional[logging.Logger] = None, context: str = "") -> bool:
    """Parse 1/0, true/false, yes/no, on/off; anything else falls back to ``default``."""
    if _blank(value):
        return default
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE:
        return True
    if word in _FALSE:
        return False
    if logger is not None:
        logger.warning("ignoring %s=%r: not a boolean", context, value)
    return default


def env_float(name: str, default: float, logger: Optional[logging.Logger] = None,
              environ: Optional[Mapping[str, str]] = None) -> float:
    env = os.environ if environ is None else environ
    return safe_float(env.get(name), default, logger, name)


def env_bool(name: str, default: bool, logger: Optional[logging.Logger] = None,
             environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    return safe_bool(env.get(name), default, logger, name)
