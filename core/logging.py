# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Core - Structured logging with context
# PURPOSE: Session/record/world-tagged logging for every digitizing component
# CREATED: 19 OCT 2026
# ============================================================================
"""
Structured Logging

Every component logs through ``get_logger(name, ComponentType.X)``.
Contextual fields are pushed with ``log_context`` and attached to each
record emitted inside the block:

    session_id   draft session (12 hex chars)
    record_id    committed record being edited
    class_key    feature class of the draft
    operation    create / edit / import
    world_id     world the session or import targets
    editor_id    who is editing

The context lives in a ContextVar, so it follows asyncio tasks (the id
index check) as well as plain calls.

Output is human-readable by default; set ``DIGITIZER_LOG_FORMAT=json``
for one JSON object per line.

Usage:
    from core.logging import ComponentType, get_logger, log_context

    logger = get_logger(__name__, ComponentType.SESSION)

    with log_context(session_id="3f2a9c", operation="create"):
        logger.info("Committed record")
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Union


class ComponentType(str, Enum):
    """Which part of the digitizer emitted a record."""
    SNAPPING = "snapping"
    SCHEMA = "schema"
    SESSION = "session"
    LAYER_STORE = "layer_store"
    RENDER = "render"
    IMPORT = "import"
    EXPORT = "export"
    ID_INDEX = "id_index"


# ============================================================================
# CONTEXT
# ============================================================================

@dataclass(frozen=True)
class LogContext:
    """Contextual fields attached to every record logged inside a block."""
    session_id: Optional[str] = None
    record_id: Optional[int] = None
    class_key: Optional[str] = None
    operation: Optional[str] = None
    world_id: Optional[str] = None
    editor_id: Optional[str] = None
    component: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def merged(self, **kwargs) -> "LogContext":
        """Child context: given fields override, ``extra`` is combined."""
        extra = {**self.extra, **(kwargs.pop("extra", None) or {})}
        return replace(self, extra=extra, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        out.update(self.extra)
        return out


_current: ContextVar[LogContext] = ContextVar("digitizer_log_context", default=LogContext())


def get_current_context() -> LogContext:
    return _current.get()


@contextmanager
def log_context(**kwargs) -> Iterator[LogContext]:
    """
    Push contextual fields for the duration of the block.

    Nested blocks inherit the enclosing fields.

    Example:
        with log_context(world_id="zth", operation="import"):
            with log_context(record_id=4):
                logger.info("...")   # carries world_id, operation, record_id
    """
    context = get_current_context().merged(**kwargs)
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ============================================================================
# FORMATTERS
# ============================================================================

class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _timestamp(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry["source"] = f"{record.filename}:{record.lineno}"
        return json.dumps(entry, default=str, ensure_ascii=False)


class HumanFormatter(logging.Formatter):
    """Single-line output with the short context fields inline."""

    SHORT_FIELDS = (
        ("session_id", "session"),
        ("world_id", "world"),
        ("record_id", "record"),
        ("class_key", "class"),
        ("operation", "op"),
    )

    def format(self, record: logging.LogRecord) -> str:
        data = dict(getattr(record, "data", None) or {})
        tags = [
            f"{short}={data.pop(key)}"
            for key, short in self.SHORT_FIELDS
            if data.get(key) is not None
        ]
        data.pop("component", None)

        line = f"{record.levelname:<8} {record.name}"
        if tags:
            line += f" [{' '.join(tags)}]"
        line += f": {record.getMessage()}"
        if data:
            line += f" {data}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGERS
# ============================================================================

class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that stamps the current context onto each record.

    Everything ends up in a single ``data`` attribute: the component,
    the active context fields, then any ``extra=`` passed at the call.
    """

    def process(self, msg, kwargs):
        data: Dict[str, Any] = {}
        if self.extra.get("component"):
            data["component"] = self.extra["component"]
        data.update(get_current_context().to_dict())
        data.update(kwargs.get("extra") or {})
        kwargs["extra"] = {"data": data}
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    """Context-aware logger for ``name``, tagged with ``component``."""
    return ContextLogger(
        logging.getLogger(name),
        {"component": component.value if component is not None else None},
    )


def configure_logging(
    level: Optional[Union[str, int]] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level; defaults to DIGITIZER_LOG_LEVEL, then INFO
        json_output: JSON lines; defaults to DIGITIZER_LOG_FORMAT == "json"
    """
    if level is None:
        level = os.environ.get("DIGITIZER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if json_output is None:
        json_output = os.environ.get("DIGITIZER_LOG_FORMAT", "").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if json_output else HumanFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


# ============================================================================
# CHECKPOINTS
# ============================================================================

_checkpoint_logger = get_logger("digitizer.checkpoint")


def log_checkpoint(name: str, data: Optional[Dict[str, Any]] = None) -> None:
    """
    Log a named milestone of a user flow.

    Emitted names: ``record_committed``, ``import_completed``,
    ``mount_check``. The active context is attached like any other record.
    """
    payload: Dict[str, Any] = {"checkpoint": name}
    if data:
        payload["checkpoint_data"] = data
    _checkpoint_logger.info(f"CHECKPOINT: {name}", extra=payload)


__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
]
