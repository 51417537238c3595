# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Structured logging with context
# PURPOSE: Table / dialect context on every schema and storage log line
# CREATED: 13 OCT 2026
# ============================================================================
"""
Structured Logging

Log records from the reconciler and the initializer carry the table being
reconciled, the target dialect and the running operation. The fields live
on a per-thread stack so that parallel reconciliation workers do not see
each other's table.

Records produced through get_logger() expose the merged fields as
`record.extra`; both formatters read them from there.

Usage:
    from core.logging import ComponentType, get_logger, log_context

    logger = get_logger(__name__, ComponentType.RECONCILER)

    with log_context(table="Guilds", dialect="sqlite"):
        logger.info("Adding column", extra={"column": "GuildId"})
"""

import json
import logging
import os
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Union


class ComponentType(str, Enum):
    """Which part of the service emitted a record."""
    BOOTSTRAP = "bootstrap"
    RECONCILER = "reconciler"
    API = "api"


CONTEXT_FIELDS = ("table", "dialect", "operation")


@dataclass(frozen=True)
class LogContext:
    """One frame of the per-thread context stack."""
    table: Optional[str] = None
    dialect: Optional[str] = None
    operation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        fields = {name: getattr(self, name) for name in CONTEXT_FIELDS}
        return {**{k: v for k, v in fields.items() if v is not None}, **self.extra}


_local = threading.local()
_EMPTY = LogContext()


def _stack() -> list:
    if not hasattr(_local, "frames"):
        _local.frames = []
    return _local.frames


def _current_context() -> LogContext:
    frames = _stack()
    return frames[-1] if frames else _EMPTY


@contextmanager
def log_context(**fields: Any) -> Iterator[LogContext]:
    """
    Push table / dialect / operation (and any `extra` mapping) for the block.

    Unset fields are inherited from the enclosing block on the same thread.

    Example:
        with log_context(table="Guilds", operation="reconcile"):
            logger.info("Adding column")
    """
    parent = _current_context()
    extra = {**parent.extra, **fields.pop("extra", {})}
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")

    frame = replace(parent, extra=extra, **fields)
    frames = _stack()
    frames.append(frame)
    try:
        yield frame
    finally:
        frames.pop()


def _record_data(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "extra", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def __init__(self, include_source: bool = True):
        super().__init__()
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _current_context().to_dict()
        if context:
            payload["context"] = context

        data = _record_data(record)
        if data:
            payload["data"] = data

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        if self.include_source:
            payload["source"] = f"{record.filename}:{record.lineno}"

        return json.dumps(payload, default=str)


class HumanFormatter(logging.Formatter):
    """Single-line console format with the context fields in brackets."""

    LABELS = {"table": "table", "dialect": "dialect", "operation": "op", "component": "component"}

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        data = dict(_record_data(record))
        tags = []
        for key, label in self.LABELS.items():
            value = data.pop(key, None)
            if value is not None:
                tags.append(f"{label}={value}")
        prefix = f" [{' '.join(tags)}]" if tags else ""
        suffix = f" {data}" if data else ""

        line = f"{timestamp} {record.levelname:<8} {record.name}{prefix}: {record.getMessage()}{suffix}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that folds the current context and the logger's component into
    `record.extra`.

    Fields passed through `extra=` at the call site take precedence.
    """

    def process(self, msg, kwargs):
        data = _current_context().to_dict()
        component = self.extra.get("component")
        if component is not None:
            data["component"] = component.value
        data.update(kwargs.get("extra") or {})
        kwargs["extra"] = {"extra": data}
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    """Context-aware logger for a module, tagged with its component."""
    return ContextLogger(logging.getLogger(name), {"component": component})


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
) -> None:
    """
    Replace the root handlers with one stdout handler.

    Args:
        level: Log level name or number
        json_output: JSON records; also enabled by LOG_FORMAT=json
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_output or os.getenv("LOG_FORMAT", "").lower() == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = HumanFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)


# ============================================================================
# CHECKPOINT LOGGING
# ============================================================================

def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a named startup milestone such as "schema_initialized".

    The record's data holds the checkpoint name, the active table and
    dialect, and `data` when given.
    """
    payload: Dict[str, Any] = {"checkpoint": name}
    context = _current_context()
    if context.table:
        payload["table"] = context.table
    if context.dialect:
        payload["dialect"] = context.dialect
    if data:
        payload["data"] = data

    (logger or logging.getLogger("checkpoint")).info(
        f"CHECKPOINT: {name}", extra={"extra": payload}
    )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "log_checkpoint",
]
