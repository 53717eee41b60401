"""Structured JSON logging with trace id propagation."""

import contextvars
import json
import sys
import traceback
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.utils.config import config

LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}

_trace_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trace_id", default=None
)


def create_trace() -> str:
    """Start a new trace in the current context and return its id."""
    trace_id = str(uuid.uuid4())
    _trace_id_context.set(trace_id)
    return trace_id


def get_current_trace() -> str | None:
    return _trace_id_context.get()


def set_trace(trace_id: str | None) -> None:
    _trace_id_context.set(trace_id)


def clear_trace() -> None:
    _trace_id_context.set(None)


class StructuredLogger:
    """Logger that outputs one JSON object per line."""

    def __init__(
        self,
        component: str,
        file_path: str | None = None,
        min_level: str | None = None,
    ):
        """
        Initialize the structured logger.

        Args:
            component: Name of the component using this logger
            file_path: Optional path to also append logs to; defaults to LOG_FILE
            min_level: Lowest level written; defaults to LOG_LEVEL
        """
        self.component = component
        self.file_path = file_path if file_path is not None else config.logging.log_file
        self.min_level = (min_level or config.logging.level).upper()
        if self.file_path:
            Path(self.file_path).parent.mkdir(parents=True, exist_ok=True)

    def _format_log_entry(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        exception: dict[str, Any] | None = None,
    ) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level,
            "component": self.component,
            "message": message,
        }

        trace_id = get_current_trace()
        if trace_id and not (context and "trace_id" in context):
            entry["trace_id"] = trace_id

        if context:
            entry["context"] = context

        if exception:
            entry["exception"] = exception

        # Decimal amounts and enums end up in context; log them as strings
        return json.dumps(entry, default=str)

    def _write_log(self, log_entry: str) -> None:
        try:
            print(log_entry, file=sys.stdout)
            if self.file_path:
                with open(self.file_path, "a") as f:
                    f.write(log_entry + "\n")
        except OSError as e:
            print(f"Failed to write log: {e}", file=sys.stderr)

    def _enabled(self, level: str) -> bool:
        return LOG_LEVELS[level] >= LOG_LEVELS.get(self.min_level, LOG_LEVELS["INFO"])

    @staticmethod
    def _exception_details(exception: Exception | None) -> dict[str, Any] | None:
        if exception is None:
            return None
        return {
            "type": type(exception).__name__,
            "message": str(exception),
            "code": getattr(exception, "code", None),
            "stack_trace": "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            ),
        }

    def log(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        exception: Exception | None = None,
    ) -> None:
        """
        Log a message with specified level.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); unknown levels log as INFO
            message: Log message
            context: Optional context fields
            exception: Optional exception, serialized with type, code and stack trace
        """
        level = level.upper()
        if level not in LOG_LEVELS:
            level = "INFO"
        if not self._enabled(level):
            return
        self._write_log(
            self._format_log_entry(level, message, context, self._exception_details(exception))
        )

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.log("DEBUG", message, context)

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.log("INFO", message, context)

    def warning(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.log("WARNING", message, context)

    def error(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: Exception | None = None,
    ) -> None:
        self.log("ERROR", message, context, exception)

    def critical(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: Exception | None = None,
    ) -> None:
        self.log("CRITICAL", message, context, exception)
