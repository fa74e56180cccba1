"""
Structured Logging Configuration.

- JSON format for log aggregation (one object per line)
- Human-readable format for development
- Generation context propagation (window, variable)
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# =============================================================================
# Context Variables for Generation Tracking
# =============================================================================

window_var: ContextVar[Optional[str]] = ContextVar("window", default=None)
variable_var: ContextVar[Optional[str]] = ContextVar("variable", default=None)


def set_generation_context(window: Optional[str] = None, variable: Optional[str] = None) -> None:
    """
    Set generation context for logging.

    These values will be included in all log records from the current context.
    """
    if window is not None:
        window_var.set(window)
    if variable is not None:
        variable_var.set(variable)


def clear_generation_context() -> None:
    """Clear all generation context variables."""
    window_var.set(None)
    variable_var.set(None)


def get_generation_context() -> Dict[str, Optional[str]]:
    """Get current generation context as a dictionary."""
    return {"window": window_var.get(), "variable": variable_var.get()}


# =============================================================================
# Formatters
# =============================================================================

_STANDARD_FIELDS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "thread",
    "threadName",
    "taskName",
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Format:
    {
        "timestamp": "2025-01-22T12:00:00.000Z",
        "level": "WARNING",
        "logger": "src.mockdata.orchestrator",
        "message": "Coverage gap",
        "window": "cycle1",
        "variable": "SMK_01",
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in get_generation_context().items():
            if value:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra = {
            k: v for k, v in record.__dict__.items() if k not in _STANDARD_FIELDS and not k.startswith("_")
        }
        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """
    Human-readable formatter.

    Format:
    2025-01-22 12:00:00 [WARNING ] src.mockdata.orchestrator - Message [window:cycle1 variable:SMK_01]
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single line."""
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        context = " ".join(f"{k}:{v}" for k, v in get_generation_context().items() if v)
        context_str = f" [{context}]" if context else ""
        output = f"{timestamp} [{record.levelname:8s}] {record.name} - {record.getMessage()}{context_str}"
        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output


# =============================================================================
# Logging Configuration
# =============================================================================


def configure_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """
    Install a root handler.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or INFO.
        json_format: Emit JSON lines. Defaults to LOG_FORMAT == "json".
    """
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if json_format is None:
        json_format = os.environ.get("LOG_FORMAT", "text").lower() == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else TextFormatter())
    root_logger.addHandler(handler)
