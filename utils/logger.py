from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Extra fields passed through ``extra={...}`` that end up in the JSON line
CONTEXT_FIELDS = ("job_id", "source_type", "action", "task_index", "round")

_logging_configured = False


class JSONFormatter(logging.Formatter):
    """Formats log records as single JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None and value != "":
                log_data[field] = value

        if record.exc_info:
            log_data["error_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None
            log_data["error_message"] = str(record.exc_info[1]) if record.exc_info[1] else None

        return json.dumps(log_data, default=str)


def _get_log_level() -> int:
    env_level = os.environ.get("LOG_LEVEL", "").upper()
    if env_level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        return getattr(logging, env_level)
    return logging.INFO


def _get_log_format() -> str:
    return "pretty" if os.environ.get("LOG_FORMAT", "json").lower() == "pretty" else "json"


class NoiseFilter(logging.Filter):
    """Drops transport chatter from HTTP and browser driver libraries."""

    def filter(self, record: logging.LogRecord) -> bool:
        return not record.name.startswith(("httpx", "httpcore", "asyncio"))


def setup_logging(
    debug_mode: bool = False,
    *,
    json_output: bool = True,
    log_file: str | Path | None = None,
) -> None:
    """Configure the root logger.

    Args:
        debug_mode: If True, set log level to DEBUG.
        json_output: Emit JSON lines unless LOG_FORMAT=pretty.
        log_file: Optional path for a rotating JSON log file.
    """
    global _logging_configured

    if _logging_configured and not debug_mode:
        return

    log_level = logging.DEBUG if debug_mode else _get_log_level()
    use_pretty = not json_output or _get_log_format() == "pretty"

    root = logging.getLogger()
    root.setLevel(log_level)
    if root.hasHandlers():
        root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if use_pretty:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
    else:
        console_handler.setFormatter(JSONFormatter())
    console_handler.addFilter(NoiseFilter())
    root.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    _logging_configured = True
    root.info(f"Logging initialized ({'pretty' if use_pretty else 'JSON'} mode). Level: {logging.getLevelName(log_level)}")


def reset_logging() -> None:
    """Reset logging configuration (useful for testing)."""
    global _logging_configured
    _logging_configured = False

    root = logging.getLogger()
    if root.hasHandlers():
        root.handlers.clear()
