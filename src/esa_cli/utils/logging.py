"""Structured logging setup for esa-cli."""

import os
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# One append handle per log file for the life of the process.
_log_handles: Dict[Path, TextIO] = {}


def default_log_dir() -> Path:
    return Path.home() / ".cache" / "esa-cli" / "logs"


def _log_handle(log_file: Path) -> TextIO:
    handle = _log_handles.get(log_file)
    if handle is None or handle.closed:
        handle = open(log_file, "a", encoding="utf-8")
        _log_handles[log_file] = handle
    return handle


def configure_logging(log_dir: Optional[Path] = None) -> Path:
    """
    Configure structlog to append JSON lines to esa-cli.log.

    ESA_CLI_LOG_LEVEL picks the minimum level (DEBUG, INFO, WARNING, ERROR;
    anything else means INFO). At DEBUG every API request and editor
    invocation is logged; the access token never is.

    Example:
        ESA_CLI_LOG_LEVEL=DEBUG esa edit 42
        tail -f ~/.cache/esa-cli/logs/esa-cli.log | jq .

    Args:
        log_dir: Override log directory (default: ~/.cache/esa-cli/logs)

    Returns:
        Path of the log file
    """
    log_dir = log_dir or default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "esa-cli.log"

    log_level = os.environ.get("ESA_CLI_LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        log_level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # non-ASCII titles and bodies are written unescaped
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=_log_handle(log_file)),
        cache_logger_on_first_use=True,
    )
    return log_file


def get_logger(name: str) -> Any:
    """Get a structlog logger; `name` is usually the caller's __name__."""
    return structlog.get_logger(name)
