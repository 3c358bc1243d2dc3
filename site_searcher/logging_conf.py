"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

import structlog

LOGGER_NAME = "site_searcher"
SEARCHER_LOG = "searcher.log"
ERROR_LOG = "error.log"

_LOGGING_INITIALISED = False


def _default_log_dir() -> Path:
    return Path.cwd() / "logs"


def configure_logging(verbose: bool = False, log_dir: Path | None = None) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED
    log_dir = log_dir or _default_log_dir()
    searcher_log = log_dir / SEARCHER_LOG
    error_log = log_dir / ERROR_LOG
    log_dir.mkdir(parents=True, exist_ok=True)

    if not _LOGGING_INITIALISED:
        level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "plain": {
                        "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                        "fmt": "%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s",
                    }
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "level": level,
                        "formatter": "plain",
                    },
                    "searcher_file": {
                        "class": "logging.FileHandler",
                        "level": "INFO",
                        "filename": str(searcher_log),
                        "encoding": "utf-8",
                        "formatter": "plain",
                    },
                    "error_file": {
                        "class": "logging.FileHandler",
                        "level": "ERROR",
                        "filename": str(error_log),
                        "encoding": "utf-8",
                        "formatter": "plain",
                    },
                },
                "loggers": {
                    LOGGER_NAME: {
                        "handlers": ["console", "searcher_file", "error_file"],
                        "level": level,
                        "propagate": False,
                    },
                },
            }
        )

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger(LOGGER_NAME)


def searcher_log_path(log_dir: Path | None = None) -> Path:
    return (log_dir or _default_log_dir()) / SEARCHER_LOG


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


__all__ = ["LOGGER_NAME", "configure_logging", "searcher_log_path", "tail_log"]
