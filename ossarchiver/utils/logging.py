"""
Logging utilities for the artifact archiver.

Two kinds of output are configured here:

- Process logs: standard ``logging`` with colorized console output for
  development or JSON records when ``LOG_FORMAT=json``. Every record
  carries the correlation id of the publish run that produced it.
- Build logs: the per-job console stream, where each line is written as
  ``[OSSArchiver][LEVEL]message`` so users can find archiver output among
  the rest of the build log.

Example usage:
    >>> from ossarchiver.utils.logging import get_logger, get_build_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> build_log = get_build_logger(sys.stdout)
    >>> build_log.info("Uploading: build/job/1/out/app.jar")
"""

import functools
import json
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import IO, Any, Callable, Dict, Optional, TypeVar, cast

import coloredlogs

F = TypeVar("F", bound=Callable[..., Any])

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

BUILD_LOG_TAG = "OSSArchiver"
BUILD_LOGGER_NAME = "ossarchiver.build"

# Attributes every LogRecord has; anything else came in through ``extra``
_STANDARD_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


# ============================================================================
# Correlation ID Management
# ============================================================================

def get_correlation_id() -> str:
    """
    Get current correlation ID or generate a new one.

    Returns:
        Correlation ID of the current context (a UUID if none was set)
    """
    corr_id = _correlation_id.get()
    if corr_id is None:
        corr_id = str(uuid.uuid4())
        _correlation_id.set(corr_id)
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    """Set correlation ID for the current context (e.g. a build tag)."""
    _correlation_id.set(corr_id)


def clear_correlation_id() -> None:
    """Clear correlation ID for the current context."""
    _correlation_id.set(None)


# ============================================================================
# Formatters
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Example output:
        {
            "timestamp": "2026-10-19T10:30:15.123456+00:00",
            "level": "WARNING",
            "logger": "ossarchiver.uploader.uploader",
            "message": "Upload failed: build/job/1/out/a.txt",
            "correlation_id": "job-42",
            "extra": {"key": "build/job/1/out/a.txt"}
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_FIELDS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        log_data["environment"] = {
            "hostname": os.getenv("HOSTNAME", "unknown"),
            "node_name": os.getenv("NODE_NAME", ""),
        }

        return json.dumps(log_data, default=str)


class BuildLogFormatter(logging.Formatter):
    """
    Formats records for the build console: ``[OSSArchiver][WARN]message``.

    Tracebacks, when present, follow the message line.
    """

    LEVEL_NAMES = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "ERROR",
    }

    def format(self, record: logging.LogRecord) -> str:
        level = self.LEVEL_NAMES.get(record.levelno, record.levelname)
        line = f"[{BUILD_LOG_TAG}][{level}]{record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


# ============================================================================
# Setup
# ============================================================================

def setup_logging(level: str = "INFO", enable_colors: bool = True) -> None:
    """
    Configure the root logger.

    Uses JSON records when the ``LOG_FORMAT`` environment variable is
    ``json``, colorized text via coloredlogs when ``enable_colors`` is set,
    plain text otherwise.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_colors: Whether to colorize console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if os.getenv("LOG_FORMAT", "text").lower() == "json":
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(console_handler)
    elif enable_colors:
        coloredlogs.install(
            level=log_level,
            fmt=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            logger=root_logger,
        )
    else:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance, typically ``get_logger(__name__)``."""
    return logging.getLogger(name)


def get_build_logger(
    stream: Optional[IO[str]] = None,
    name: str = BUILD_LOGGER_NAME,
) -> logging.Logger:
    """
    Get a logger that writes build-console lines to ``stream``.

    Records still propagate to the root logger, so process logs see
    everything the build log sees. Calling this again with the same name
    replaces the previous stream.

    Args:
        stream: Build console stream (defaults to stdout)
        name: Logger name; use distinct names for concurrent builds

    Returns:
        Logger usable as the ``log`` sink of ``publish``/``upload_artifacts``
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(BuildLogFormatter())
    logger.addHandler(handler)
    return logger


def log_function_call(func: F) -> F:
    """
    Decorator that logs function entry, exit and exceptions at DEBUG level.

    Arguments are logged with ``repr``; do not decorate functions that take
    secret values as positional or keyword arguments.
    """
    logger = get_logger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        correlation_id = get_correlation_id()

        arg_names = func.__code__.co_varnames[: func.__code__.co_argcount]
        args_repr = [f"{name}={value!r}" for name, value in zip(arg_names, args)]
        kwargs_repr = [f"{key}={value!r}" for key, value in kwargs.items()]
        all_args = ", ".join(args_repr + kwargs_repr)

        logger.debug(
            f"ENTER {func.__name__}({all_args})",
            extra={
                "function": func.__name__,
                "correlation_id": correlation_id,
                "event": "function_entry",
            },
        )

        start_time = datetime.now()
        try:
            result = func(*args, **kwargs)
        except Exception as error:
            execution_time = (datetime.now() - start_time).total_seconds()
            logger.error(
                f"ERROR {func.__name__} raised {type(error).__name__}: {error}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": execution_time,
                    "correlation_id": correlation_id,
                    "event": "function_error",
                    "error_type": type(error).__name__,
                },
                exc_info=True,
            )
            raise

        execution_time = (datetime.now() - start_time).total_seconds()
        logger.debug(
            f"EXIT {func.__name__} ({execution_time:.3f}s)",
            extra={
                "function": func.__name__,
                "duration_seconds": execution_time,
                "correlation_id": correlation_id,
                "event": "function_exit",
            },
        )
        return result

    return cast(F, wrapper)
