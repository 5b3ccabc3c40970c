# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Structured logging for the external auth service.

Every record is a message plus keyword fields (provider, error code, token
metadata). The stdout logger prints one JSON object per line and forwards the
record to stdlib logging; the silent logger only keeps records for tests.
"""

import json
import logging
import os
import sys
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict

DEFAULT_LOGGER_NAME = "external-auth"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _record(level: str, logger_name: str, message: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "level": level,
        "logger": logger_name,
        "message": message,
    }
    if fields:
        record["extra"] = fields
    return record


class Logger(ABC):
    """Base for the service's structured loggers."""

    def __init__(self, level: str = "INFO", name: str | None = None):
        """Initialize the logger.

        Raises:
            ValueError: If the level is not one of DEBUG, INFO, WARNING, ERROR
        """
        self.level = level.upper()
        if self.level not in _LEVELS:
            raise ValueError(f"Invalid log level: {level}. Must be one of {list(_LEVELS)}")
        self.name = name or DEFAULT_LOGGER_NAME

    @abstractmethod
    def _log(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        pass

    def info(self, message: str, **fields: Any) -> None:
        self._log("INFO", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log("WARNING", message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log("ERROR", message, fields)


class StdoutLogger(Logger):
    """Writes JSON lines to stdout and mirrors them to stdlib logging."""

    def __init__(self, level: str = "INFO", name: str | None = None):
        super().__init__(level=level, name=name)
        # Filtering happens in _log; the stdlib logger defers to its handlers
        self._stdlib_logger = logging.getLogger(self.name)
        self._stdlib_logger.setLevel(logging.NOTSET)

    def _log(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        if _LEVELS[level] < _LEVELS[self.level]:
            return
        print(json.dumps(_record(level, self.name, message, fields), default=str), file=sys.stdout, flush=True)
        self._stdlib_logger.log(_LEVELS[level], message, extra={"extra": fields} if fields else None)


class SilentLogger(Logger):
    """Keeps records in memory; nothing is printed and nothing is filtered."""

    def __init__(self, level: str = "INFO", name: str | None = None):
        super().__init__(level=level, name=name)
        self.logs: list[Dict[str, Any]] = []

    def _log(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        self.logs.append(_record(level, self.name, message, fields))

    def has_log(self, message: str, level: str | None = None) -> bool:
        """Check whether a record containing message was logged."""
        return any(
            message in entry["message"] and (level is None or entry["level"] == level.upper())
            for entry in self.logs
        )


def create_logger(
    logger_type: str | None = None,
    level: str | None = None,
    name: str | None = None,
) -> Logger:
    """Create a logger.

    Args:
        logger_type: "stdout" or "silent" (default: LOG_TYPE env, then "stdout")
        level: Minimum level (default: LOG_LEVEL env, then "INFO")
        name: Logger name (default: LOG_NAME env, then "external-auth")

    Raises:
        ValueError: If logger_type is not recognized
    """
    logger_type = (logger_type or os.getenv("LOG_TYPE") or "stdout").lower()
    level = level or os.getenv("LOG_LEVEL") or "INFO"
    name = name or os.getenv("LOG_NAME") or DEFAULT_LOGGER_NAME

    loggers = {"stdout": StdoutLogger, "silent": SilentLogger}
    if logger_type not in loggers:
        raise ValueError(f"Unknown logger_type: {logger_type}. Must be one of: {', '.join(loggers)}")
    return loggers[logger_type](level=level, name=name)


class JSONFormatter(logging.Formatter):
    """Renders uvicorn's stdlib records in the service's JSON line shape."""

    def __init__(self, logger_name: str = DEFAULT_LOGGER_NAME):
        super().__init__()
        self.logger_name = logger_name

    def format(self, record: logging.LogRecord) -> str:
        fields = getattr(record, "extra", None) or {}
        return json.dumps(_record(record.levelname, self.logger_name, record.getMessage(), fields), default=str)


def create_uvicorn_log_config(service_name: str, log_level: str = "INFO") -> Dict[str, Any]:
    """Build a uvicorn log_config that routes its loggers through JSONFormatter.

    Access logs are emitted at DEBUG so health checks stay quiet.
    """
    handler = {"handlers": ["console"], "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": JSONFormatter, "logger_name": service_name}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "json", "stream": "ext://sys.stdout"},
        },
        "loggers": {
            "uvicorn": {**handler, "level": log_level},
            "uvicorn.error": {**handler, "level": log_level},
            "uvicorn.access": {**handler, "level": "DEBUG"},
        },
    }
