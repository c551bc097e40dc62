from __future__ import annotations

import json
import logging
import os
from logging.config import dictConfig
from traceback import format_exception

from .env import get_env_flags


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter for prod and CI logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, object] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "pid": record.process,
            "message": record.getMessage(),
        }

        # Request / access context, only when the caller passed it via extra=
        for key in ("request_id", "viewer_id", "widget_id", "team_id"):
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = str(value)

        http_ctx = {
            k: v
            for k, v in {
                "method": getattr(record, "http_method", None),
                "path": getattr(record, "path", None),
                "status": getattr(record, "status_code", None),
            }.items()
            if v is not None
        }
        if http_ctx:
            payload["http"] = http_ctx

        if record.exc_info:
            exc_type = record.exc_info[0].__name__ if record.exc_info[0] else None
            stack = "".join(format_exception(*record.exc_info))
            max_stack = int(os.getenv("LOG_STACK_LIMIT", "4000"))
            err_obj: dict[str, object] = {
                "stack": stack[:max_stack] + ("...(truncated)" if len(stack) > max_stack else "")
            }
            if exc_type:
                err_obj["type"] = exc_type
            if record.exc_info[1]:
                err_obj["message"] = str(record.exc_info[1])
            payload["error"] = err_obj

        return json.dumps(payload, ensure_ascii=False)


def _read_level(explicit: str | None = None) -> str:
    level = explicit or os.getenv("LOG_LEVEL")
    if level:
        return level.upper()
    return "INFO" if get_env_flags().is_prod else "DEBUG"


def _read_format(explicit: str | None = None) -> str:
    fmt = explicit or os.getenv("LOG_FORMAT")
    if fmt:
        return fmt.lower()
    return "json" if get_env_flags().is_prod else "plain"


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    level = _read_level(level)
    formatter_name = "json" if _read_format(fmt) == "json" else "plain"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,  # keep uvicorn & friends
            "formatters": {
                "plain": {
                    "format": "%(asctime)s %(levelname)-5s [pid:%(process)d] %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                },
            },
            "handlers": {
                "stream": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": formatter_name,
                }
            },
            "root": {
                "level": level,
                "handlers": ["stream"],
            },
            "loggers": {
                "uvicorn": {"level": "INFO", "handlers": [], "propagate": True},
                "uvicorn.error": {"level": "INFO", "handlers": [], "propagate": True},
                "uvicorn.access": {"level": "INFO", "handlers": [], "propagate": True},
                # SQL echo is controlled by DB_ECHO, keep the engine logger quiet otherwise
                "sqlalchemy.engine": {"level": "WARNING", "handlers": [], "propagate": True},
            },
        }
    )
