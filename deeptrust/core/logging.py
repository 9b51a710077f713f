"""
structlog setup for the relay.

Request correlation (``request_id``, ``client_ip``) rides on
``structlog.contextvars`` and is bound by the request middleware. Service
identity comes from ``Config`` and is stamped on every entry.
"""

from __future__ import annotations

import logging
import sys
import uuid
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, WrappedLogger

if TYPE_CHECKING:
    from deeptrust.core.config import Config

# Keys whose values must never reach the log sink
_SECRET_KEYS = frozenset({"authorization", "api_key", "apikey", "token", "image_base64"})
_REDACTED = "[redacted]"

_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


class ServiceContext:
    """Processor stamping service name, version and environment."""

    def __init__(self, name: str, version: str, environment: str) -> None:
        self._fields = {"service": name, "version": version, "environment": environment}

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in self._fields.items():
            event_dict.setdefault(key, value)
        return event_dict


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key in _SECRET_KEYS.intersection(event_dict):
        event_dict[key] = _REDACTED
    return event_dict


def setup_logging(config: Config) -> None:
    """Route structlog through stdlib logging; JSON lines unless ``debug`` is on."""
    level = logging.DEBUG if config.debug else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = structlog.dev.ConsoleRenderer() if config.debug else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            ServiceContext(config.app_name, config.app_version, config.environment),
            redact_secrets,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


def new_request_id() -> str:
    return uuid.uuid4().hex


def bind_request_context(request_id: str, client_ip: str | None = None) -> None:
    """Attach correlation fields to every entry logged for the current request."""
    structlog.contextvars.clear_contextvars()
    fields: dict[str, Any] = {"request_id": request_id}
    if client_ip:
        fields["client_ip"] = client_ip
    structlog.contextvars.bind_contextvars(**fields)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
