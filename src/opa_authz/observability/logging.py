"""
opa_authz.observability.logging

Structured logging for authorization decisions.

Responsibilities:
- Route `structlog` events through stdlib logging so the host process owns handlers.
- Render decision events as JSON lines, or human-readable text for the CLI.
- Keep the transport's own per-request logging out of the decision log.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# httpx logs every request at INFO; `opa_response` already records the outcome.
_QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, service_name: str, level: str, json: bool = True) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _service_field(service_name),
            structlog.processors.dict_tracebacks,
            _renderer(json),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _renderer(json: bool) -> Any:
    if json:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=False)


def _service_field(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Logs go to stderr so CLI output on stdout stays machine-readable.
