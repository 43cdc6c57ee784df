"""
marketplace_auth.observability.logging

Structured logging for the marketplace auth service.

Responsibilities:
- Configure `structlog` to emit one JSON object per event (login outcomes, token
  rejections, rate-gate denials, ledger housekeeping).
- Keep bearer tokens, refresh tokens and passwords out of log lines.
- Provide a small wrapper for obtaining bound loggers.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Event keys that must never reach a log sink verbatim.
_REDACTED_KEYS = frozenset(
    {"token", "access_token", "refresh_token", "password", "secret", "jwt_secret", "authorization"}
)


def configure_logging(*, service_name: str, level: str, cache_loggers: bool = True) -> None:
    """
    JSON logs on stdout, tagged with `service` and the request context.

    `cache_loggers=False` keeps module-level loggers reconfigurable, which
    `structlog.testing.capture_logs` relies on.
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    # structlog processors run on each log event; keep this list focused and stable.
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            redact_secrets,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=cache_loggers,
    )


def _add_service_name(service_name: str):
    # Adds a stable "service" field for log routing/aggregation across environments.
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def redact_secrets(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in _REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "[REDACTED]"
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Request-scoped metadata (request id, path, client key) is bound via contextvars
# in `observability.middleware`, so security events carry the caller without
# each call site repeating it.
