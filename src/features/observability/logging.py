"""structlog setup for the toggle poller."""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog

from src.features.fetch.redact import (
    REDACTED_VALUE,
    redact_headers,
    redact_url_credentials,
)


# Event keys that carry the authorization token
SECRET_KEYS = frozenset({"instance_id", "auth_token", "authorization"})

# Libraries that log every request through the standard library
NOISY_LOGGERS = ("httpx", "httpcore")


def scrub_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Keep tokens and URL credentials out of log lines."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED_VALUE
    headers = event_dict.get("headers")
    if isinstance(headers, dict):
        event_dict["headers"] = redact_headers(headers)
    url = event_dict.get("url")
    if isinstance(url, str):
        event_dict["url"] = redact_url_credentials(url)
    return event_dict


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Route structlog events to ``output`` as JSON lines or console text.

    Args:
        level: Minimum level emitted (default: INFO).
        output: Output stream (default: stderr).
        json_format: JSON lines when True, colored console output otherwise.
    """
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            scrub_secrets,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_app_context(app_name: str) -> None:
    """Tag every subsequent log event with the polled application's name."""
    structlog.contextvars.bind_contextvars(app_name=app_name)


def clear_app_context() -> None:
    """Remove the application name from log context."""
    structlog.contextvars.unbind_contextvars("app_name")
