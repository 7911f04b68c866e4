"""Redaction helpers so request details can be logged safely."""

import re


# Headers whose values never reach the logs
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "proxy-authorization",
        "x-api-key",
        "unleash-instanceid",
    }
)

REDACTED_VALUE = "[REDACTED]"

_URL_CREDENTIALS = re.compile(r"(https?://)[^/@\s]+@")


def is_sensitive_header(header_name: str) -> bool:
    """Check if a header name is sensitive."""
    return header_name.lower() in SENSITIVE_HEADERS


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` with sensitive values replaced.

    Args:
        headers: Request or response headers.

    Returns:
        New dictionary safe to attach to a log event.
    """
    return {
        key: REDACTED_VALUE if is_sensitive_header(key) else value
        for key, value in headers.items()
    }


def redact_url_credentials(url: str) -> str:
    """Strip ``user:password@`` userinfo from a URL.

    Args:
        url: URL that may embed credentials.

    Returns:
        URL with the userinfo part replaced by a marker.
    """
    return _URL_CREDENTIALS.sub(rf"\1{REDACTED_VALUE}@", url)
