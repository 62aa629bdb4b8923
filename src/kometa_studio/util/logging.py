"""Logging setup for the Kometa Studio server.

Call ``setup_logging()`` once at application startup to configure the Python
logging subsystem with a consistent format and level.  Every record passes
through :class:`SecretRedactionFilter` before it is written, so a credential
handed to a logger by mistake never reaches the output.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Mapping
from typing import Any

REDACTED = "[REDACTED]"

SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "token",
        "apikey",
        "api_key",
        "client_secret",
        "secret",
        "password",
        "authorization",
        "access_token",
        "refresh_token",
        "master_key",
        "secrets",
        "encrypted",
        "secrets_encrypted",
    }
)

_SECRET_PATTERNS = (
    # JWT
    re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
    # Long base64 blobs (master keys, envelope fields)
    re.compile(r"(?<![A-Za-z0-9+/])[A-Za-z0-9+/]{32,}={0,2}(?![A-Za-z0-9+/=])"),
    # Long hex strings (API keys)
    re.compile(r"\b[0-9a-fA-F]{32,}\b"),
)


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and key.lower() in SENSITIVE_KEYS


def redact(value: Any) -> Any:
    """Return *value* with secrets replaced by ``[REDACTED]``.

    Mappings have values under sensitive keys replaced (recursively); strings
    have anything shaped like a JWT, a long base64 blob or a long hex string
    replaced.
    """
    if isinstance(value, Mapping):
        return {key: REDACTED if _is_sensitive(key) else redact(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(redact(item) for item in value)
    if isinstance(value, str):
        for pattern in _SECRET_PATTERNS:
            value = pattern.sub(REDACTED, value)
        return value
    return value


class SecretRedactionFilter(logging.Filter):
    """Redact credentials from a record's message and arguments."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, Mapping):
            record.args = redact(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(redact(arg) for arg in record.args)
        return True


def setup_logging(
    level: int | str = logging.INFO,
    fmt: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt: str = "%Y-%m-%d %H:%M:%S",
) -> None:
    """Configure the root logger with the given level and format.

    Parameters
    ----------
    level:
        Logging level (default ``INFO``).  Accepts both integer constants
        (``logging.DEBUG``) and string names (``"DEBUG"``).
    fmt:
        Format string for log messages.
    datefmt:
        Date/time format string.
    """
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt=datefmt,
        stream=sys.stdout,
        force=True,
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(SecretRedactionFilter())

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger::

        from kometa_studio.util.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)
