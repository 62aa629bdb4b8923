"""Display masking for credentials."""

from __future__ import annotations

MASK = "****"
_MIN_PARTIAL_LENGTH = 8


def mask_secret(secret: str | None) -> str | None:
    """Return a partially redacted form of *secret* for display.

    ``None`` and the empty string stay absent (``None``) so that no placeholder
    credential is ever fabricated.  Values shorter than eight characters are
    replaced entirely by ``"****"``; longer values keep their first and last
    four characters around a fixed ``"****"``, whatever their length.

    Masking is one-way.  Apply it only to values leaving the system for
    display or export, never before storage.
    """
    if not secret:
        return None
    if len(secret) < _MIN_PARTIAL_LENGTH:
        return MASK
    return f"{secret[:4]}{MASK}{secret[-4:]}"


def is_masked_form(candidate: str | None, secret: str | None) -> bool:
    """Return ``True`` when *candidate* is exactly what *secret* masks to."""
    if not candidate or not secret:
        return False
    return candidate == mask_secret(secret)
