"""Exception taxonomy shared by the document engine and the HTTP layer.

Business-rule findings are never raised; they are returned as warnings in a
``ValidationReport``.  The exceptions below are reserved for malformed input
and contract violations.
"""

from __future__ import annotations

from typing import Any


class KometaStudioError(Exception):
    """Base class for every error raised by ``kometa_studio``."""


class ParseError(KometaStudioError):
    """The document text is not a well-formed YAML mapping.

    ``line`` and ``column`` are 1-based when the YAML scanner reported a
    position, otherwise ``None``.
    """

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        self.message = message
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class DecryptionError(KometaStudioError):
    """An envelope could not be opened.

    Raised for a wrong master key, a corrupted or tampered envelope, and an
    unsupported envelope version alike.  Never transient.
    """


class ShapeError(KometaStudioError):
    """A caller passed a model that violates the typed shape contract.

    ``issues`` is a list of ``(path, message)`` pairs where ``path`` is the
    tuple of field names leading to the offending value.
    """

    def __init__(self, issues: list[tuple[tuple[str, ...], str]]) -> None:
        self.issues = issues
        summary = "; ".join(
            f"{'.'.join(path) or '<root>'}: {message}" for path, message in issues
        )
        super().__init__(f"Invalid shape: {summary}")

    @classmethod
    def from_validation_error(cls, exc: Any, prefix: tuple[str, ...] = ()) -> ShapeError:
        """Build a ``ShapeError`` from a pydantic ``ValidationError``."""
        return cls(
            [
                (prefix + tuple(str(part) for part in error["loc"]), error["msg"])
                for error in exc.errors()
            ]
        )


class MasterKeyError(KometaStudioError, ValueError):
    """The master key is not a base64-encoded 32-byte value."""
