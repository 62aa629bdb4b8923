"""Import of Kometa YAML documents.

``parse_document`` lifts a document into a :class:`KometaConfig` without any
credentials; ``extract_secrets`` reads the credentials of the same document
into a :class:`SecretsRecord`.  Both are pure, read-only parses of the text.

Credentials are recognised by their position only: a key listed as
credential-bearing for a known service in :mod:`kometa_studio.configs.registry`.
A value that merely looks like a token elsewhere is left alone.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import yaml
from pydantic import ValidationError

from kometa_studio.configs.model import (
    SERVICE_MODELS,
    TOP_LEVEL_SECTIONS,
    KometaConfig,
    Library,
    Settings,
    Section,
)
from kometa_studio.configs.registry import secret_fields
from kometa_studio.core.errors import ParseError
from kometa_studio.profiles.secrets import SecretsRecord

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class DocumentLoader(yaml.SafeLoader):
    """Safe loader that leaves timestamp-looking scalars as strings.

    Mapping keys are stringified as they are read, so keys that only compare
    equal as Python values (``1``, ``1.0`` and ``true``) stay distinct.
    """

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )
        self.flatten_mapping(node)
        mapping = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=True)
            if not isinstance(key, str):
                key = str(key)
            mapping[key] = self.construct_object(value_node, deep=deep)
        return mapping


DocumentLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _normalize(value: Any) -> Any:
    """Make a loaded YAML tree JSON-compatible (no dates)."""
    if isinstance(value, dict):
        return {key: _normalize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_normalize(item) for item in value]
    if isinstance(value, date):
        return value.isoformat()
    return value


def load_document(document_text: str) -> dict[str, Any]:
    """Parse *document_text* into a plain mapping.

    An empty document is an empty mapping.

    Raises
    ------
    ParseError
        If the text is not well-formed YAML or its root is not a mapping.
    """
    try:
        parsed = yaml.load(document_text, Loader=DocumentLoader)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark or exc.context_mark
        raise ParseError(
            f"Invalid YAML: {exc.problem or exc.context or 'syntax error'}",
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
        ) from exc
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid YAML: {exc}") from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ParseError(f"Invalid YAML: expected a mapping at the document root, got {type(parsed).__name__}")
    return _normalize(parsed)


# ---------------------------------------------------------------------------
# Credential shapes
# ---------------------------------------------------------------------------

def _credential(value: Any) -> str | None:
    """Return *value* as a credential string, or ``None`` if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)):
        return str(value)
    return None


_TOKEN_FIELDS = ("access_token", "refresh_token")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _is_authorization(value: Any) -> bool:
    """An OAuth block whose token values are all blank or credential-shaped."""
    return isinstance(value, dict) and all(
        _is_blank(value.get(key)) or _credential(value.get(key)) is not None
        for key in _TOKEN_FIELDS
    )


def _authorization(value: Any) -> dict[str, Any] | None:
    if not _is_authorization(value):
        return None
    found: dict[str, Any] = {}
    for key, item in value.items():
        if _is_blank(item):
            continue
        if key in _TOKEN_FIELDS:
            item = _credential(item)
        found[key] = item
    return found or None


def _read_credential(field: str, value: Any) -> Any:
    if field == "authorization":
        return _authorization(value)
    return _credential(value)


def _is_credential_position(field: str, value: Any) -> bool:
    """Whether the importer treats ``field: value`` as a credential slot.

    Null and empty values count, so blank credential keys are dropped from
    the model instead of being preserved as extras.
    """
    if _is_blank(value):
        return True
    if field == "authorization":
        return _is_authorization(value)
    return _credential(value) is not None


# ---------------------------------------------------------------------------
# Model lifting
# ---------------------------------------------------------------------------

def _lift(
    model: type[Section],
    raw: dict[str, Any],
    preserve_extras: bool,
    skip: tuple[str, ...] = (),
    **fixed: Any,
) -> Section:
    """Validate the known keys of *raw* into *model*, keeping the rest as extras.

    A known key whose value cannot be coerced to the field type is treated
    as unknown.
    """
    known = set(model.document_fields())
    data: dict[str, Any] = {}
    extras: dict[str, Any] = {}
    for key, value in raw.items():
        if key in skip and _is_credential_position(key, value):
            continue
        if key in known:
            data[key] = value
        else:
            extras[key] = value

    while True:
        try:
            model.model_validate({**fixed, **data})
            break
        except ValidationError as exc:
            rejected = {str(error["loc"][0]) for error in exc.errors() if error["loc"]} & data.keys()
            if not rejected:
                raise
            for key in rejected:
                extras[key] = data.pop(key)

    payload = {**fixed, **data}
    if preserve_extras and extras:
        payload["extras"] = extras
    return model.model_validate(payload)


def parse_document(document_text: str, preserve_extras: bool = True) -> KometaConfig:
    """Parse a Kometa YAML document into the typed configuration model.

    Known fields of each section are coerced to their types; unknown fields
    (and known fields with values of the wrong type) are kept in that
    section's ``extras`` when *preserve_extras* is true and dropped
    otherwise.  Credential fields of known services are never kept; read
    them with :func:`extract_secrets`.  Every service section present in the
    document is marked ``enabled``.

    Raises
    ------
    ParseError
        Only when the text is not a well-formed YAML mapping.
    """
    document = load_document(document_text)
    sections: dict[str, Any] = {}
    root_extras: dict[str, Any] = {}

    for key, value in document.items():
        if key not in TOP_LEVEL_SECTIONS:
            root_extras[key] = value
            continue
        if not isinstance(value, dict):
            # Well-formed but not a section body; keep it verbatim.
            root_extras[key] = value
            continue

        if key == "settings":
            sections[key] = _lift(Settings, value, preserve_extras)
        elif key == "libraries":
            if any(body is not None and not isinstance(body, dict) for body in value.values()):
                # A library body that is not a mapping; keep the section verbatim.
                root_extras[key] = value
                continue
            sections[key] = {
                name: _lift(Library, body or {}, preserve_extras)
                for name, body in value.items()
            }
        else:
            sections[key] = _lift(
                SERVICE_MODELS[key],
                value,
                preserve_extras,
                skip=secret_fields(key),
                enabled=True,
            )

    if preserve_extras and root_extras:
        sections["extras"] = root_extras
    return KometaConfig(**sections)


def extract_secrets(document_text: str) -> SecretsRecord:
    """Read the credentials of every known service from a Kometa document.

    Returns an empty record (``is_empty()``) when the document holds no
    credential at all; a service entry is only created when at least one of
    its credentials has a value.

    Raises
    ------
    ParseError
        Only when the text is not a well-formed YAML mapping.
    """
    document = load_document(document_text)
    found: dict[str, dict[str, Any]] = {}

    for code in SERVICE_MODELS:
        section = document.get(code)
        if not isinstance(section, dict):
            continue
        values: dict[str, Any] = {}
        for field in secret_fields(code):
            value = _read_credential(field, section.get(field))
            if value is not None:
                values[field] = value
        if values:
            found[code] = values

    return SecretsRecord.model_validate(found)
