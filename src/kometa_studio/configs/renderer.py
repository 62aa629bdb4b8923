"""Rendering of a configuration and its credentials back to Kometa YAML.

The renderer is the only place where a configuration and a secrets record
are brought back together.  How the credentials appear in the output is
controlled by :class:`RenderMode`.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

import yaml

from kometa_studio.configs.model import KometaConfig, Section, coerce_config
from kometa_studio.configs.registry import SERVICES
from kometa_studio.profiles.secrets import SecretsRecord, coerce_secrets, mask_fields
from kometa_studio.security.masking import mask_secret


class RenderMode(str, enum.Enum):
    FULL = "full"
    MASKED = "masked"
    TEMPLATE = "template"


class DocumentDumper(yaml.SafeDumper):
    """Safe dumper that writes shared nodes out in full instead of aliasing them."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def _header(mode: RenderMode) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    if mode is RenderMode.FULL:
        title = "# Kometa Configuration\n# WARNING: This file contains secrets!"
    elif mode is RenderMode.MASKED:
        title = "# Kometa Configuration (secrets masked)"
    else:
        title = "# Kometa Configuration (template, no secrets)"
    return f"{title}\n# Generated by Kometa Studio ({mode.value} mode) at {stamp}\n\n"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

def _credentials(code: str, secrets: SecretsRecord | None, mode: RenderMode) -> dict[str, Any]:
    if secrets is None or mode is RenderMode.TEMPLATE:
        return {}
    block = secrets.service(code)
    if block is None:
        return {}
    values = block.model_dump(mode="json", exclude_none=True)
    values = {key: value for key, value in values.items() if value != "" and value != {}}
    if mode is RenderMode.MASKED:
        mask_fields(values, SERVICES[code]["masked_fields"])
    return values


def _extra_credentials(name: str, secrets: SecretsRecord | None, mode: RenderMode) -> dict[str, Any]:
    if secrets is None or mode is RenderMode.TEMPLATE or not secrets.extras:
        return {}
    fields = secrets.extras.get(name) or {}
    if mode is RenderMode.MASKED:
        return {key: mask_secret(value) or "" for key, value in fields.items() if value}
    return {key: value for key, value in fields.items() if value}


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def _section(section: Section, credentials: dict[str, Any] | None = None) -> dict[str, Any]:
    """Credentials first, then explicitly-set known fields, then extras."""
    out: dict[str, Any] = dict(credentials or {})
    known = section.model_dump(mode="json", exclude_unset=True, exclude=set(section.internal_fields))
    for key, value in known.items():
        out.setdefault(key, value)
    for key, value in section.extras.items():
        out.setdefault(key, value)
    return out


def build_document(
    config: KometaConfig | dict[str, Any],
    secrets: SecretsRecord | dict[str, Any] | None = None,
    mode: RenderMode | str = RenderMode.MASKED,
) -> dict[str, Any]:
    """Assemble the plain mapping that :func:`render_document` serialises.

    Raises
    ------
    ShapeError
        If *config* or *secrets* violate the typed shape.
    ValueError
        If *mode* is not a known render mode.
    """
    config = coerce_config(config)
    secrets = coerce_secrets(secrets)
    mode = RenderMode(mode)

    document: dict[str, Any] = {}
    if config.settings is not None:
        document["settings"] = _section(config.settings)

    for code in SERVICES:
        section = config.service(code)
        if section is None or not section.enabled:
            continue
        document[code] = _section(section, _credentials(code, secrets, mode))

    if config.libraries is not None:
        document["libraries"] = {name: _section(library) for name, library in config.libraries.items()}

    for key, value in config.extras.items():
        if key in document:
            continue
        spliced = _extra_credentials(key, secrets, mode)
        if spliced and isinstance(value, dict):
            value = {**value, **spliced}
        document[key] = value
    return document


def render_document(
    config: KometaConfig | dict[str, Any],
    secrets: SecretsRecord | dict[str, Any] | None = None,
    mode: RenderMode | str = RenderMode.MASKED,
    include_comment: bool = True,
) -> str:
    """Render *config* with *secrets* spliced in as a Kometa YAML document.

    Parameters
    ----------
    config:
        The configuration model (or its JSON form).
    secrets:
        Credentials to splice in.  When absent, credential keys are omitted
        whatever the mode.
    mode:
        ``full`` writes credentials in plaintext, ``masked`` writes tokens
        and keys through :func:`mask_secret` while leaving service URLs
        readable, ``template`` omits every credential.
    include_comment:
        Prefix the document with a comment naming the mode and the time of
        generation.

    Raises
    ------
    ShapeError
        If *config* or *secrets* violate the typed shape.
    """
    mode = RenderMode(mode)
    document = build_document(config, secrets, mode)
    body = yaml.dump(
        document,
        Dumper=DocumentDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=4096,
    ) if document else ""
    if include_comment:
        return _header(mode) + body
    return body
