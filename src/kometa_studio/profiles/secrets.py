"""Secrets records: the credential-only counterpart of a configuration.

A ``SecretsRecord`` is never persisted in plaintext.  ``seal_secrets`` turns
it into an encrypted envelope for storage and ``open_secrets`` restores it
for the duration of a request.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from kometa_studio.configs.registry import SERVICES
from kometa_studio.core.errors import DecryptionError, ShapeError
from kometa_studio.security.envelope import open_envelope, seal
from kometa_studio.security.masking import is_masked_form, mask_secret


class _SecretBlock(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PlexSecrets(_SecretBlock):
    url: str | None = None
    token: str | None = None


class TmdbSecrets(_SecretBlock):
    apikey: str | None = None


class TautulliSecrets(_SecretBlock):
    url: str | None = None
    apikey: str | None = None


class MdbListSecrets(_SecretBlock):
    apikey: str | None = None


class RadarrSecrets(_SecretBlock):
    url: str | None = None
    token: str | None = None


class SonarrSecrets(_SecretBlock):
    url: str | None = None
    token: str | None = None


class TraktAuthorization(BaseModel):
    """OAuth token pair as Kometa writes it after ``trakt`` authorisation."""

    model_config = ConfigDict(extra="allow")

    access_token: str | None = None
    refresh_token: str | None = None
    token_type: Any = None
    expires_in: Any = None
    scope: Any = None
    created_at: Any = None


class TraktSecrets(_SecretBlock):
    client_secret: str | None = None
    authorization: TraktAuthorization | None = None


class SecretsRecord(BaseModel):
    """Credentials per service, plus ``extras`` for services not modelled here."""

    model_config = ConfigDict(extra="forbid")

    plex: PlexSecrets | None = None
    tmdb: TmdbSecrets | None = None
    tautulli: TautulliSecrets | None = None
    mdblist: MdbListSecrets | None = None
    radarr: RadarrSecrets | None = None
    sonarr: SonarrSecrets | None = None
    trakt: TraktSecrets | None = None
    extras: dict[str, dict[str, str]] | None = None

    def is_empty(self) -> bool:
        """``True`` when the record holds no service entry at all.

        A record with an empty sub-record (``{"plex": {}}``) is *not* empty.
        """
        return all(getattr(self, code) is None for code in SERVICES) and not self.extras

    def service(self, code: str) -> BaseModel | None:
        return getattr(self, code, None)


def coerce_secrets(data: SecretsRecord | dict[str, Any] | None) -> SecretsRecord | None:
    """Return *data* as a ``SecretsRecord`` (``None`` stays ``None``).

    Raises
    ------
    ShapeError
        If *data* does not satisfy the typed shape.
    """
    if data is None or isinstance(data, SecretsRecord):
        return data
    if not isinstance(data, dict):
        raise ShapeError([((), f"expected a mapping, got {type(data).__name__}")])
    try:
        return SecretsRecord.model_validate(data)
    except ValidationError as exc:
        raise ShapeError.from_validation_error(exc) from exc


# ---------------------------------------------------------------------------
# Partial updates
# ---------------------------------------------------------------------------

def _merge(prior: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
    merged = dict(prior)
    for key, value in update.items():
        old = merged.get(key)
        if isinstance(value, dict):
            merged[key] = _merge(old if isinstance(old, dict) else {}, value)
        elif isinstance(value, str) and (
            not value.strip() or is_masked_form(value, old if isinstance(old, str) else None)
        ):
            # Blank or a masked echo of the stored value: keep what we have.
            continue
        else:
            merged[key] = value
    return merged


def merge_secrets(current: SecretsRecord | None, incoming: SecretsRecord) -> SecretsRecord:
    """Apply *incoming* on top of *current* as a partial update.

    Fields that are unset, ``None`` or blank in *incoming* keep their prior
    value, as do values equal to the masked form of the prior value (a masked
    preview sent back unchanged).  Nothing is ever removed.
    """
    prior = current.model_dump(exclude_none=True) if current is not None else {}
    return SecretsRecord.model_validate(_merge(prior, incoming.model_dump(exclude_none=True)))


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def mask_fields(values: dict[str, Any], masked_fields: list[str]) -> dict[str, Any]:
    """Mask the dotted *masked_fields* of *values* in place and return it."""
    for dotted in masked_fields:
        *parents, leaf = dotted.split(".")
        node: Any = values
        for parent in parents:
            node = node.get(parent) if isinstance(node, dict) else None
        if isinstance(node, dict) and isinstance(node.get(leaf), str):
            masked = mask_secret(node[leaf])
            if masked is None:
                node.pop(leaf)
            else:
                node[leaf] = masked
    return values


def mask_record(record: SecretsRecord) -> SecretsRecord:
    """Return a copy of *record* with every masked credential partially redacted."""
    data = record.model_dump(exclude_none=True)
    for code, entry in SERVICES.items():
        if data.get(code):
            mask_fields(data[code], entry["masked_fields"])
    if data.get("extras"):
        data["extras"] = {
            service: {key: mask_secret(value) or "" for key, value in fields.items()}
            for service, fields in data["extras"].items()
        }
    return SecretsRecord.model_validate(data)


# ---------------------------------------------------------------------------
# At-rest form
# ---------------------------------------------------------------------------

def seal_secrets(record: SecretsRecord, master_key: str) -> str:
    """Serialise *record* to JSON and seal it into an envelope string."""
    return seal(record.model_dump_json(exclude_none=True), master_key)


def open_secrets(envelope: str, master_key: str) -> SecretsRecord:
    """Open an envelope produced by :func:`seal_secrets`.

    Raises
    ------
    DecryptionError
        If the envelope cannot be authenticated or its payload is unreadable.
    ShapeError
        If the decrypted payload is not a valid secrets record.
    """
    payload = open_envelope(envelope, master_key)
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise DecryptionError("Decrypted payload is not valid JSON") from exc
    try:
        return SecretsRecord.model_validate(data)
    except ValidationError as exc:
        raise ShapeError.from_validation_error(exc) from exc
