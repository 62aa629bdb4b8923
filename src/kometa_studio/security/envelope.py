"""Authenticated encryption of secrets records at rest.

A sealed envelope is a compact JSON object::

    {"version": 1, "salt": "...", "iv": "...", "authTag": "...", "encrypted": "..."}

Every binary field is standard base64.  Version 1 derives a per-message key
from the master key with PBKDF2-HMAC-SHA256 and encrypts with AES-256-GCM.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from kometa_studio.core.errors import DecryptionError, MasterKeyError

KEY_LENGTH = 32
SALT_LENGTH = 32
IV_LENGTH = 12
TAG_LENGTH = 16
PBKDF2_ITERATIONS = 100_000

CURRENT_VERSION = 1


@dataclass(frozen=True)
class _Scheme:
    """Parameters of one envelope version."""

    iterations: int
    salt_length: int
    iv_length: int


# Opening must keep working for every version listed here.
_SCHEMES: dict[int, _Scheme] = {
    1: _Scheme(iterations=PBKDF2_ITERATIONS, salt_length=SALT_LENGTH, iv_length=IV_LENGTH),
}


def _decode_master_key(master_key: str) -> bytes | None:
    try:
        raw = base64.b64decode(master_key, validate=True)
    except (binascii.Error, ValueError, TypeError):
        return None
    return raw if len(raw) == KEY_LENGTH else None


def _derive_key(master_key: bytes, salt: bytes, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(master_key)


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64field(envelope: dict[str, Any], name: str) -> bytes:
    value = envelope.get(name)
    if not isinstance(value, str):
        raise DecryptionError(f"Envelope field '{name}' is missing")
    try:
        return base64.b64decode(value.encode("ascii"), validate=True)
    except (binascii.Error, ValueError, UnicodeEncodeError) as exc:
        raise DecryptionError(f"Envelope field '{name}' is not valid base64") from exc


def seal(plaintext: str, master_key: str) -> str:
    """Encrypt *plaintext* under *master_key* and return the envelope string.

    A fresh salt and IV are drawn for every call, so sealing the same
    plaintext twice yields two different envelopes.

    Parameters
    ----------
    plaintext:
        UTF-8 text to protect (typically a JSON-serialised secrets record).
    master_key:
        Base64 encoding of exactly 32 random bytes.

    Raises
    ------
    MasterKeyError
        If *master_key* does not decode to 32 bytes.
    """
    raw_key = _decode_master_key(master_key)
    if raw_key is None:
        raise MasterKeyError("Master key must be a base64-encoded 32-byte value")

    scheme = _SCHEMES[CURRENT_VERSION]
    salt = os.urandom(scheme.salt_length)
    iv = os.urandom(scheme.iv_length)
    key = _derive_key(raw_key, salt, scheme.iterations)

    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, auth_tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]

    envelope = {
        "version": CURRENT_VERSION,
        "salt": _b64encode(salt),
        "iv": _b64encode(iv),
        "authTag": _b64encode(auth_tag),
        "encrypted": _b64encode(ciphertext),
    }
    return json.dumps(envelope, separators=(",", ":"))


def open_envelope(envelope: str, master_key: str) -> str:
    """Verify and decrypt an envelope produced by :func:`seal`.

    Raises
    ------
    DecryptionError
        If the envelope is malformed, its version is unknown, the master key
        is wrong, or the ciphertext was altered.  The causes are deliberately
        not distinguished.
    """
    try:
        parsed = json.loads(envelope)
    except (TypeError, ValueError) as exc:
        raise DecryptionError("Envelope is not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise DecryptionError("Envelope must be a JSON object")

    version = parsed.get("version")
    scheme = _SCHEMES.get(version) if isinstance(version, int) and not isinstance(version, bool) else None
    if scheme is None:
        raise DecryptionError(f"Unsupported envelope version: {version!r}")

    raw_key = _decode_master_key(master_key)
    if raw_key is None:
        raise DecryptionError("Master key is not a base64-encoded 32-byte value")

    salt = _b64field(parsed, "salt")
    iv = _b64field(parsed, "iv")
    auth_tag = _b64field(parsed, "authTag")
    ciphertext = _b64field(parsed, "encrypted")
    if len(auth_tag) != TAG_LENGTH:
        raise DecryptionError("Authentication failed")

    key = _derive_key(raw_key, salt, scheme.iterations)
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + auth_tag, None)
    except (InvalidTag, ValueError) as exc:
        raise DecryptionError("Authentication failed") from exc

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("Decrypted payload is not UTF-8") from exc


def generate_master_key() -> str:
    """Return a new random master key (32 bytes, base64)."""
    return _b64encode(os.urandom(KEY_LENGTH))


def validate_master_key(candidate: str | None) -> bool:
    """Return ``True`` when *candidate* base64-decodes to exactly 32 bytes.

    This is an admission check only; it does not try to open anything.
    """
    if not candidate:
        return False
    return _decode_master_key(candidate) is not None
