"""Tests for sealing and opening encrypted envelopes."""

from __future__ import annotations

import base64
import json

import pytest

from kometa_studio.core.errors import DecryptionError, MasterKeyError
from kometa_studio.security.envelope import (
    generate_master_key,
    open_envelope,
    seal,
    validate_master_key,
)


def _flip(field: str) -> str:
    """Flip one bit in a base64 field."""
    raw = bytearray(base64.b64decode(field))
    raw[0] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


# ---------------------------------------------------------------------------
# Round trips
# ---------------------------------------------------------------------------

class TestSealAndOpen:
    """Sealed plaintext opens back to itself under the same key."""

    @pytest.mark.parametrize(
        "plaintext",
        ["", '{"plex":{"token":"abc"}}', "héllo ☃ \U0001f511", "x" * 10_000],
    )
    def test_round_trip(self, master_key, plaintext):
        assert open_envelope(seal(plaintext, master_key), master_key) == plaintext

    def test_envelope_shape(self, master_key):
        envelope = seal("payload", master_key)
        assert " " not in envelope
        parsed = json.loads(envelope)
        assert set(parsed) == {"version", "salt", "iv", "authTag", "encrypted"}
        assert parsed["version"] == 1
        assert len(base64.b64decode(parsed["salt"])) == 32
        assert len(base64.b64decode(parsed["iv"])) == 12
        assert len(base64.b64decode(parsed["authTag"])) == 16

    def test_same_plaintext_seals_differently(self, master_key):
        first = json.loads(seal("same", master_key))
        second = json.loads(seal("same", master_key))
        assert first["salt"] != second["salt"]
        assert first["iv"] != second["iv"]
        assert first["encrypted"] != second["encrypted"]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestOpenFailures:
    """Every way an envelope can be wrong raises ``DecryptionError``."""

    def test_wrong_key(self, master_key):
        envelope = seal("secret", master_key)
        with pytest.raises(DecryptionError):
            open_envelope(envelope, generate_master_key())

    @pytest.mark.parametrize("field", ["salt", "iv", "authTag", "encrypted"])
    def test_tampered_field(self, master_key, field):
        parsed = json.loads(seal("secret payload", master_key))
        parsed[field] = _flip(parsed[field])
        with pytest.raises(DecryptionError):
            open_envelope(json.dumps(parsed), master_key)

    @pytest.mark.parametrize("version", [0, 2, "1", None, True])
    def test_unknown_version(self, master_key, version):
        parsed = json.loads(seal("secret", master_key))
        parsed["version"] = version
        with pytest.raises(DecryptionError):
            open_envelope(json.dumps(parsed), master_key)

    def test_missing_field(self, master_key):
        parsed = json.loads(seal("secret", master_key))
        del parsed["authTag"]
        with pytest.raises(DecryptionError):
            open_envelope(json.dumps(parsed), master_key)

    @pytest.mark.parametrize("envelope", ["", "not json", "[]", '"text"', '{"version": 1, "salt": "!!"}'])
    def test_malformed(self, master_key, envelope):
        with pytest.raises(DecryptionError):
            open_envelope(envelope, master_key)

    def test_unusable_key_on_open(self, master_key):
        envelope = seal("secret", master_key)
        with pytest.raises(DecryptionError):
            open_envelope(envelope, "short")


# ---------------------------------------------------------------------------
# Master keys
# ---------------------------------------------------------------------------

class TestMasterKey:
    def test_generated_key_is_valid(self):
        key = generate_master_key()
        assert validate_master_key(key)
        assert len(base64.b64decode(key)) == 32

    def test_generated_keys_differ(self):
        assert generate_master_key() != generate_master_key()

    @pytest.mark.parametrize(
        "candidate",
        [
            None,
            "",
            "not base64 at all!",
            base64.b64encode(b"x" * 16).decode(),
            base64.b64encode(b"x" * 33).decode(),
        ],
    )
    def test_invalid_keys(self, candidate):
        assert validate_master_key(candidate) is False

    def test_seal_rejects_bad_key(self):
        with pytest.raises(MasterKeyError):
            seal("secret", base64.b64encode(b"x" * 16).decode())

    def test_master_key_error_is_value_error(self):
        with pytest.raises(ValueError):
            seal("secret", "nope")
