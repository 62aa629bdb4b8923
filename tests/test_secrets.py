"""Tests for secrets records: merging, masking and sealing."""

from __future__ import annotations

import json

import pytest

from kometa_studio.core.errors import DecryptionError, ShapeError
from kometa_studio.profiles.secrets import (
    SecretsRecord,
    coerce_secrets,
    mask_record,
    merge_secrets,
    open_secrets,
    seal_secrets,
)
from kometa_studio.security.envelope import seal

STORED = SecretsRecord.model_validate(
    {
        "plex": {"url": "http://plex:32400", "token": "plex-token-value"},
        "tmdb": {"apikey": "tmdb-api-key-value"},
        "trakt": {
            "client_secret": "trakt-secret-value",
            "authorization": {"access_token": "access-token-value", "refresh_token": "refresh-token-value"},
        },
    }
)


# ---------------------------------------------------------------------------
# Record basics
# ---------------------------------------------------------------------------

class TestRecord:
    def test_is_empty(self):
        assert SecretsRecord().is_empty()
        assert not SecretsRecord(extras={"notifiarr": {"apikey": "x"}}).is_empty()
        assert not SecretsRecord.model_validate({"plex": {}}).is_empty()

    def test_coerce(self):
        assert coerce_secrets(None) is None
        assert coerce_secrets(STORED) is STORED
        assert coerce_secrets({"tmdb": {"apikey": "k"}}).tmdb.apikey == "k"

    @pytest.mark.parametrize("data", [{"plex": {"password": "x"}}, {"nope": {}}, ["plex"]])
    def test_coerce_rejects_bad_shape(self, data):
        with pytest.raises(ShapeError):
            coerce_secrets(data)


# ---------------------------------------------------------------------------
# Partial updates
# ---------------------------------------------------------------------------

class TestMergeSecrets:
    """Partial updates never lose a stored credential by accident."""

    def test_unset_fields_are_kept(self):
        merged = merge_secrets(STORED, SecretsRecord.model_validate({"plex": {"url": "http://new:32400"}}))
        assert merged.plex.url == "http://new:32400"
        assert merged.plex.token == "plex-token-value"
        assert merged.tmdb.apikey == "tmdb-api-key-value"

    def test_blank_values_are_ignored(self):
        merged = merge_secrets(STORED, SecretsRecord.model_validate({"plex": {"token": "  "}, "tmdb": {"apikey": ""}}))
        assert merged.plex.token == "plex-token-value"
        assert merged.tmdb.apikey == "tmdb-api-key-value"

    def test_masked_echo_is_ignored(self):
        merged = merge_secrets(STORED, mask_record(STORED))
        assert merged == STORED

    def test_nested_authorization(self):
        update = SecretsRecord.model_validate({"trakt": {"authorization": {"access_token": "rotated-access-token"}}})
        merged = merge_secrets(STORED, update)
        assert merged.trakt.authorization.access_token == "rotated-access-token"
        assert merged.trakt.authorization.refresh_token == "refresh-token-value"
        assert merged.trakt.client_secret == "trakt-secret-value"

    def test_new_service(self):
        merged = merge_secrets(None, SecretsRecord.model_validate({"sonarr": {"token": "sonarr-token"}}))
        assert merged.sonarr.token == "sonarr-token"


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

class TestMaskRecord:
    def test_masks_credentials_but_not_urls(self):
        masked = mask_record(STORED)
        assert masked.plex.url == "http://plex:32400"
        assert masked.plex.token == "plex****alue"
        assert masked.tmdb.apikey == "tmdb****alue"
        assert masked.trakt.client_secret == "trak****alue"
        assert masked.trakt.authorization.access_token == "acce****alue"
        assert masked.trakt.authorization.refresh_token == "refr****alue"

    def test_does_not_modify_input(self):
        mask_record(STORED)
        assert STORED.plex.token == "plex-token-value"

    def test_extras_are_masked(self):
        masked = mask_record(SecretsRecord(extras={"notifiarr": {"apikey": "notifiarr-key", "pin": "12"}}))
        assert masked.extras == {"notifiarr": {"apikey": "noti****-key", "pin": "****"}}


# ---------------------------------------------------------------------------
# At-rest form
# ---------------------------------------------------------------------------

class TestSealing:
    def test_round_trip(self, master_key):
        assert open_secrets(seal_secrets(STORED, master_key), master_key) == STORED

    def test_envelope_has_no_plaintext(self, master_key):
        envelope = seal_secrets(STORED, master_key)
        assert "plex-token-value" not in envelope
        assert json.loads(envelope)["version"] == 1

    def test_payload_not_json(self, master_key):
        with pytest.raises(DecryptionError):
            open_secrets(seal("not json", master_key), master_key)

    def test_payload_wrong_shape(self, master_key):
        with pytest.raises(ShapeError):
            open_secrets(seal('{"plex": {"password": "x"}}', master_key), master_key)
