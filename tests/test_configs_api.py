"""Tests for the config endpoints."""

from __future__ import annotations

import json
import uuid

import yaml

from kometa_studio.core.models import ConfigRecord, Profile


def _create(client, name="Home", config=None) -> dict:
    resp = client.post("/api/v1/configs/", json={"name": name, "config": config or {}})
    assert resp.status_code == 201
    return resp.json()


def _import(client, document, name="Imported") -> dict:
    resp = client.post("/api/v1/configs/import", json={"name": name, "yaml": document})
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# Health and registry
# ---------------------------------------------------------------------------

def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_services(client):
    resp = client.get("/api/v1/configs/services")
    assert resp.status_code == 200
    codes = [service["code"] for service in resp.json()]
    assert codes == ["plex", "tmdb", "tautulli", "mdblist", "radarr", "sonarr", "trakt"]


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

class TestConfigCRUD:
    """Basic create / read / update / delete for configs."""

    def test_create_and_get(self, client):
        created = _create(client, config={"settings": {"cache": True}, "plex": {"timeout": 60}})
        assert created["config"] == {"settings": {"cache": True}, "plex": {"timeout": 60}}

        resp = client.get(f"/api/v1/configs/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Home"

    def test_list(self, client):
        _create(client, name="One")
        _create(client, name="Two")
        names = {item["name"] for item in client.get("/api/v1/configs/").json()}
        assert {"One", "Two"} <= names

    def test_update(self, client):
        created = _create(client)
        resp = client.put(
            f"/api/v1/configs/{created['id']}",
            json={"description": "living room", "config": {"tmdb": {"language": "de"}}},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Home"
        assert body["description"] == "living room"
        assert body["config"] == {"tmdb": {"language": "de"}}

    def test_delete(self, client, db_session):
        created = _create(client)
        resp = client.delete(f"/api/v1/configs/{created['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/v1/configs/{created['id']}").status_code == 404
        assert db_session.query(ConfigRecord).count() == 0

    def test_not_found(self, client):
        resp = client.get("/api/v1/configs/00000000-0000-0000-0000-000000000000")
        assert resp.status_code == 404

    def test_invalid_model_is_rejected(self, client):
        resp = client.post("/api/v1/configs/", json={"name": "Bad", "config": {"plex": {"timeout": "never"}}})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

class TestImport:
    """YAML import splits a document into a config and a sealed profile."""

    def test_import_creates_config_and_profile(self, client, db_session, sample_document):
        body = _import(client, sample_document)
        assert body["profile_id"] is not None
        assert "token" not in json.dumps(body["config"]["config"]["plex"])
        assert body["config"]["config"]["extras"] == {"webhooks": {"error": "https://discord.example/webhook"}}

        profile = db_session.query(Profile).one()
        assert "abcd1234efgh5678ijkl" not in profile.secrets_encrypted
        assert json.loads(profile.secrets_encrypted)["version"] == 1

        record = db_session.query(ConfigRecord).one()
        assert "abcd1234efgh5678ijkl" not in json.dumps(record.config)

    def test_import_without_credentials_creates_no_profile(self, client, db_session):
        body = _import(client, "settings:\n  cache: true\n")
        assert body["profile_id"] is None
        assert db_session.query(Profile).count() == 0

    def test_import_malformed_yaml(self, client, db_session):
        resp = client.post("/api/v1/configs/import", json={"name": "Bad", "yaml": "plex: [\n"})
        assert resp.status_code == 400
        assert resp.json()["line"] is not None
        assert db_session.query(ConfigRecord).count() == 0

    def test_import_yaml_replaces_model(self, client):
        created = _create(client, config={"settings": {"cache": True}})
        resp = client.post(
            f"/api/v1/configs/{created['id']}/import-yaml",
            json={"yaml": "tmdb:\n  apikey: secret-key-value\n  language: fr\n"},
        )
        assert resp.status_code == 200
        assert resp.json()["config"] == {"tmdb": {"enabled": True, "language": "fr"}}


# ---------------------------------------------------------------------------
# Render, validate, export
# ---------------------------------------------------------------------------

class TestDocuments:
    def test_render_with_profile(self, client, sample_document):
        imported = _import(client, sample_document)
        config_id = imported["config"]["id"]

        resp = client.post(
            f"/api/v1/configs/{config_id}/render-yaml",
            json={"profile_id": imported["profile_id"], "mode": "full"},
        )
        assert resp.status_code == 200
        assert resp.json()["mode"] == "full"
        assert yaml.safe_load(resp.json()["yaml"])["plex"]["token"] == "abcd1234efgh5678ijkl"

        resp = client.post(
            f"/api/v1/configs/{config_id}/render-yaml",
            json={"profile_id": imported["profile_id"], "include_comment": False},
        )
        document = resp.json()["yaml"]
        assert not document.startswith("#")
        assert yaml.safe_load(document)["plex"]["token"] == "abcd****ijkl"

    def test_render_without_profile(self, client, sample_document):
        imported = _import(client, sample_document)
        resp = client.post(f"/api/v1/configs/{imported['config']['id']}/render-yaml", json={"mode": "full"})
        assert resp.status_code == 200
        assert "token" not in yaml.safe_load(resp.json()["yaml"])["plex"]

    def test_render_unknown_profile(self, client):
        created = _create(client)
        resp = client.post(
            f"/api/v1/configs/{created['id']}/render-yaml",
            json={"profile_id": "00000000-0000-0000-0000-000000000000"},
        )
        assert resp.status_code == 404

    def test_render_bad_mode(self, client):
        created = _create(client)
        resp = client.post(f"/api/v1/configs/{created['id']}/render-yaml", json={"mode": "plain"})
        assert resp.status_code == 422

    def test_render_undecryptable_profile(self, client, db_session, sample_document):
        imported = _import(client, sample_document)
        profile = db_session.get(Profile, uuid.UUID(imported["profile_id"]))
        profile.secrets_encrypted = json.dumps({"version": 1, "salt": "", "iv": "", "authTag": "", "encrypted": ""})
        db_session.commit()

        resp = client.post(
            f"/api/v1/configs/{imported['config']['id']}/render-yaml",
            json={"profile_id": imported["profile_id"]},
        )
        assert resp.status_code == 500
        assert "abcd" not in resp.text

    def test_validate(self, client, sample_document):
        imported = _import(client, sample_document)
        config_id = imported["config"]["id"]

        resp = client.post(f"/api/v1/configs/{config_id}/validate", json={"profile_id": imported["profile_id"]})
        assert resp.status_code == 200
        assert resp.json() == {"valid": True, "errors": [], "warnings": []}

        resp = client.post(f"/api/v1/configs/{config_id}/validate")
        body = resp.json()
        assert body["valid"] is True
        assert ["plex", "token"] in [warning["path"] for warning in body["warnings"]]

    def test_export_json(self, client):
        created = _create(client, name="Home", config={"settings": {"cache": True}})
        resp = client.post(f"/api/v1/configs/{created['id']}/export-json")
        assert resp.status_code == 200
        assert "attachment" in resp.headers["content-disposition"]
        assert resp.json()["config"] == {"settings": {"cache": True}}
