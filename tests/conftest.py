"""Shared pytest fixtures for Kometa Studio tests.

Uses an in-memory SQLite database so that tests never touch the real
database file.  The master key and database URL are set in the environment
before the application is imported, because settings are read at import
time.
"""

from __future__ import annotations

import os

TEST_MASTER_KEY = "AQEB" * 10 + "AQE="  # base64 of 32 x 0x01

os.environ["KOMETA_STUDIO_MASTER_KEY"] = TEST_MASTER_KEY
os.environ["KOMETA_STUDIO_DATABASE_URL"] = "sqlite://"

from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from kometa_studio.core.db import Base, get_db  # noqa: E402
from kometa_studio.main import app  # noqa: E402


SAMPLE_DOCUMENT = """\
settings:
  cache: true
  cache_expiration: 60
  asset_directory: config/assets
  run_order:
    - operations
    - metadata
    - collections
    - overlays
  custom_flag: keep-me
plex:
  url: http://192.168.1.12:32400
  token: abcd1234efgh5678ijkl
  timeout: 60
  clean_bundles: false
tmdb:
  apikey: 0123456789abcdef0123456789abcdef
  language: en
radarr:
  url: http://localhost:7878
  token: radarr-token-0123456789
  add_missing: false
  root_folder_path: /movies
trakt:
  client_id: trakt-client-id
  client_secret: trakt-client-secret-value
  authorization:
    access_token: trakt-access-token-value
    token_type: Bearer
    expires_in: 7889238
    refresh_token: trakt-refresh-token-value
    scope: public
    created_at: 1700000000
libraries:
  Movies:
    collection_files:
      - default: basic
      - file: config/Movies.yml
    overlay_files:
      - default: ribbon
        template_variables:
          use_metacritic: false
  TV Shows:
    metadata_files:
      - git: PMM/TVShows
webhooks:
  error: https://discord.example/webhook
"""


# ---------------------------------------------------------------------------
# SQLite engine
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def engine():
    """Create an in-memory SQLite engine shared by every connection."""
    _engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=_engine)
    yield _engine
    Base.metadata.drop_all(bind=_engine)
    _engine.dispose()


# ---------------------------------------------------------------------------
# Database session
# ---------------------------------------------------------------------------

@pytest.fixture()
def db_session(engine) -> Generator[Session, None, None]:
    """Provide a transactional database session that is rolled back after
    every test so that test isolation is guaranteed.
    """
    connection = engine.connect()
    transaction = connection.begin()
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection,
    )
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


# ---------------------------------------------------------------------------
# FastAPI TestClient with DB override
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Return a ``TestClient`` that uses the test database session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Keys and documents
# ---------------------------------------------------------------------------

@pytest.fixture()
def master_key() -> str:
    return TEST_MASTER_KEY


@pytest.fixture()
def sample_document() -> str:
    return SAMPLE_DOCUMENT
