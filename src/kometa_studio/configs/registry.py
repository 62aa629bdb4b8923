"""Integrated service registry.

Provides a static registry of the services a Kometa document can configure,
which of their document keys carry credentials, and which of those
credentials are required for the service to work.  The importer, renderer
and validator all read credential positions from here; values are never
classified as secrets by their appearance.
"""

from __future__ import annotations

from typing import Any

SERVICES: dict[str, dict[str, Any]] = {
    "plex": {
        "code": "plex",
        "name": "Plex",
        "description": "Plex Media Server that Kometa updates.",
        "secret_fields": ["url", "token"],
        "masked_fields": ["token"],
        "required_secrets": ["url", "token"],
    },
    "tmdb": {
        "code": "tmdb",
        "name": "TMDb",
        "description": "The Movie Database, used for most metadata lookups.",
        "secret_fields": ["apikey"],
        "masked_fields": ["apikey"],
        "required_secrets": ["apikey"],
    },
    "tautulli": {
        "code": "tautulli",
        "name": "Tautulli",
        "description": "Plex usage statistics for popular and watched builders.",
        "secret_fields": ["url", "apikey"],
        "masked_fields": ["apikey"],
        "required_secrets": ["url", "apikey"],
    },
    "mdblist": {
        "code": "mdblist",
        "name": "MDBList",
        "description": "Curated lists and aggregated ratings.",
        "secret_fields": ["apikey"],
        "masked_fields": ["apikey"],
        "required_secrets": ["apikey"],
    },
    "radarr": {
        "code": "radarr",
        "name": "Radarr",
        "description": "Movie collection manager that receives missing movies.",
        "secret_fields": ["url", "token"],
        "masked_fields": ["token"],
        "required_secrets": ["url", "token"],
    },
    "sonarr": {
        "code": "sonarr",
        "name": "Sonarr",
        "description": "Series collection manager that receives missing shows.",
        "secret_fields": ["url", "token"],
        "masked_fields": ["token"],
        "required_secrets": ["url", "token"],
    },
    "trakt": {
        "code": "trakt",
        "name": "Trakt",
        "description": "Trakt lists and OAuth-authorised user data.",
        "secret_fields": ["client_secret", "authorization"],
        "masked_fields": ["client_secret", "authorization.access_token", "authorization.refresh_token"],
        "required_secrets": ["client_secret"],
    },
}

#: Display labels used in validation messages.
FIELD_LABELS: dict[str, str] = {
    "url": "URL",
    "token": "token",
    "apikey": "API key",
    "client_secret": "client_secret",
}


def get_service(code: str) -> dict[str, Any] | None:
    """Return the registry entry for the given service code, or ``None``
    if the code is not registered.
    """
    return SERVICES.get(code)


def list_services() -> list[dict[str, Any]]:
    """Return all registered services as a list of dicts."""
    return list(SERVICES.values())


def secret_fields(code: str) -> tuple[str, ...]:
    """Credential-bearing document keys of service *code* (empty if unknown)."""
    entry = SERVICES.get(code)
    return tuple(entry["secret_fields"]) if entry else ()
