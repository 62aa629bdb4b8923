"""Typed configuration model for Kometa documents (no secrets).

Every section, every library and the root carry an ``extras`` mapping that
holds document keys the typed shape does not understand, so that importing
and re-rendering a document loses nothing.

Known fields default to ``None`` and are only written back when they were
explicitly set; persist the model with :func:`dump_config` so that the set of
explicitly-set fields survives a JSON round trip.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, TypeAdapter, ValidationError

from kometa_studio.core.errors import ShapeError


class Section(BaseModel):
    model_config = ConfigDict(extra="forbid")

    extras: dict[str, Any] = Field(default_factory=dict)

    #: Model-only fields that never appear in a rendered document.
    internal_fields: ClassVar[frozenset[str]] = frozenset({"extras"})

    @classmethod
    def document_fields(cls) -> tuple[str, ...]:
        """Names of the document keys this section understands."""
        return tuple(name for name in cls.model_fields if name not in cls.internal_fields)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings(Section):
    cache: StrictBool | None = None
    cache_expiration: StrictInt | None = None
    asset_directory: str | list[str] | None = None
    asset_folders: StrictBool | None = None
    asset_depth: StrictInt | None = None
    create_asset_folders: StrictBool | None = None
    prioritize_assets: StrictBool | None = None
    dimensional_asset_rename: StrictBool | None = None
    download_url_assets: StrictBool | None = None
    show_missing_assets: StrictBool | None = None
    show_missing_season_assets: StrictBool | None = None
    show_missing_episode_assets: StrictBool | None = None
    show_asset_not_needed: StrictBool | None = None
    sync_mode: Literal["append", "sync"] | None = None
    default_collection_order: str | None = None
    delete_below_minimum: StrictBool | None = None
    delete_not_scheduled: StrictBool | None = None
    run_again_delay: StrictInt | None = None
    missing_only_released: StrictBool | None = None
    show_unmanaged: StrictBool | None = None
    show_filtered: StrictBool | None = None
    show_options: StrictBool | None = None
    show_missing: StrictBool | None = None
    only_filter_missing: StrictBool | None = None
    save_report: StrictBool | None = None
    tvdb_language: str | None = None
    ignore_ids: list[str] | None = None
    ignore_imdb_ids: list[str] | None = None
    item_refresh_delay: StrictInt | None = None
    playlist_sync_to_users: Literal["all", "none"] | list[str] | None = None
    playlist_exclude_users: list[str] | None = None
    playlist_report: StrictBool | None = None
    verify_ssl: StrictBool | None = None
    custom_repo: str | None = None
    check_nightly: StrictBool | None = None
    run_order: list[str] | None = None


# ---------------------------------------------------------------------------
# File references
# ---------------------------------------------------------------------------

class _FileReference(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: ClassVar[str]

    template_variables: dict[str, Any] | None = None

    @property
    def location(self) -> str:
        """The value of the variant-selecting key."""
        return getattr(self, self.kind)


class LocalFile(_FileReference):
    kind: ClassVar[str] = "file"
    file: str


class DefaultFile(_FileReference):
    kind: ClassVar[str] = "default"
    default: str


class GitFile(_FileReference):
    kind: ClassVar[str] = "git"
    git: str


class UrlFile(_FileReference):
    kind: ClassVar[str] = "url"
    url: str


class RepoFile(_FileReference):
    kind: ClassVar[str] = "repo"
    repo: str


FileReference = Union[LocalFile, DefaultFile, GitFile, UrlFile, RepoFile]

FILE_REFERENCE_KINDS: tuple[str, ...] = tuple(
    variant.kind for variant in (LocalFile, DefaultFile, GitFile, UrlFile, RepoFile)
)

file_reference_adapter: TypeAdapter[FileReference] = TypeAdapter(FileReference)


# ---------------------------------------------------------------------------
# Libraries
# ---------------------------------------------------------------------------

FILE_LIST_FIELDS: tuple[str, ...] = ("collection_files", "overlay_files", "metadata_files")


class Library(Section):
    library_name: str | None = None
    template_variables: dict[str, Any] | None = None
    schedule: str | None = None
    run_order: list[str] | None = None
    filters: dict[str, Any] | None = None
    collection_files: list[FileReference] | None = None
    overlay_files: list[FileReference] | None = None
    metadata_files: list[FileReference] | None = None
    operations: dict[str, Any] | None = None
    settings: dict[str, Any] | None = None

    def has_file_references(self) -> bool:
        """``True`` when at least one of the file lists is non-empty."""
        return any(getattr(self, name) for name in FILE_LIST_FIELDS)


# ---------------------------------------------------------------------------
# Integrated services (non-secret flags only)
# ---------------------------------------------------------------------------

class ServiceSection(Section):
    internal_fields: ClassVar[frozenset[str]] = frozenset({"extras", "enabled"})

    enabled: bool = False


class PlexConfig(ServiceSection):
    enabled: bool = True
    timeout: StrictInt | None = None
    clean_bundles: StrictBool | None = None
    empty_trash: StrictBool | None = None
    optimize: StrictBool | None = None


class TmdbConfig(ServiceSection):
    enabled: bool = True
    cache_expiration: StrictInt | None = None
    language: str | None = None
    region: str | None = None


class TautulliConfig(ServiceSection):
    pass


class MdbListConfig(ServiceSection):
    cache_expiration: StrictInt | None = None


class RadarrConfig(ServiceSection):
    add_missing: StrictBool | None = None
    add_existing: StrictBool | None = None
    upgrade_existing: StrictBool | None = None
    monitor_existing: StrictBool | None = None
    ignore_cache: StrictBool | None = None
    root_folder_path: str | None = None
    monitor: StrictBool | None = None
    availability: Literal["announced", "cinemas", "released", "db"] | None = None
    quality_profile: str | None = None
    tag: str | list[str] | None = None
    search: StrictBool | None = None


class SonarrConfig(ServiceSection):
    add_missing: StrictBool | None = None
    add_existing: StrictBool | None = None
    upgrade_existing: StrictBool | None = None
    monitor_existing: StrictBool | None = None
    ignore_cache: StrictBool | None = None
    root_folder_path: str | None = None
    monitor: Literal["all", "future", "missing", "existing", "pilot", "first", "latest", "none"] | None = None
    quality_profile: str | None = None
    language_profile: str | None = None
    series_type: Literal["standard", "daily", "anime"] | None = None
    season_folder: StrictBool | None = None
    tag: str | list[str] | None = None
    search: StrictBool | None = None
    cutoff_search: StrictBool | None = None


class TraktConfig(ServiceSection):
    client_id: str | None = None


SERVICE_MODELS: dict[str, type[ServiceSection]] = {
    "plex": PlexConfig,
    "tmdb": TmdbConfig,
    "tautulli": TautulliConfig,
    "mdblist": MdbListConfig,
    "radarr": RadarrConfig,
    "sonarr": SonarrConfig,
    "trakt": TraktConfig,
}


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

class KometaConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    settings: Settings | None = None
    libraries: dict[str, Library] | None = None
    plex: PlexConfig | None = None
    tmdb: TmdbConfig | None = None
    tautulli: TautulliConfig | None = None
    mdblist: MdbListConfig | None = None
    radarr: RadarrConfig | None = None
    sonarr: SonarrConfig | None = None
    trakt: TraktConfig | None = None
    extras: dict[str, Any] = Field(default_factory=dict)

    def service(self, name: str) -> ServiceSection | None:
        """Return the section for service *name*, or ``None`` when absent."""
        return getattr(self, name)


TOP_LEVEL_SECTIONS: tuple[str, ...] = ("settings", *SERVICE_MODELS, "libraries")


def coerce_config(data: KometaConfig | dict[str, Any]) -> KometaConfig:
    """Return *data* as a ``KometaConfig``, validating plain mappings.

    Raises
    ------
    ShapeError
        If *data* does not satisfy the typed shape.
    """
    if isinstance(data, KometaConfig):
        return data
    if not isinstance(data, dict):
        raise ShapeError([((), f"expected a mapping, got {type(data).__name__}")])
    try:
        return KometaConfig.model_validate(data)
    except ValidationError as exc:
        raise ShapeError.from_validation_error(exc) from exc


def dump_config(config: KometaConfig) -> dict[str, Any]:
    """JSON-compatible form of *config* for persistence and interchange."""
    return config.model_dump(mode="json", exclude_unset=True)
