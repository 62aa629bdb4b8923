"""Advisory validation of a configuration against its credentials.

Nothing here raises for a business rule: findings are collected into a
:class:`ValidationReport`.  Only a model that violates the typed shape raises
:class:`~kometa_studio.core.errors.ShapeError`.
"""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from kometa_studio.configs.model import KometaConfig, coerce_config
from kometa_studio.configs.registry import FIELD_LABELS, SERVICES
from kometa_studio.profiles.secrets import SecretsRecord, coerce_secrets


class ValidationIssue(BaseModel):
    type: Literal["error", "warning"]
    path: list[str]
    message: str
    code: str | None = None


class ValidationReport(BaseModel):
    valid: bool = True
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


def _warning(path: list[str], message: str, code: str) -> ValidationIssue:
    return ValidationIssue(type="warning", path=path, message=message, code=code)


def url_problems(url: str) -> list[str]:
    """Return what is wrong with *url* as a service endpoint (empty when fine)."""
    problems: list[str] = []
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https"):
        problems.append(f"scheme '{parsed.scheme}' is not http or https")
    if not parsed.hostname:
        problems.append("no hostname found in URL")
    return problems


def _service_warnings(code: str, config: KometaConfig, secrets: SecretsRecord | None) -> list[ValidationIssue]:
    entry = SERVICES[code]
    section = config.service(code)
    block = secrets.service(code) if secrets is not None else None
    issues: list[ValidationIssue] = []

    for field in entry["required_secrets"]:
        value: Any = getattr(block, field, None) if block is not None else None
        if not value:
            issues.append(
                _warning(
                    [code, field],
                    f"{entry['name']} is enabled but no {FIELD_LABELS.get(field, field)} "
                    "is configured in the active profile",
                    "missing_secret",
                )
            )

    url = getattr(block, "url", None) if block is not None else None
    if url:
        problems = url_problems(url)
        if problems:
            issues.append(
                _warning([code, "url"], f"{entry['name']} URL is invalid: {'; '.join(problems)}", "invalid_url")
            )

    if code == "trakt" and not getattr(section, "client_id", None):
        issues.append(
            _warning(["trakt", "client_id"], "Trakt is enabled but no client_id is specified", "missing_client_id")
        )

    if code in ("radarr", "sonarr") and section.add_missing and not section.root_folder_path:
        issues.append(
            _warning(
                [code, "root_folder_path"],
                f"{entry['name']} add_missing is enabled but no root_folder_path is specified",
                "missing_root_folder",
            )
        )
    return issues


def validate_config(
    config: KometaConfig | dict[str, Any],
    secrets: SecretsRecord | dict[str, Any] | None = None,
) -> ValidationReport:
    """Check *config* (with the credentials in *secrets*) for likely mistakes.

    Every finding is a warning; ``valid`` is therefore always true for a
    well-shaped configuration.

    Raises
    ------
    ShapeError
        If *config* or *secrets* violate the typed shape.
    """
    config = coerce_config(config)
    secrets = coerce_secrets(secrets)
    warnings: list[ValidationIssue] = []

    for code in SERVICES:
        section = config.service(code)
        if section is not None and section.enabled:
            warnings.extend(_service_warnings(code, config, secrets))

    if not config.libraries:
        warnings.append(_warning(["libraries"], "No libraries are configured", "no_libraries"))
    else:
        for name, library in config.libraries.items():
            if not library.has_file_references():
                warnings.append(
                    _warning(
                        ["libraries", name],
                        f'Library "{name}" has no collection_files, overlay_files, or metadata_files',
                        "empty_library",
                    )
                )

    errors: list[ValidationIssue] = []
    return ValidationReport(valid=not errors, errors=errors, warnings=warnings)
