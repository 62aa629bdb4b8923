"""Config management endpoints: CRUD, YAML import, rendering and validation."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from kometa_studio.configs.model import coerce_config, dump_config
from kometa_studio.configs.parser import extract_secrets, parse_document
from kometa_studio.configs.registry import list_services
from kometa_studio.configs.renderer import render_document
from kometa_studio.configs.schemas import (
    ConfigCreate,
    ConfigOut,
    ConfigUpdate,
    ImportDocumentOut,
    ImportDocumentRequest,
    ImportYamlRequest,
    RenderYamlRequest,
    RenderYamlResponse,
    ServiceOut,
    ValidateRequest,
)
from kometa_studio.configs.validator import ValidationReport, validate_config
from kometa_studio.core import crud
from kometa_studio.core.db import get_db
from kometa_studio.core.models import ConfigRecord
from kometa_studio.profiles.service import create_profile, load_secrets
from kometa_studio.util.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/configs", tags=["configs"])


def _get_config_or_404(db: Session, config_id: UUID) -> ConfigRecord:
    record = crud.get_by_id(db, ConfigRecord, config_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Config not found",
        )
    return record


# -- Services -----------------------------------------------------------------

@router.get("/services", response_model=list[ServiceOut])
def get_services() -> list[dict]:
    """Return the integrated services a config can enable."""
    return list_services()


# -- Configs ------------------------------------------------------------------

@router.get("/", response_model=list[ConfigOut])
def list_configs(db: Session = Depends(get_db)) -> list[ConfigRecord]:
    """Return all configs, most recently updated first."""
    return crud.list_recent(db, ConfigRecord)


@router.post("/", response_model=ConfigOut, status_code=status.HTTP_201_CREATED)
def create_config(body: ConfigCreate, db: Session = Depends(get_db)) -> ConfigRecord:
    """Create a config from its JSON model."""
    record = crud.create(
        db,
        ConfigRecord,
        name=body.name,
        description=body.description,
        config=dump_config(body.config),
    )
    logger.info("Created config %s (%s)", record.id, record.name)
    return record


@router.post("/import", response_model=ImportDocumentOut, status_code=status.HTTP_201_CREATED)
def import_document(body: ImportDocumentRequest, db: Session = Depends(get_db)) -> ImportDocumentOut:
    """Import a Kometa YAML document as a new config.

    Credentials found in the document are split off into a new profile; no
    profile is created when the document carries none.
    """
    config = parse_document(body.yaml, preserve_extras=body.preserve_extras)
    secrets = extract_secrets(body.yaml)

    record = crud.create(
        db,
        ConfigRecord,
        name=body.name,
        description=body.description,
        config=dump_config(config),
    )
    profile_id = None
    if not secrets.is_empty():
        profile = create_profile(db, f"{body.name} credentials", body.description, secrets)
        profile_id = profile.id
    logger.info("Imported config %s (%s), profile %s", record.id, record.name, profile_id)
    return ImportDocumentOut(config=ConfigOut.model_validate(record), profile_id=profile_id)


@router.get("/{config_id}", response_model=ConfigOut)
def get_config(config_id: UUID, db: Session = Depends(get_db)) -> ConfigRecord:
    """Get a config by ID."""
    return _get_config_or_404(db, config_id)


@router.put("/{config_id}", response_model=ConfigOut)
def update_config(config_id: UUID, body: ConfigUpdate, db: Session = Depends(get_db)) -> ConfigRecord:
    """Update a config's name, description and/or model."""
    record = _get_config_or_404(db, config_id)
    changes = body.model_dump(exclude_unset=True, exclude={"config"})
    if body.config is not None:
        changes["config"] = dump_config(body.config)
    record = crud.update(db, record, **changes)
    logger.info("Updated config %s", record.id)
    return record


@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_config(config_id: UUID, db: Session = Depends(get_db)) -> Response:
    """Delete a config."""
    record = _get_config_or_404(db, config_id)
    crud.delete(db, record)
    logger.info("Deleted config %s", config_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- Documents ----------------------------------------------------------------

@router.post("/{config_id}/import-yaml", response_model=ConfigOut)
def import_yaml(config_id: UUID, body: ImportYamlRequest, db: Session = Depends(get_db)) -> ConfigRecord:
    """Replace a config's model with the one parsed from a YAML document.

    Credentials in the document are ignored; import them into a profile.
    """
    record = _get_config_or_404(db, config_id)
    config = parse_document(body.yaml, preserve_extras=body.preserve_extras)
    record = crud.update(db, record, config=dump_config(config))
    logger.info("Replaced config %s from YAML", record.id)
    return record


@router.post("/{config_id}/render-yaml", response_model=RenderYamlResponse)
def render_yaml(config_id: UUID, body: RenderYamlRequest, db: Session = Depends(get_db)) -> RenderYamlResponse:
    """Render a config, optionally with a profile's credentials, as Kometa YAML."""
    record = _get_config_or_404(db, config_id)
    secrets = load_secrets(db, body.profile_id)
    document = render_document(
        coerce_config(record.config),
        secrets,
        mode=body.mode,
        include_comment=body.include_comment,
    )
    return RenderYamlResponse(yaml=document, mode=body.mode)


@router.post("/{config_id}/validate", response_model=ValidationReport)
def validate(config_id: UUID, body: ValidateRequest | None = None, db: Session = Depends(get_db)) -> ValidationReport:
    """Check a config, optionally against a profile's credentials."""
    record = _get_config_or_404(db, config_id)
    secrets = load_secrets(db, body.profile_id if body is not None else None)
    return validate_config(coerce_config(record.config), secrets)


@router.post("/{config_id}/export-json")
def export_json(config_id: UUID, db: Session = Depends(get_db)) -> JSONResponse:
    """Download a config record as JSON."""
    record = _get_config_or_404(db, config_id)
    content = ConfigOut.model_validate(record).model_dump(mode="json")
    return JSONResponse(
        content=content,
        headers={"Content-Disposition": f'attachment; filename="{record.name}.json"'},
    )
