"""Profile management endpoints.

A profile is a named set of credentials.  They are sealed before they touch
the database and only ever leave the server masked, unless an export
explicitly asks for plaintext.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from kometa_studio.core import crud
from kometa_studio.core.db import get_db
from kometa_studio.core.models import Profile
from kometa_studio.profiles.schemas import (
    ProfileCreate,
    ProfileDocument,
    ProfileExportRequest,
    ProfileOut,
    ProfileSummaryOut,
    ProfileUpdate,
)
from kometa_studio.profiles.secrets import mask_record, merge_secrets, seal_secrets
from kometa_studio.profiles.service import create_profile, get_profile_or_404, read_secrets
from kometa_studio.settings import settings
from kometa_studio.util.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


def _masked_out(profile: Profile) -> ProfileOut:
    return ProfileOut(
        id=profile.id,
        name=profile.name,
        description=profile.description,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
        secrets=mask_record(read_secrets(profile)),
    )


# -- Profiles -----------------------------------------------------------------

@router.get("/", response_model=list[ProfileSummaryOut])
def list_profiles(db: Session = Depends(get_db)) -> list[Profile]:
    """Return all profiles, without their credentials."""
    return crud.list_recent(db, Profile)


@router.post("/", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
def create_profile_endpoint(body: ProfileCreate, db: Session = Depends(get_db)) -> ProfileOut:
    """Create a profile; the credentials are sealed before storage."""
    profile = create_profile(db, body.name, body.description, body.secrets)
    logger.info("Created profile %s (%s)", profile.id, profile.name)
    return _masked_out(profile)


@router.get("/{profile_id}", response_model=ProfileOut)
def get_profile(profile_id: UUID, db: Session = Depends(get_db)) -> ProfileOut:
    """Get a profile with its credentials masked."""
    return _masked_out(get_profile_or_404(db, profile_id))


@router.put("/{profile_id}", response_model=ProfileOut)
def update_profile(profile_id: UUID, body: ProfileUpdate, db: Session = Depends(get_db)) -> ProfileOut:
    """Update a profile.

    Credentials are merged into the stored record: fields left out, blank,
    or sent back in their masked form keep their current value.
    """
    profile = get_profile_or_404(db, profile_id)
    changes = body.model_dump(exclude_unset=True, exclude={"secrets"})
    if body.secrets is not None:
        merged = merge_secrets(read_secrets(profile), body.secrets)
        changes["secrets_encrypted"] = seal_secrets(merged, settings.MASTER_KEY)
    profile = crud.update(db, profile, **changes)
    logger.info("Updated profile %s", profile.id)
    return _masked_out(profile)


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_profile(profile_id: UUID, db: Session = Depends(get_db)) -> Response:
    """Delete a profile and its sealed credentials."""
    profile = get_profile_or_404(db, profile_id)
    crud.delete(db, profile)
    logger.info("Deleted profile %s", profile_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- Interchange --------------------------------------------------------------

@router.post("/import", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
def import_profile(body: ProfileDocument, db: Session = Depends(get_db)) -> ProfileOut:
    """Create a profile from an exported profile document."""
    profile = create_profile(db, body.name, body.description, body.secrets)
    logger.info("Imported profile %s (%s)", profile.id, profile.name)
    return _masked_out(profile)


@router.post("/{profile_id}/export")
def export_profile(
    profile_id: UUID,
    body: ProfileExportRequest | None = None,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Download a profile as JSON.

    Credentials are masked unless ``include_secrets`` is set.
    """
    include_secrets = body.include_secrets if body is not None else False
    profile = get_profile_or_404(db, profile_id)
    secrets = read_secrets(profile)
    if not include_secrets:
        secrets = mask_record(secrets)
    else:
        logger.warning("Profile %s exported with plaintext credentials", profile.id)
    document = ProfileDocument(name=profile.name, description=profile.description, secrets=secrets)
    return JSONResponse(
        content=document.model_dump(mode="json", exclude_none=True),
        headers={"Content-Disposition": f'attachment; filename="{profile.name}-profile.json"'},
    )
