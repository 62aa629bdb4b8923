"""Profile persistence helpers shared by the config and profile routers."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from kometa_studio.core import crud
from kometa_studio.core.models import Profile
from kometa_studio.profiles.secrets import SecretsRecord, open_secrets, seal_secrets
from kometa_studio.settings import settings


def get_profile_or_404(db: Session, profile_id: UUID) -> Profile:
    profile = crud.get_by_id(db, Profile, profile_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return profile


def read_secrets(profile: Profile) -> SecretsRecord:
    """Open the sealed credentials of *profile* with the configured master key."""
    return open_secrets(profile.secrets_encrypted, settings.MASTER_KEY)


def load_secrets(db: Session, profile_id: UUID | None) -> SecretsRecord | None:
    """Credentials of profile *profile_id*, or ``None`` when no profile is given."""
    if profile_id is None:
        return None
    return read_secrets(get_profile_or_404(db, profile_id))


def create_profile(
    db: Session,
    name: str,
    description: str | None,
    secrets: SecretsRecord,
) -> Profile:
    return crud.create(
        db,
        Profile,
        name=name,
        description=description,
        secrets_encrypted=seal_secrets(secrets, settings.MASTER_KEY),
    )
