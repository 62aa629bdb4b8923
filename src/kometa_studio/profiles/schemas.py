"""Pydantic v2 schemas for profile management endpoints."""

from pydantic import BaseModel, Field

from kometa_studio.core.schemas import RecordOut
from kometa_studio.profiles.secrets import SecretsRecord


class ProfileCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    secrets: SecretsRecord = Field(default_factory=SecretsRecord)


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    # Partial: merged into the stored record, never replaces it wholesale.
    secrets: SecretsRecord | None = None


class ProfileSummaryOut(RecordOut):
    pass


class ProfileOut(RecordOut):
    secrets: SecretsRecord


class ProfileExportRequest(BaseModel):
    include_secrets: bool = False


class ProfileDocument(BaseModel):
    """Interchange form of a profile, as exported and imported."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    secrets: SecretsRecord = Field(default_factory=SecretsRecord)
