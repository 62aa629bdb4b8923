"""Pydantic v2 schemas for config management endpoints."""

from uuid import UUID

from pydantic import BaseModel, Field

from kometa_studio.configs.model import KometaConfig
from kometa_studio.configs.renderer import RenderMode
from kometa_studio.core.schemas import RecordOut


class ConfigCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    config: KometaConfig = Field(default_factory=KometaConfig)


class ConfigUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    config: KometaConfig | None = None


class ConfigOut(RecordOut):
    config: dict


class ServiceOut(BaseModel):
    code: str
    name: str
    description: str
    secret_fields: list[str]
    required_secrets: list[str]


class ImportYamlRequest(BaseModel):
    yaml: str
    preserve_extras: bool = True


class ImportDocumentRequest(ImportYamlRequest):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None


class ImportDocumentOut(BaseModel):
    config: ConfigOut
    profile_id: UUID | None = None


class RenderYamlRequest(BaseModel):
    profile_id: UUID | None = None
    mode: RenderMode = RenderMode.MASKED
    include_comment: bool = True


class RenderYamlResponse(BaseModel):
    yaml: str
    mode: RenderMode


class ValidateRequest(BaseModel):
    profile_id: UUID | None = None
