"""Shared / base Pydantic v2 schemas used across the Kometa Studio API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class RecordOut(BaseModel):
    """Columns every stored record exposes."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class HealthOut(BaseModel):
    status: str
    timestamp: datetime
