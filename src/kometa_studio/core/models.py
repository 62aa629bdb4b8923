"""SQLAlchemy ORM models.

Contains: ConfigRecord, Profile.  A profile's credentials are only ever
stored as a sealed envelope.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String, Text, Uuid

from kometa_studio.core.db import Base


def _utcnow() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def _new_uuid() -> uuid.UUID:
    """Generate a new UUID4."""
    return uuid.uuid4()


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

class ConfigRecord(Base):
    __tablename__ = "configs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=_new_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # JSON form of ``KometaConfig`` as produced by ``dump_config``.
    config = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=_new_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    secrets_encrypted = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
