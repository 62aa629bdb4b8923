"""Generic CRUD utility functions for SQLAlchemy models."""

from __future__ import annotations

from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from kometa_studio.core.db import Base

ModelT = TypeVar("ModelT", bound=Base)


def get_by_id(db: Session, model: type[ModelT], id: UUID) -> ModelT | None:
    """Retrieve a single record by its primary key (id column).

    Returns the model instance or ``None`` if not found.
    """
    return db.query(model).filter(model.id == id).first()


def list_recent(db: Session, model: type[ModelT], limit: int = 100, offset: int = 0) -> list[ModelT]:
    """Records of *model*, most recently updated first."""
    return db.query(model).order_by(model.updated_at.desc()).offset(offset).limit(limit).all()


def create(db: Session, model: type[ModelT], **kwargs: Any) -> ModelT:
    """Create a new record and commit it.

    Returns the newly created model instance with its generated id.
    """
    instance = model(**kwargs)
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance


def update(db: Session, instance: ModelT, **kwargs: Any) -> ModelT:
    """Update fields on an existing model instance.

    Only keyword arguments whose keys match actual model attributes are applied.
    Returns the updated instance after committing the transaction.
    """
    for key, value in kwargs.items():
        if hasattr(instance, key):
            setattr(instance, key, value)
    db.commit()
    db.refresh(instance)
    return instance


def delete(db: Session, instance: ModelT) -> None:
    """Delete *instance* and commit."""
    db.delete(instance)
    db.commit()
