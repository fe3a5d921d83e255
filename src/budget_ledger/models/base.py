"""Declarative base and the id/timestamp columns every ledger table carries."""
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""

    type_annotation_map = {datetime: DateTime(timezone=True)}


class BaseModel(Base):
    """Abstract base: UUID primary key plus creation and last-change times.

    Rows are hard-deleted; history that must survive a delete (a transaction
    outliving its account) is kept by SET NULL foreign keys instead.
    """

    __abstract__ = True

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )
