"""SQLAlchemy declarative base and shared mixins.

- Integer autoincrement primary keys for joins and ordering. The public
  reference for a resource is its uuid column (see RestfulModel).
- Timezone-aware UTC timestamps.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


UTC = timezone.utc


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class CreatedAtMixin:
    """Created-at timestamp mixin (UTC)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )


class UpdatedAtMixin:
    """Updated-at timestamp mixin (UTC). Only use for mutable tables."""

    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=utcnow,
    )


class SoftDeleteMixin:
    """Soft-delete marker.

    Rows with `deleted_at` set are hidden from RestfulQuery reads and are
    deleted by stamping the column instead of issuing DELETE.
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    @property
    def trashed(self) -> bool:
        return self.deleted_at is not None
