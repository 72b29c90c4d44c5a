"""
db/base.py

Declarative base and shared column mixins for the metrics schema.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (in-memory test engines).
JSONBCompat = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """
    Project-wide declarative base.
    Every table of the metrics schema inherits from this class.
    """

    type_annotation_map: dict[type, Any] = {
        dict[str, Any]: JSONBCompat,
    }


class TimestampMixin:
    """
    Adds created_at / updated_at columns.
    updated_at is refreshed on every ORM-issued UPDATE.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
