"""
db/models/region.py

Region model: the controlled vocabulary that imported data points are mapped onto.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Region(Base, TimestampMixin):
    __tablename__ = "regions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Short canonical code, e.g. IDF",
    )
    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    __table_args__ = (
        Index("uq_regions_code", "code", unique=True),
    )

    def __repr__(self) -> str:
        return f"<Region id={self.id} code={self.code!r}>"
