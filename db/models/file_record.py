"""
db/models/file_record.py

Uploaded file record. The import pipeline only ever updates
processing_status and metadata on these rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class FileProcessingStatus:
    """Valid status transitions: pending → processing → completed | error."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    TERMINAL = frozenset({COMPLETED, ERROR})


class FileRecord(Base):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    path: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Object path inside the import bucket",
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    processing_status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=FileProcessingStatus.PENDING,
        server_default=FileProcessingStatus.PENDING,
    )
    file_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        nullable=True,
        comment="Diagnostic bag: counts, error messages",
    )

    __table_args__ = (
        Index("ix_files_processing_status", "processing_status"),
        CheckConstraint(
            "processing_status IN ('pending', 'processing', 'completed', 'error')",
            name="ck_files_processing_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<FileRecord id={self.id} filename={self.filename!r} "
            f"processing_status={self.processing_status!r}>"
        )
