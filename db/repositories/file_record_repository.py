"""
Status and diagnostic metadata updates on uploaded file records.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.file_record import FileRecord
from db.repositories.errors import FileRecordUpdateError


class FileRecordRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_file(self, file_id: uuid.UUID) -> FileRecord | None:
        return self._session.get(FileRecord, file_id)

    def update_status(
        self,
        *,
        file_id: uuid.UUID,
        processing_status: str,
        metadata_updates: dict[str, Any] | None = None,
    ) -> FileRecord | None:
        """
        Overwrite processing_status and merge metadata_updates into the metadata bag.

        Existing metadata keys not named in metadata_updates are preserved.
        Returns None when the file record does not exist.
        """

        try:
            record = self.get_file(file_id)
            if record is None:
                return None
            record.processing_status = processing_status
            if metadata_updates:
                # Reassign so the JSON column change is tracked.
                record.file_metadata = {**(record.file_metadata or {}), **metadata_updates}
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise FileRecordUpdateError(
                f"Failed to set status {processing_status!r} on file {file_id}."
            ) from exc
        return record
