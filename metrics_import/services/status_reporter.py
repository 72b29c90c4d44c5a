"""
metrics_import/services/status_reporter.py

Writes processing status transitions onto the originating file record.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Protocol

from db.models.file_record import FileProcessingStatus

logger = logging.getLogger(__name__)


class FileStatusSink(Protocol):
    def update_status(
        self,
        *,
        file_id: uuid.UUID,
        processing_status: str,
        metadata_updates: dict[str, Any] | None = None,
    ) -> Any:
        ...


class ImportStatusReporter:
    """
    Reports pending → processing → completed | error for one import run.

    Once a terminal status has been written, later transitions in the same
    run are ignored. Sink failures are logged and never raised, so a status
    write can not turn a finished import into a failed one.
    """

    def __init__(self, sink: FileStatusSink, file_id: uuid.UUID) -> None:
        self._sink = sink
        self._file_id = file_id
        self._status: str | None = None

    @property
    def status(self) -> str | None:
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self._status in FileProcessingStatus.TERMINAL

    def processing(self) -> None:
        self._report(FileProcessingStatus.PROCESSING, None)

    def error(self, message: str) -> None:
        self._report(FileProcessingStatus.ERROR, {"error": message})

    def completed(self, *, metrics_count: int, data_points_count: int, **diagnostics: Any) -> None:
        metadata = {
            "metrics_count": metrics_count,
            "data_points_count": data_points_count,
            **diagnostics,
        }
        # A previous failed run may have left an error message behind.
        metadata.setdefault("error", None)
        self._report(FileProcessingStatus.COMPLETED, metadata)

    def _report(self, status: str, metadata: dict[str, Any] | None) -> None:
        if self.is_terminal:
            logger.warning(
                "Ignoring status transition file_id=%s from=%s to=%s",
                self._file_id,
                self._status,
                status,
            )
            return

        self._status = status
        try:
            record = self._sink.update_status(
                file_id=self._file_id,
                processing_status=status,
                metadata_updates=metadata,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Error updating file status file_id=%s status=%s: %s",
                self._file_id,
                status,
                exc,
            )
            return

        if record is None:
            logger.warning("File record not found file_id=%s status=%s", self._file_id, status)
        else:
            logger.info("File status updated file_id=%s status=%s", self._file_id, status)
