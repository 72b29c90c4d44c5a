"""
metrics_import/services/spreadsheet_import_service.py

Service layer for the spreadsheet import pipeline.

One run goes through these stages, in order:

    1. download: read the uploaded blob from the import bucket
    2. read: decode every sheet into raw rows
    3. regions: load the region vocabulary (fresh for every run)
    4. extraction: one model completion over the raw rows
    5. validation: parse / validate / repair the model response
    6. commit: metrics + draft data points, isolated per metric
    7. artifact: optional processed/{file_id}.json
    8. status: file record marked completed

Stages 1-4 and 7 are fatal: the file record is marked "error" and the
exception propagates. Stages 5 and 6 absorb data-quality and per-metric
failures, which only show up in logs and diagnostic metadata.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any

from sqlalchemy.orm import Session

from db.repositories.errors import ObjectStorageError, RegionLookupError
from db.repositories.file_record_repository import FileRecordRepository
from db.repositories.metric_repository import MetricRepository
from db.repositories.region_repository import RegionRepository
from db.repositories.storage import HTTPObjectStorage, LocalObjectStorage, ObjectStorage
from db.repositories.types import RegionEntry
from llm_extraction.adapter import BaseLLMAdapter, MockLLMAdapter, OpenAILLMAdapter
from llm_extraction.requester import ExtractionRequester, ExtractionRequestError
from llm_extraction.validator import parse_extraction_response
from metrics_import.config import (
    LLMSettings,
    SpreadsheetImportSettings,
    StorageSettings,
    get_llm_settings,
    get_spreadsheet_import_settings,
    get_storage_settings,
)
from metrics_import.domain.spreadsheet_import import (
    CommitReport,
    FileImportRequest,
    ImportOutcome,
    RawSheet,
)
from metrics_import.errors import (
    ArtifactWriteError,
    ExtractionFailedError,
    FileDownloadError,
    ImportRequestError,
    RegionDirectoryError,
    SpreadsheetImportError,
    UnsupportedFileTypeError,
)
from metrics_import.readers.workbook_reader import SUPPORTED_EXTENSIONS, file_extension, read_workbook
from metrics_import.services.commit_engine import MetricCommitEngine, region_code_map
from metrics_import.services.status_reporter import ImportStatusReporter

logger = logging.getLogger(__name__)


def parse_import_request(payload: Mapping[str, Any] | None) -> FileImportRequest:
    """
    Validate the trigger payload `{fileId, filePath, fileName}`.
    """

    payload = payload or {}
    raw_file_id = payload.get("fileId")
    raw_file_path = payload.get("filePath")
    if not raw_file_id or not raw_file_path:
        raise ImportRequestError("File ID and path are required")

    try:
        file_id = uuid.UUID(str(raw_file_id))
    except ValueError as exc:
        raise ImportRequestError("File ID must be a valid UUID") from exc

    raw_file_name = payload.get("fileName")
    return FileImportRequest(
        file_id=file_id,
        file_path=str(raw_file_path),
        file_name=str(raw_file_name) if raw_file_name else None,
    )


class SpreadsheetImportService:
    """
    Coordinates download, parsing, extraction, validation, commit and status.
    """

    def __init__(
        self,
        *,
        settings: SpreadsheetImportSettings,
        storage: ObjectStorage,
        llm_adapter: BaseLLMAdapter,
        requester: ExtractionRequester | None = None,
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._requester = requester or ExtractionRequester(llm_adapter)

    def process(self, *, db: Session, request: FileImportRequest) -> ImportOutcome:
        """
        Run one import for an already uploaded file.

        Args:
            db:       Active SQLAlchemy session (caller owns lifecycle).
            request:  Validated trigger payload.

        Raises:
            UnsupportedFileTypeError: The file is not an accepted spreadsheet.
            SpreadsheetImportError:   Any other fatal stage failure.
        """

        reporter = ImportStatusReporter(FileRecordRepository(db), request.file_id)
        logger.info("Processing file name=%s id=%s path=%s", request.display_name, request.file_id, request.file_path)

        extension = self._resolve_extension(request)
        if extension not in self._settings.allowed_extensions or extension not in SUPPORTED_EXTENSIONS:
            message = (
                f"Unsupported file type '{extension or 'none'}'. "
                f"Accepted: {', '.join(self._accepted_extensions())}"
            )
            logger.warning("Rejected file id=%s: %s", request.file_id, message)
            reporter.error(message)
            raise UnsupportedFileTypeError(message)

        try:
            return self._run(db=db, request=request, reporter=reporter)
        except SpreadsheetImportError as exc:
            logger.error("Import failed file_id=%s stage=%s: %s", request.file_id, exc.stage, exc)
            db.rollback()
            reporter.error(str(exc))
            raise
        except Exception as exc:
            logger.exception("Unexpected import failure file_id=%s", request.file_id)
            db.rollback()
            reporter.error(str(exc) or exc.__class__.__name__)
            raise

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _run(
        self,
        *,
        db: Session,
        request: FileImportRequest,
        reporter: ImportStatusReporter,
    ) -> ImportOutcome:
        reporter.processing()

        content = self._download(request.file_path)
        sheets = read_workbook(content, self._reader_file_name(request))
        regions = self._load_regions(db)

        raw_response = self._request_extraction(sheets, regions)
        extraction = parse_extraction_response(raw_response)
        logger.info(
            "Extraction parsed file_id=%s metrics=%d data_points=%d",
            request.file_id,
            len(extraction.metrics),
            extraction.data_points_count,
        )

        engine = MetricCommitEngine(
            MetricRepository(db, batch_size=self._settings.data_point_batch_size)
        )
        report = engine.commit(
            extraction,
            region_ids=region_code_map(regions),
            source_file_id=request.file_id,
        )

        artifact_path = None
        if self._settings.write_processed_artifact:
            artifact_path = self._write_artifact(request.file_id, report)

        row_count = sum(sheet.row_count for sheet in sheets.values())
        diagnostics: dict[str, Any] = {
            "dropped_data_points": report.dropped_data_points,
            "failed_metrics": report.failed_metrics,
            "failed_data_point_metrics": report.failed_data_point_metrics,
            "sheet_count": len(sheets),
            "row_count": row_count,
        }
        if request.file_name:
            diagnostics["file_name"] = request.file_name
        if artifact_path:
            diagnostics["processed_path"] = artifact_path

        reporter.completed(
            metrics_count=report.metrics_count,
            data_points_count=report.data_points_count,
            **diagnostics,
        )
        return ImportOutcome(
            file_id=request.file_id,
            sheet_count=len(sheets),
            row_count=row_count,
            report=report,
            artifact_path=artifact_path,
        )

    def _download(self, file_path: str) -> bytes:
        try:
            return self._storage.download(file_path)
        except ObjectStorageError as exc:
            raise FileDownloadError(f"Failed to download file: {exc}") from exc

    def _load_regions(self, db: Session) -> list[RegionEntry]:
        try:
            regions = RegionRepository(db).list_regions()
        except RegionLookupError as exc:
            raise RegionDirectoryError(str(exc)) from exc
        logger.info("Loaded region directory regions=%d", len(regions))
        return regions

    def _request_extraction(
        self,
        sheets: Mapping[str, RawSheet],
        regions: Sequence[RegionEntry],
    ) -> str:
        rows_by_sheet = {name: sheet.rows for name, sheet in sheets.items()}
        try:
            return self._requester.request(rows_by_sheet, regions)
        except ExtractionRequestError as exc:
            raise ExtractionFailedError(str(exc)) from exc

    def _write_artifact(self, file_id: uuid.UUID, report: CommitReport) -> str:
        path = f"{self._settings.processed_prefix}/{file_id}.json"
        body = json.dumps(report.to_payload(), ensure_ascii=False, indent=2).encode("utf-8")
        try:
            stored = self._storage.upload(path, body, content_type="application/json")
        except ObjectStorageError as exc:
            raise ArtifactWriteError(f"Failed to write processed artifact: {exc}") from exc
        logger.info("Processed artifact written path=%s bytes=%d", stored.path, stored.size_bytes)
        return stored.path

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_extension(self, request: FileImportRequest) -> str:
        for candidate in (request.file_name, request.file_path):
            extension = file_extension(candidate or "")
            if extension:
                return extension
        return ""

    def _reader_file_name(self, request: FileImportRequest) -> str:
        if request.file_name and file_extension(request.file_name):
            return request.file_name
        return request.file_path

    def _accepted_extensions(self) -> list[str]:
        return [ext for ext in self._settings.allowed_extensions if ext in SUPPORTED_EXTENSIONS]


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def build_object_storage(settings: StorageSettings) -> ObjectStorage:
    if settings.backend == "http":
        if not settings.base_url or not settings.api_key:
            raise RuntimeError("STORAGE_BASE_URL and STORAGE_API_KEY are required for http storage.")
        return HTTPObjectStorage(
            base_url=settings.base_url,
            api_key=settings.api_key,
            bucket=settings.bucket,
            timeout_seconds=settings.timeout_seconds,
        )
    return LocalObjectStorage(root_dir=settings.root_dir, bucket=settings.bucket)


def build_llm_adapter(settings: LLMSettings) -> BaseLLMAdapter:
    if settings.adapter == "mock":
        return MockLLMAdapter()
    return OpenAILLMAdapter(
        model=settings.model,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
        base_url=settings.base_url,
    )


@lru_cache(maxsize=1)
def get_spreadsheet_import_service() -> SpreadsheetImportService:
    """
    Build and cache the import service with env-driven settings.
    """

    return SpreadsheetImportService(
        settings=get_spreadsheet_import_settings(),
        storage=build_object_storage(get_storage_settings()),
        llm_adapter=build_llm_adapter(get_llm_settings()),
    )
