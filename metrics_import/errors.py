"""
metrics_import/errors.py

Pipeline-level exceptions. Each one is fatal for the import it belongs to
and carries the HTTP status the trigger endpoint answers with.
"""

from __future__ import annotations


class SpreadsheetImportError(RuntimeError):
    """
    Base class for fatal import failures.
    """

    status_code: int = 500
    stage: str = "import"


class ImportRequestError(SpreadsheetImportError):
    """
    Raised when the trigger payload is missing or malformed.
    """

    status_code = 400
    stage = "request"


class UnsupportedFileTypeError(SpreadsheetImportError):
    """
    Raised when the uploaded file is not an accepted spreadsheet format.
    """

    status_code = 400
    stage = "validation"


class FileDownloadError(SpreadsheetImportError):
    """
    Raised when the uploaded blob cannot be read from the import bucket.
    """

    stage = "download"


class WorkbookReadError(SpreadsheetImportError):
    """
    Raised when the downloaded content is not a readable workbook.
    """

    stage = "read"


class RegionDirectoryError(SpreadsheetImportError):
    """
    Raised when the region vocabulary cannot be loaded.
    """

    stage = "regions"


class ExtractionFailedError(SpreadsheetImportError):
    """
    Raised when the model completion cannot be obtained.
    """

    stage = "extraction"


class ArtifactWriteError(SpreadsheetImportError):
    """
    Raised when the processed JSON artifact cannot be written.
    """

    stage = "artifact"
