"""
metrics_import/schemas/spreadsheet_import.py

Request and response schemas for the spreadsheet import endpoint.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProcessSpreadsheetRequest(BaseModel):
    """
    Trigger payload sent once an uploaded file has a file record.

    Presence of fileId/filePath is checked by the service so a missing field
    produces the same error body as an empty one.
    """

    fileId: str | None = None
    filePath: str | None = None
    fileName: str | None = None

    def to_payload(self) -> dict[str, str | None]:
        return self.model_dump()


class CommittedDataPointResponse(BaseModel):
    region: str
    year: int
    value: float


class CommittedMetricResponse(BaseModel):
    """
    API response model for one metric created by an import run.
    """

    id: str
    name: str
    unit: str
    data: list[CommittedDataPointResponse] = Field(default_factory=list)


class ProcessSpreadsheetData(BaseModel):
    metrics: list[CommittedMetricResponse] = Field(default_factory=list)


class ProcessSpreadsheetResponse(BaseModel):
    """
    Success envelope returned by the import endpoint.
    """

    success: bool = True
    data: ProcessSpreadsheetData


class ErrorResponse(BaseModel):
    error: str
