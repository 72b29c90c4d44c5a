"""
metrics_import/domain/spreadsheet_import.py

Domain models used by the spreadsheet import flow.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Union

from llm_extraction.schema import ExtractedDataPoint

# Raw cell value as read from the workbook. Blank cells are omitted from rows.
CellValue = Union[int, float, str, bool, datetime, date, time]
RawRow = dict[str, CellValue]


@dataclass(frozen=True)
class RawSheet:
    """
    One worksheet: its name and its rows in physical order.
    """

    name: str
    headers: tuple[str, ...] = ()
    rows: tuple[RawRow, ...] = ()

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class FileImportRequest:
    """
    Validated trigger payload.
    """

    file_id: uuid.UUID
    file_path: str
    file_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.file_name or self.file_path


@dataclass(frozen=True)
class CommittedMetric:
    """
    One metric created by the commit pass.

    data holds the points that passed region resolution. data_persisted is
    False when the bulk insert of those points failed.
    """

    metric_id: uuid.UUID
    name: str
    unit: str
    data: tuple[ExtractedDataPoint, ...] = ()
    data_persisted: bool = True

    @property
    def persisted_points(self) -> int:
        return len(self.data) if self.data_persisted else 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": str(self.metric_id),
            "name": self.name,
            "unit": self.unit,
            "data": [point.model_dump() for point in self.data],
        }


@dataclass(frozen=True)
class CommitReport:
    """
    End-of-run commit summary.
    """

    metrics: list[CommittedMetric] = field(default_factory=list)
    dropped_data_points: int = 0
    failed_metrics: list[str] = field(default_factory=list)
    failed_data_point_metrics: list[str] = field(default_factory=list)

    @property
    def metrics_count(self) -> int:
        return len(self.metrics)

    @property
    def data_points_count(self) -> int:
        return sum(metric.persisted_points for metric in self.metrics)

    def to_payload(self) -> dict[str, Any]:
        return {"metrics": [metric.to_payload() for metric in self.metrics]}


@dataclass(frozen=True)
class ImportOutcome:
    """
    Result of one completed import run.
    """

    file_id: uuid.UUID
    sheet_count: int
    row_count: int
    report: CommitReport
    artifact_path: str | None = None
