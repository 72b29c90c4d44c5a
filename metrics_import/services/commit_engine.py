"""
metrics_import/services/commit_engine.py

Commits an extraction result as metrics and draft data points.

Every metric is handled on its own: a failed metric insert skips that
metric, a failed data point insert keeps the metric that was already
created. Nothing is rolled back across metrics.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from datetime import MAXYEAR, MINYEAR, date
from typing import Any, Protocol

from db.models.metric import MetricDataStatus
from db.repositories.types import MetricDataPointCreate, RegionEntry
from llm_extraction.schema import ExtractedDataPoint, ExtractedMetric, ExtractionResult
from metrics_import.domain.spreadsheet_import import CommitReport, CommittedMetric

logger = logging.getLogger(__name__)


class MetricWriter(Protocol):
    """
    Persistence operations the commit pass relies on.
    """

    def create_metric(
        self,
        *,
        name: str,
        unit: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> uuid.UUID:
        ...

    def bulk_insert_data_points(self, rows: Sequence[MetricDataPointCreate]) -> int:
        ...


def region_code_map(regions: Iterable[RegionEntry]) -> dict[str, uuid.UUID]:
    """
    Map region codes to ids. Later entries win on duplicate codes.
    """

    return {region.code: region.id for region in regions}


def resolve_data_points(
    points: Sequence[ExtractedDataPoint],
    region_ids: Mapping[str, uuid.UUID],
) -> list[ExtractedDataPoint]:
    """
    Keep points whose region code is known and whose year can be a calendar date.
    """

    return [
        point
        for point in points
        if point.region in region_ids and MINYEAR <= point.year <= MAXYEAR
    ]


class MetricCommitEngine:
    """
    Creates one metric per extracted metric and bulk-inserts its resolved points.
    """

    def __init__(self, writer: MetricWriter) -> None:
        self._writer = writer

    def commit(
        self,
        result: ExtractionResult,
        *,
        region_ids: Mapping[str, uuid.UUID],
        source_file_id: uuid.UUID,
    ) -> CommitReport:
        committed: list[CommittedMetric] = []
        failed_metrics: list[str] = []
        failed_data_point_metrics: list[str] = []
        dropped = 0

        for metric in result.metrics:
            try:
                metric_id = self._writer.create_metric(
                    name=metric.name,
                    unit=metric.unit,
                    metadata={"source_file_id": str(source_file_id)},
                )
            except Exception as exc:  # noqa: BLE001
                logger.error("Error creating metric name=%r: %s", metric.name, exc)
                failed_metrics.append(metric.name)
                continue

            logger.info("Created metric name=%r id=%s", metric.name, metric_id)

            points = resolve_data_points(metric.data, region_ids)
            dropped += len(metric.data) - len(points)
            if not points:
                logger.info("No valid data points for metric name=%r", metric.name)
                committed.append(
                    CommittedMetric(metric_id=metric_id, name=metric.name, unit=metric.unit)
                )
                continue

            data_persisted = self._insert_points(
                metric=metric,
                metric_id=metric_id,
                points=points,
                region_ids=region_ids,
                source_file_id=source_file_id,
            )
            if not data_persisted:
                failed_data_point_metrics.append(metric.name)

            committed.append(
                CommittedMetric(
                    metric_id=metric_id,
                    name=metric.name,
                    unit=metric.unit,
                    data=tuple(points),
                    data_persisted=data_persisted,
                )
            )

        report = CommitReport(
            metrics=committed,
            dropped_data_points=dropped,
            failed_metrics=failed_metrics,
            failed_data_point_metrics=failed_data_point_metrics,
        )
        logger.info(
            "Commit finished metrics=%d data_points=%d dropped_data_points=%d "
            "failed_metrics=%d failed_data_point_metrics=%d",
            report.metrics_count,
            report.data_points_count,
            report.dropped_data_points,
            len(failed_metrics),
            len(failed_data_point_metrics),
        )
        return report

    def _insert_points(
        self,
        *,
        metric: ExtractedMetric,
        metric_id: uuid.UUID,
        points: Sequence[ExtractedDataPoint],
        region_ids: Mapping[str, uuid.UUID],
        source_file_id: uuid.UUID,
    ) -> bool:
        rows = [
            MetricDataPointCreate(
                metric_id=metric_id,
                region_id=region_ids[point.region],
                date=date(point.year, 1, 1),
                value=point.value,
                status=MetricDataStatus.DRAFT,
                metadata={
                    "source_file_id": str(source_file_id),
                    "original_year": point.year,
                },
            )
            for point in points
        ]
        try:
            inserted = self._writer.bulk_insert_data_points(rows)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error inserting data points metric=%r: %s", metric.name, exc)
            return False

        logger.info("Inserted %d data points for metric name=%r", inserted, metric.name)
        return True
