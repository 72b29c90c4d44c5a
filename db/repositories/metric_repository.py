"""
Persistence of imported metrics and their data points.

Each call commits on its own so that a later failure never rolls back
metrics that were already created.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.metric import Metric, MetricData
from db.repositories.errors import MetricPersistenceError
from db.repositories.types import MetricDataPointCreate

_DEFAULT_BATCH_SIZE = 1000


class MetricRepository:
    def __init__(self, session: Session, *, batch_size: int = _DEFAULT_BATCH_SIZE) -> None:
        self._session = session
        self._batch_size = max(1, batch_size)

    def create_metric(
        self,
        *,
        name: str,
        unit: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> uuid.UUID:
        metric = Metric(name=name, unit=unit, metadata_json=metadata)
        try:
            self._session.add(metric)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise MetricPersistenceError(f"Failed to create metric {name!r}.") from exc
        return metric.id

    def bulk_insert_data_points(self, rows: Sequence[MetricDataPointCreate]) -> int:
        """
        Insert data points for one metric in chunks, committing once at the end.

        Either every chunk of the call lands or none does.
        """

        if not rows:
            return 0

        payloads: list[dict[str, Any]] = [
            {
                "id": uuid.uuid4(),
                "metric_id": row.metric_id,
                "region_id": row.region_id,
                "date": row.date,
                "value": row.value,
                "status": row.status,
                "metadata_json": row.metadata,
            }
            for row in rows
        ]

        try:
            for start in range(0, len(payloads), self._batch_size):
                chunk = payloads[start : start + self._batch_size]
                self._session.execute(insert(MetricData), chunk)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise MetricPersistenceError("Failed to insert metric data points.") from exc
        return len(payloads)
