"""
Typed DTOs exchanged with the import repositories.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class RegionEntry:
    """
    One entry of the region directory.
    """

    id: uuid.UUID
    code: str
    name: str


@dataclass(frozen=True)
class MetricDataPointCreate:
    """
    Normalized data point row ready for bulk insert.
    """

    metric_id: uuid.UUID
    region_id: uuid.UUID
    date: date
    value: float
    status: str
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class StoredObject:
    """
    Result of writing one object to the import bucket.
    """

    bucket: str
    path: str
    size_bytes: int
    content_type: str | None = None
