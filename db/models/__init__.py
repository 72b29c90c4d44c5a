"""
Model package exports.

Every ORM model is imported here so Base.metadata is complete for
Alembic autogeneration and the startup schema check.
"""

from db.models.file_record import FileProcessingStatus, FileRecord
from db.models.metric import Metric, MetricData, MetricDataStatus
from db.models.region import Region

__all__ = [
    "FileProcessingStatus",
    "FileRecord",
    "Metric",
    "MetricData",
    "MetricDataStatus",
    "Region",
]
