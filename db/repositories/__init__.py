"""
Repository layer exports.
"""

from db.repositories.errors import (
    FileRecordUpdateError,
    MetricPersistenceError,
    ObjectStorageError,
    RegionLookupError,
    RepositoryError,
)
from db.repositories.file_record_repository import FileRecordRepository
from db.repositories.metric_repository import MetricRepository
from db.repositories.region_repository import RegionRepository
from db.repositories.storage import HTTPObjectStorage, LocalObjectStorage, ObjectStorage
from db.repositories.types import MetricDataPointCreate, RegionEntry, StoredObject

__all__ = [
    "FileRecordRepository",
    "MetricRepository",
    "RegionRepository",
    "ObjectStorage",
    "LocalObjectStorage",
    "HTTPObjectStorage",
    "RegionEntry",
    "MetricDataPointCreate",
    "StoredObject",
    "RepositoryError",
    "ObjectStorageError",
    "RegionLookupError",
    "MetricPersistenceError",
    "FileRecordUpdateError",
]
