"""
Repository-layer exceptions for the metrics import flow.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class ObjectStorageError(RepositoryError):
    """Raised when reading or writing an object in the import bucket fails."""


class RegionLookupError(RepositoryError):
    """Raised when the region directory cannot be loaded."""


class MetricPersistenceError(RepositoryError):
    """Raised when a metric or its data points cannot be inserted."""


class FileRecordUpdateError(RepositoryError):
    """Raised when a file record status update cannot be persisted."""
