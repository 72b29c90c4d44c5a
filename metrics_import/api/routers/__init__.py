"""
metrics_import/api/routers package marker.
"""

from metrics_import.api.routers.spreadsheet_import import router as spreadsheet_import_router

__all__ = [
    "spreadsheet_import_router",
]
