"""
Read access to the region directory.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.region import Region
from db.repositories.errors import RegionLookupError
from db.repositories.types import RegionEntry


class RegionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_regions(self) -> list[RegionEntry]:
        """
        Load the full region vocabulary, ordered by code.

        Always hits the database; the vocabulary may change between imports.
        """

        stmt = select(Region.id, Region.code, Region.name).order_by(Region.code)
        try:
            rows = self._session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise RegionLookupError(f"Error fetching regions: {exc}") from exc
        return [RegionEntry(id=row.id, code=row.code, name=row.name) for row in rows]
