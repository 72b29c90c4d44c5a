"""
db/models/metric.py

Metric and metric data point models.

A metric is a named, unit-bearing time series; each MetricData row is one
value of that series for one region at one date.
"""

from __future__ import annotations

import uuid
import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.region import Region


class MetricDataStatus:
    """Publication state of one data point."""

    PUBLIC = "public"
    PRIVATE = "private"
    DRAFT = "draft"


class Metric(Base, TimestampMixin):
    __tablename__ = "metrics"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("metrics.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes, hence the attribute name.
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        nullable=True,
        comment="Provenance, e.g. source_file_id",
    )

    data_points: Mapped[list["MetricData"]] = relationship(
        "MetricData",
        back_populates="metric",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Metric id={self.id} name={self.name!r} unit={self.unit!r}>"


class MetricData(Base, TimestampMixin):
    __tablename__ = "metric_data"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    metric_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("metrics.id", ondelete="CASCADE"),
        nullable=False,
    )
    region_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("regions.id", ondelete="SET NULL"),
        nullable=True,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    value: Mapped[float] = mapped_column(Numeric(asdecimal=False), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=MetricDataStatus.PUBLIC,
        server_default=MetricDataStatus.PUBLIC,
        comment="public | private | draft",
    )
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        nullable=True,
    )

    metric: Mapped["Metric"] = relationship("Metric", back_populates="data_points")
    region: Mapped["Region | None"] = relationship("Region")

    __table_args__ = (
        Index("ix_metric_data_metric_id", "metric_id"),
        Index("ix_metric_data_region_id", "region_id"),
        Index("ix_metric_data_metric_region_date", "metric_id", "region_id", "date"),
        CheckConstraint("status IN ('public', 'private', 'draft')", name="ck_metric_data_status"),
    )
