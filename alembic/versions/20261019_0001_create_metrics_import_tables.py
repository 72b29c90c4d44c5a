"""create regions, metrics, metric_data and files tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "regions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.Text(), nullable=False, comment="Short canonical code, e.g. IDF"),
        sa.Column("name", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("uq_regions_code", "regions", ["code"], unique=True)

    op.create_table(
        "metrics",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.Text(), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Provenance, e.g. source_file_id",
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_id"], ["metrics.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "metric_data",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("metric_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("region_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("value", sa.Numeric(), nullable=False),
        sa.Column(
            "status",
            sa.String(length=16),
            server_default="public",
            nullable=False,
            comment="public | private | draft",
        ),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('public', 'private', 'draft')",
            name="ck_metric_data_status",
        ),
        sa.ForeignKeyConstraint(["metric_id"], ["metrics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["region_id"], ["regions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_metric_data_metric_id", "metric_data", ["metric_id"], unique=False)
    op.create_index("ix_metric_data_region_id", "metric_data", ["region_id"], unique=False)
    op.create_index(
        "ix_metric_data_metric_region_date",
        "metric_data",
        ["metric_id", "region_id", "date"],
        unique=False,
    )

    op.create_table(
        "files",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("path", sa.Text(), nullable=False, comment="Object path inside the import bucket"),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column(
            "processing_status",
            sa.String(length=16),
            server_default="pending",
            nullable=False,
        ),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Diagnostic bag: counts, error messages",
        ),
        sa.CheckConstraint(
            "processing_status IN ('pending', 'processing', 'completed', 'error')",
            name="ck_files_processing_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_files_processing_status", "files", ["processing_status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_files_processing_status", table_name="files")
    op.drop_table("files")
    op.drop_index("ix_metric_data_metric_region_date", table_name="metric_data")
    op.drop_index("ix_metric_data_region_id", table_name="metric_data")
    op.drop_index("ix_metric_data_metric_id", table_name="metric_data")
    op.drop_table("metric_data")
    op.drop_table("metrics")
    op.drop_index("uq_regions_code", table_name="regions")
    op.drop_table("regions")
