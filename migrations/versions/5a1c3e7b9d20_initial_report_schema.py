"""initial report schema

Revision ID: 5a1c3e7b9d20
Revises:
Create Date: 2026-10-17 09:12:41.508311

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5a1c3e7b9d20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _report_columns() -> list[sa.Column]:
    return [
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("additional_info", sa.Text(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reported_count", sa.Integer(), nullable=False),
        sa.Column("image_path", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create report, quota, stats and audit tables."""
    op.create_table(
        "live_report",
        sa.Column("state", sa.String(length=16), nullable=False),
        sa.Column("address_key", sa.String(length=200), nullable=False),
        *_report_columns(),
        sa.PrimaryKeyConstraint("state", "address_key"),
    )
    op.create_index("ix_live_report_added_at", "live_report", ["added_at"])

    op.create_table(
        "archived_report",
        sa.Column("address_key", sa.String(length=200), nullable=False),
        sa.Column("source_state", sa.String(length=16), nullable=True),
        *_report_columns(),
        sa.PrimaryKeyConstraint("address_key"),
    )
    op.create_index("ix_archived_report_added_at", "archived_report", ["added_at"])

    op.create_table(
        "rate_limit_counter",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("bucket", sa.String(length=32), nullable=False),
        sa.Column("client_key", sa.String(length=64), nullable=False),
        sa.Column("window_date", sa.Date(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rate_limit_counter_expires_at", "rate_limit_counter", ["expires_at"])

    op.create_table(
        "report_stats",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("today", sa.Integer(), nullable=False),
        sa.Column("this_week", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "verification_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.String(length=200), nullable=False),
        sa.Column("verifier_uid", sa.String(length=128), nullable=False),
        sa.Column("report_address", sa.Text(), nullable=False),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_verification_log_report_id", "verification_log", ["report_id"])

    op.create_table(
        "denial_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.String(length=200), nullable=False),
        sa.Column("verifier_uid", sa.String(length=128), nullable=False),
        sa.Column("report_address", sa.Text(), nullable=False),
        sa.Column("image_path", sa.Text(), nullable=True),
        sa.Column("image_name", sa.Text(), nullable=True),
        sa.Column("denied_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_denial_log_report_id", "denial_log", ["report_id"])

    op.create_table(
        "flagged_submission",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("added_at", sa.String(length=32), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("additional_info", sa.Text(), nullable=False),
        sa.Column("logged_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop all report tables."""
    op.drop_table("flagged_submission")
    op.drop_index("ix_denial_log_report_id", table_name="denial_log")
    op.drop_table("denial_log")
    op.drop_index("ix_verification_log_report_id", table_name="verification_log")
    op.drop_table("verification_log")
    op.drop_table("report_stats")
    op.drop_index("ix_rate_limit_counter_expires_at", table_name="rate_limit_counter")
    op.drop_table("rate_limit_counter")
    op.drop_index("ix_archived_report_added_at", table_name="archived_report")
    op.drop_table("archived_report")
    op.drop_index("ix_live_report_added_at", table_name="live_report")
    op.drop_table("live_report")
