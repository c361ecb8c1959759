"""Create record_items and blocks tables

Revision ID: 20261017_000002
Revises: 20261017_000001
Create Date: 2026-10-17

Clinical records and the per-patient hash-chained ledger.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261017_000002"
down_revision: Union[str, None] = "20261017_000001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "record_items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("patient_id", sa.String(36), nullable=False),
        sa.Column("author_id", sa.String(36), nullable=False),
        sa.Column("author_name", sa.String(200), nullable=False),
        sa.Column(
            "type",
            sa.Enum("report", "update", name="record_type", create_constraint=True),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("file_id", sa.String(255), nullable=True),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["patient_id"],
            ["users.id"],
            name="fk_record_items_patient_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["author_id"],
            ["users.id"],
            name="fk_record_items_author_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_record_items_patient_id", "record_items", ["patient_id"])
    op.create_index("ix_record_items_created_at", "record_items", ["created_at"])

    op.create_table(
        "blocks",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("patient_id", sa.String(36), nullable=False),
        sa.Column("index", sa.Integer(), nullable=False),
        sa.Column("prev_hash", sa.String(64), nullable=False),
        sa.Column("hash", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column(
            "payload_type",
            sa.Enum(
                "genesis", "report", "update", "access-granted", "access-revoked",
                name="payload_type",
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("payload_ref", sa.String(255), nullable=True),
        sa.Column("author_id", sa.String(36), nullable=False),
        sa.Column("author_name", sa.String(200), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("patient_id", "index", name="uq_blocks_patient_index"),
    )
    op.create_index("ix_blocks_patient_id", "blocks", ["patient_id"])
    op.create_index("ix_blocks_hash", "blocks", ["hash"])


def downgrade() -> None:
    op.drop_index("ix_blocks_hash", table_name="blocks")
    op.drop_index("ix_blocks_patient_id", table_name="blocks")
    op.drop_table("blocks")
    op.drop_index("ix_record_items_created_at", table_name="record_items")
    op.drop_index("ix_record_items_patient_id", table_name="record_items")
    op.drop_table("record_items")
