"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2025-03-02 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timestamp", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_records_timestamp", "records", ["timestamp"])
    op.create_index("ix_records_type", "records", ["type"])


def downgrade():
    op.drop_index("ix_records_type", table_name="records")
    op.drop_index("ix_records_timestamp", table_name="records")
    op.drop_table("records")
