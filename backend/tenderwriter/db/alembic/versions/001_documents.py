"""Document and chunk tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates:
- document (descriptive JSON metadata + raw payload)
- document_chunk (ordered slices, cascade-deleted with their document)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create document tables."""
    op.create_table(
        "document",
        sa.Column("document_id", sa.Uuid(), primary_key=True),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("payload", sa.LargeBinary(), nullable=False),
    )
    op.create_index("idx_document_category", "document", ["category", "uploaded_at"])

    op.create_table(
        "document_chunk",
        sa.Column("chunk_id", sa.Text(), primary_key=True),
        sa.Column("document_id", sa.Uuid(), nullable=False),
        sa.Column("index", sa.Integer(), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(
            ["document_id"], ["document.document_id"], ondelete="CASCADE"
        ),
    )
    op.create_index("idx_chunk_document_index", "document_chunk", ["document_id", "index"])


def downgrade() -> None:
    """Drop document tables."""
    op.drop_index("idx_chunk_document_index", table_name="document_chunk")
    op.drop_table("document_chunk")
    op.drop_index("idx_document_category", table_name="document")
    op.drop_table("document")
