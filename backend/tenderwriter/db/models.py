"""SQLAlchemy ORM models for documents and chunks."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, LargeBinary, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class DocumentRow(Base):
    """Document table - descriptive fields as JSON plus the raw payload."""

    __tablename__ = "document"
    __table_args__ = (Index("idx_document_category", "category", "uploaded_at"),)

    document_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False)
    payload: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    # Relationships
    chunks: Mapped[list["ChunkRow"]] = relationship(
        "ChunkRow",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="ChunkRow.index",
    )


class ChunkRow(Base):
    """Document chunk table - ordered text slices of a document."""

    __tablename__ = "document_chunk"
    __table_args__ = (Index("idx_chunk_document_index", "document_id", "index"),)

    chunk_id: Mapped[str] = mapped_column(Text, primary_key=True)
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("document.document_id", ondelete="CASCADE"), nullable=False
    )
    index: Mapped[int] = mapped_column(Integer, nullable=False)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    document: Mapped["DocumentRow"] = relationship("DocumentRow", back_populates="chunks")
