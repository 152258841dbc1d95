"""SQL implementation of the document repository."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from backend.tenderwriter.db.models import Base, ChunkRow, DocumentRow
from backend.tenderwriter.db.records import document_from_record, document_to_record
from backend.tenderwriter.models.documents import Chunk, Document, DocumentCategory


class SqlDocumentRepository:
    """SQL implementation of DocumentRepository.

    Each call opens its own session so the repository can be shared across
    concurrent requests.
    """

    def __init__(
        self, engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self._engine = engine
        self._sessions = session_factory

    async def init(self) -> None:
        """Create tables if missing. Production deployments run Alembic instead."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def get(self, document_id: UUID) -> Document | None:
        """Get document by ID."""
        async with self._sessions() as session:
            row = await session.get(DocumentRow, document_id)
            if row is None:
                return None
            return document_from_record(row.meta, row.payload)

    async def put(self, document: Document) -> None:
        """Insert or replace a document. Existing chunks are kept."""
        meta, payload = document_to_record(document)
        async with self._sessions() as session:
            row = await session.get(DocumentRow, document.id)
            if row is None:
                session.add(
                    DocumentRow(
                        document_id=document.id,
                        category=document.category,
                        title=document.title,
                        uploaded_at=document.uploaded_at,
                        meta=meta,
                        payload=payload,
                    )
                )
            else:
                row.category = document.category
                row.title = document.title
                row.uploaded_at = document.uploaded_at
                row.meta = meta
                row.payload = payload
            await session.commit()

    async def delete(self, document_id: UUID) -> bool:
        """Delete a document and its chunks."""
        async with self._sessions() as session:
            # Bulk deletes so the chunks relationship is never lazy-loaded
            await session.execute(delete(ChunkRow).where(ChunkRow.document_id == document_id))
            result = await session.execute(
                delete(DocumentRow).where(DocumentRow.document_id == document_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def clear(self) -> None:
        """Delete all rows."""
        async with self._sessions() as session:
            await session.execute(delete(ChunkRow))
            await session.execute(delete(DocumentRow))
            await session.commit()

    async def list_documents(self, category: DocumentCategory | None = None) -> list[Document]:
        """List documents, oldest first."""
        stmt = select(DocumentRow).order_by(DocumentRow.uploaded_at)
        if category is not None:
            stmt = stmt.where(DocumentRow.category == category)
        async with self._sessions() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [document_from_record(row.meta, row.payload) for row in rows]

    async def put_chunks(self, document_id: UUID, chunks: list[Chunk]) -> None:
        """Replace all chunks for a document (delete-then-recreate)."""
        async with self._sessions() as session:
            await session.execute(delete(ChunkRow).where(ChunkRow.document_id == document_id))
            for chunk in chunks:
                session.add(
                    ChunkRow(
                        chunk_id=chunk.chunk_id,
                        document_id=document_id,
                        index=chunk.index,
                        total=chunk.total,
                        text=chunk.text,
                        category=chunk.category,
                        title=chunk.title,
                    )
                )
            await session.commit()

    async def list_chunks(self, document_id: UUID) -> list[Chunk]:
        """List chunks for a document in index order."""
        stmt = (
            select(ChunkRow).where(ChunkRow.document_id == document_id).order_by(ChunkRow.index)
        )
        async with self._sessions() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [
                Chunk(
                    chunk_id=row.chunk_id,
                    document_id=row.document_id,
                    index=row.index,
                    total=row.total,
                    text=row.text,
                    category=row.category,
                    title=row.title,
                )
                for row in rows
            ]
