"""In-memory implementation of the document repository."""

from uuid import UUID

from backend.tenderwriter.models.documents import Chunk, Document, DocumentCategory


class InMemoryDocumentRepository:
    """In-memory implementation of DocumentRepository."""

    def __init__(self) -> None:
        self._documents: dict[UUID, Document] = {}
        self._chunks: dict[UUID, list[Chunk]] = {}

    async def init(self) -> None:
        """Nothing to prepare."""
        return None

    async def get(self, document_id: UUID) -> Document | None:
        """Get document by ID."""
        return self._documents.get(document_id)

    async def put(self, document: Document) -> None:
        """Store a document."""
        self._documents[document.id] = document

    async def delete(self, document_id: UUID) -> bool:
        """Delete a document and cascade to its chunks."""
        self._chunks.pop(document_id, None)
        return self._documents.pop(document_id, None) is not None

    async def clear(self) -> None:
        """Delete everything."""
        self._documents.clear()
        self._chunks.clear()

    async def list_documents(self, category: DocumentCategory | None = None) -> list[Document]:
        """List documents, oldest first."""
        docs = [
            doc
            for doc in self._documents.values()
            if category is None or doc.category == category
        ]
        return sorted(docs, key=lambda d: d.uploaded_at)

    async def put_chunks(self, document_id: UUID, chunks: list[Chunk]) -> None:
        """Replace all chunks for a document."""
        self._chunks[document_id] = sorted(chunks, key=lambda c: c.index)

    async def list_chunks(self, document_id: UUID) -> list[Chunk]:
        """List chunks for a document."""
        return list(self._chunks.get(document_id, []))
