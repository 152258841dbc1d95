"""Repository protocol interface for document storage.

Every component that needs documents depends on this port; the in-memory,
local-filesystem and SQL backends are interchangeable implementations.
"""

from typing import Protocol
from uuid import UUID

from backend.tenderwriter.models.documents import Chunk, Document, DocumentCategory


class DocumentRepository(Protocol):
    """Repository for documents and their chunks."""

    async def init(self) -> None:
        """Prepare backing storage (create directories/tables). Idempotent."""
        ...

    async def get(self, document_id: UUID) -> Document | None:
        """Get document by ID.

        Args:
            document_id: Document ID

        Returns:
            Document or None if not found
        """
        ...

    async def put(self, document: Document) -> None:
        """Store a document (insert or replace).

        Args:
            document: Document to store
        """
        ...

    async def delete(self, document_id: UUID) -> bool:
        """Delete a document and its chunks.

        Args:
            document_id: Document ID

        Returns:
            True if the document existed, False otherwise
        """
        ...

    async def clear(self) -> None:
        """Delete every document and chunk."""
        ...

    async def list_documents(self, category: DocumentCategory | None = None) -> list[Document]:
        """List documents, oldest first.

        Args:
            category: Optional category filter

        Returns:
            Documents ordered by upload time
        """
        ...

    async def put_chunks(self, document_id: UUID, chunks: list[Chunk]) -> None:
        """Replace all chunks for a document.

        Args:
            document_id: Owning document ID
            chunks: New chunks in index order
        """
        ...

    async def list_chunks(self, document_id: UUID) -> list[Chunk]:
        """List chunks for a document in index order.

        Args:
            document_id: Owning document ID

        Returns:
            Chunks ordered by index (empty if none)
        """
        ...
