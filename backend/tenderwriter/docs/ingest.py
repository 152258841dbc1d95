"""Document ingestion - classify, extract, persist and chunk uploads."""

import hashlib
import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from backend.tenderwriter.analysis.cache import SummaryCache
from backend.tenderwriter.db.repositories import DocumentRepository
from backend.tenderwriter.docs.chunker import chunk_text
from backend.tenderwriter.docs.extract import classify, extract
from backend.tenderwriter.errors import (
    DocumentNotFoundError,
    EmptyDocumentError,
    PayloadTooLargeError,
)
from backend.tenderwriter.index.retrieval import RetrievalIndex
from backend.tenderwriter.models.documents import (
    Chunk,
    Document,
    DocumentCategory,
    FilePart,
    TextPart,
    binary_placeholder,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class DocumentStore:
    """Owns the document lifecycle: ingest, chunk, list and delete.

    Deleting a document cascades to its chunks (repository), its cached
    summary (cache) and its vectors (index).
    """

    def __init__(
        self,
        repository: DocumentRepository,
        *,
        max_bytes: int = DEFAULT_MAX_BYTES,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        cache: SummaryCache | None = None,
        index: RetrievalIndex | None = None,
    ) -> None:
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self._repo = repository
        self._max_bytes = max_bytes
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._cache = cache
        self._index = index

    @property
    def repository(self) -> DocumentRepository:
        return self._repo

    async def ingest(
        self,
        data: bytes,
        filename: str,
        mime_type: str | None,
        category: DocumentCategory,
    ) -> Document:
        """Validate, extract and persist one upload.

        Args:
            data: Raw file bytes
            filename: Declared file name (used as the document title)
            mime_type: Declared MIME type, may be None
            category: requirements or capabilities

        Returns:
            The stored Document

        Raises:
            PayloadTooLargeError: If data exceeds the byte ceiling
            UnsupportedFormatError: If the file type is not accepted
            EmptyDocumentError: If a text document has no extractable text
        """
        if len(data) > self._max_bytes:
            raise PayloadTooLargeError(
                f"File too large: {len(data)} bytes (limit {self._max_bytes})"
            )

        file_type, effective_mime = classify(filename, mime_type)
        extraction = extract(file_type, data)
        text = extraction.text

        if text.strip():
            part: TextPart | FilePart = TextPart(text=text)
            content = text
        elif file_type in ("pdf", "image"):
            # Scanned PDFs and images go to the model as inline binary
            part = FilePart(data=data, mime_type=effective_mime, filename=filename)
            content = binary_placeholder(effective_mime)
        else:
            raise EmptyDocumentError(f"No text could be extracted from {filename}")

        metadata = dict(extraction.metadata)
        metadata["content_sha256"] = hashlib.sha256(data).hexdigest()

        document = Document(
            id=uuid4(),
            title=filename,
            category=category,
            file_type=file_type,
            mime_type=effective_mime,
            part=part,
            content=content,
            size_bytes=len(data),
            uploaded_at=datetime.now(timezone.utc),
            metadata=metadata,
        )
        await self._repo.put(document)

        logger.info(
            f"Ingested {file_type} document {document.id} ({category}, {len(data)} bytes, "
            f"binary={document.is_binary})"
        )
        return document

    async def chunk(self, document: Document) -> list[Chunk]:
        """Split a document into chunks and replace any stored chunks.

        Binary documents produce no chunks.
        """
        if document.is_binary:
            await self._repo.put_chunks(document.id, [])
            return []

        pieces = chunk_text(
            document.content, max_chars=self._chunk_size, overlap=self._chunk_overlap
        )
        chunks = [
            Chunk(
                chunk_id=Chunk.make_id(document.id, i),
                document_id=document.id,
                index=i,
                total=len(pieces),
                text=piece,
                category=document.category,
                title=document.title,
            )
            for i, piece in enumerate(pieces)
        ]
        await self._repo.put_chunks(document.id, chunks)
        return chunks

    async def get(self, document_id: UUID) -> Document | None:
        return await self._repo.get(document_id)

    async def require(self, document_id: UUID) -> Document:
        """Get a document or raise DocumentNotFoundError."""
        document = await self._repo.get(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    async def list_documents(
        self, category: DocumentCategory | None = None
    ) -> list[Document]:
        return await self._repo.list_documents(category)

    async def delete(self, document_id: UUID) -> bool:
        """Delete a document and everything derived from it. Idempotent.

        Returns:
            False if the document was already absent
        """
        existed = await self._repo.delete(document_id)
        if self._cache is not None:
            await self._cache.invalidate(document_id)
        if self._index is not None:
            await self._index.delete_document(document_id)
        if existed:
            logger.info(f"Deleted document {document_id}")
        return existed

    async def clear(self) -> None:
        """Remove every document, chunk, summary and vector."""
        await self._repo.clear()
        if self._cache is not None:
            await self._cache.clear()
        if self._index is not None:
            await self._index.clear()
        logger.info("Cleared all documents")

    async def rechunk_all(self) -> list[Chunk]:
        """Rebuild chunks for every stored document.

        Cached summaries are invalidated so the next generation re-analyzes.
        """
        all_chunks: list[Chunk] = []
        for document in await self._repo.list_documents():
            all_chunks.extend(await self.chunk(document))
            if self._cache is not None:
                await self._cache.invalidate(document.id)
        return all_chunks
