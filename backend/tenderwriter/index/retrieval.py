"""Retrieval index - embeds chunks into the vector store and queries it."""

import logging
from typing import Any
from uuid import UUID

from backend.tenderwriter.db.repositories import DocumentRepository
from backend.tenderwriter.errors import DimensionMismatchError
from backend.tenderwriter.index.embeddings import EmbeddingClient
from backend.tenderwriter.index.vector_store import VectorRecord, VectorStore
from backend.tenderwriter.models.documents import Chunk, ChunkMatch, IndexFailure, IndexReport
from backend.tenderwriter.utils.metrics import metrics

logger = logging.getLogger(__name__)


class RetrievalIndex:
    """Embedding-backed chunk index.

    A chunk whose embedding fails is skipped and reported; the rest of the
    batch is still indexed.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStore,
        *,
        index_name: str = "tender-documents",
        dimension: int = 768,
        batch_size: int = 5,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._embedder = embedder
        self._store = store
        self._index_name = index_name
        self._dimension = dimension
        self._batch_size = batch_size

    async def ensure_ready(self) -> None:
        """Create the underlying index if needed (idempotent)."""
        await self._store.ensure_index(self._index_name, self._dimension)

    async def upsert(self, chunks: list[Chunk]) -> IndexReport:
        """Embed and store chunks in fixed-size groups.

        Args:
            chunks: Chunks to index (any mix of documents)

        Returns:
            IndexReport with indexed count and per-chunk failures
        """
        await self.ensure_ready()
        report = IndexReport()

        pending: list[VectorRecord] = []
        for chunk in chunks:
            record = await self._embed_chunk(chunk, report)
            if record is not None:
                pending.append(record)

        for start in range(0, len(pending), self._batch_size):
            batch = pending[start : start + self._batch_size]
            try:
                await self._store.upsert(batch)
            except DimensionMismatchError as e:
                for record in batch:
                    self._record_failure(report, record.id, "dimension_mismatch", str(e))
                continue
            report.indexed += len(batch)
            metrics.inc_indexed(len(batch))

        logger.info(
            f"Indexed {report.indexed}/{len(chunks)} chunks ({len(report.failed)} failed)"
        )
        return report

    async def _embed_chunk(self, chunk: Chunk, report: IndexReport) -> VectorRecord | None:
        try:
            values = await self._embedder.embed(chunk.text)
        except Exception as e:
            self._record_failure(
                report, chunk.chunk_id, "embedding_failed", f"{type(e).__name__}: {e}"
            )
            return None

        if len(values) != self._dimension:
            self._record_failure(
                report,
                chunk.chunk_id,
                "dimension_mismatch",
                f"expected {self._dimension}, got {len(values)}",
            )
            return None

        return VectorRecord(id=chunk.chunk_id, values=values, metadata=self._metadata(chunk))

    def _record_failure(self, report: IndexReport, chunk_id: str, reason: str, detail: str) -> None:
        metrics.inc_embedding_failure(reason)
        logger.warning(f"Skipping chunk {chunk_id}: {reason} ({detail})")
        report.failed.append(IndexFailure(chunk_id=chunk_id, reason=f"{reason}: {detail}"))

    @staticmethod
    def _metadata(chunk: Chunk) -> dict[str, Any]:
        return {
            "document_id": str(chunk.document_id),
            "chunk_index": chunk.index,
            "total_chunks": chunk.total,
            "category": chunk.category,
            "title": chunk.title,
            "text": chunk.text,
        }

    async def query(
        self, text: str, top_k: int = 5, flt: dict[str, Any] | None = None
    ) -> list[ChunkMatch]:
        """Find the chunks most similar to text.

        Args:
            text: Query text
            top_k: Maximum number of results
            flt: Optional metadata equality filter, e.g. {"category": "capabilities"}

        Returns:
            Matches ranked by descending cosine similarity
        """
        await self.ensure_ready()
        vector = await self._embedder.embed(text)
        hits = await self._store.query(vector, top_k, flt)
        return [
            ChunkMatch(
                chunk=Chunk(
                    chunk_id=hit.id,
                    document_id=UUID(hit.metadata["document_id"]),
                    index=hit.metadata["chunk_index"],
                    total=hit.metadata["total_chunks"],
                    text=hit.metadata["text"],
                    category=hit.metadata["category"],
                    title=hit.metadata["title"],
                ),
                score=hit.score,
            )
            for hit in hits
        ]

    async def delete_document(self, document_id: UUID) -> int:
        """Remove every vector belonging to a document."""
        await self.ensure_ready()
        return await self._store.delete({"document_id": str(document_id)})

    async def clear(self) -> None:
        await self.ensure_ready()
        await self._store.delete_all()

    async def count(self) -> int:
        return await self._store.count()

    async def reindex(self, repository: DocumentRepository) -> IndexReport:
        """Clear the index and re-upsert every stored chunk.

        Callers rechunk documents first when chunking settings changed.
        """
        await self.clear()
        chunks: list[Chunk] = []
        for document in await repository.list_documents():
            chunks.extend(await repository.list_chunks(document.id))
        return await self.upsert(chunks)
