"""Tests for document ingestion and lifecycle."""

from uuid import uuid4

import pytest

from backend.tenderwriter.analysis.analyzer import DocumentAnalyzer
from backend.tenderwriter.analysis.cache import SummaryCache
from backend.tenderwriter.db.inmemory import InMemoryDocumentRepository
from backend.tenderwriter.docs.ingest import DocumentStore
from backend.tenderwriter.errors import (
    DocumentNotFoundError,
    EmptyDocumentError,
    PayloadTooLargeError,
    UnsupportedFormatError,
)
from backend.tenderwriter.index.embeddings import DeterministicEmbeddingClient
from backend.tenderwriter.index.retrieval import RetrievalIndex
from backend.tenderwriter.index.vector_store import InMemoryVectorStore
from backend.tenderwriter.llm.retry import RetryPolicy
from backend.tenderwriter.models.analysis import AnalysisSummary
from backend.tenderwriter.models.documents import FilePart, TextPart
from tests.fakes import RecordingCompletionClient, SleepRecorder


@pytest.fixture
def repo() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def cache() -> SummaryCache:
    return SummaryCache()


@pytest.fixture
def index() -> RetrievalIndex:
    return RetrievalIndex(
        DeterministicEmbeddingClient(64), InMemoryVectorStore(), dimension=64, batch_size=2
    )


@pytest.fixture
def store(repo, cache, index) -> DocumentStore:
    return DocumentStore(
        repo, max_bytes=1024, chunk_size=100, chunk_overlap=20, cache=cache, index=index
    )


@pytest.mark.asyncio
async def test_ingest_text_document(store: DocumentStore, repo) -> None:
    doc = await store.ingest(b"Must support 99.9% uptime", "rfp.txt", "text/plain", "requirements")

    assert isinstance(doc.part, TextPart)
    assert doc.content == "Must support 99.9% uptime"
    assert doc.title == "rfp.txt"
    assert doc.category == "requirements"
    assert doc.size_bytes == 25
    assert len(doc.metadata["content_sha256"]) == 64
    assert await repo.get(doc.id) == doc


@pytest.mark.asyncio
async def test_ingest_rejects_executable_and_stores_nothing(store: DocumentStore) -> None:
    with pytest.raises(UnsupportedFormatError):
        await store.ingest(b"MZ\x90\x00", "setup.exe", "application/octet-stream", "requirements")

    assert await store.list_documents() == []


@pytest.mark.asyncio
async def test_ingest_rejects_oversized_upload(store: DocumentStore) -> None:
    with pytest.raises(PayloadTooLargeError):
        await store.ingest(b"x" * 1025, "big.txt", "text/plain", "requirements")

    assert await store.list_documents() == []


@pytest.mark.asyncio
async def test_ingest_rejects_empty_text_document(store: DocumentStore) -> None:
    with pytest.raises(EmptyDocumentError):
        await store.ingest(b"   \n\t ", "blank.txt", "text/plain", "capabilities")


@pytest.mark.asyncio
async def test_image_is_stored_as_binary(store: DocumentStore) -> None:
    data = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16

    doc = await store.ingest(data, "diagram.png", "image/png", "capabilities")

    assert doc.is_binary
    assert isinstance(doc.part, FilePart)
    assert doc.part.data == data
    assert doc.part.mime_type == "image/png"
    assert doc.content == "[binary document: image/png]"
    assert await store.chunk(doc) == []


@pytest.mark.asyncio
async def test_chunk_ids_are_derived_from_document(store: DocumentStore, repo) -> None:
    text = " ".join(f"Sentence number {i} describes a requirement." for i in range(20))
    doc = await store.ingest(text.encode(), "rfp.txt", "text/plain", "requirements")

    chunks = await store.chunk(doc)

    assert len(chunks) > 1
    assert [c.chunk_id for c in chunks] == [f"{doc.id}-chunk-{i}" for i in range(len(chunks))]
    assert all(c.total == len(chunks) for c in chunks)
    assert all(c.category == "requirements" and c.title == "rfp.txt" for c in chunks)
    assert await repo.list_chunks(doc.id) == chunks


@pytest.mark.asyncio
async def test_list_filters_by_category(store: DocumentStore) -> None:
    req = await store.ingest(b"Requirement text", "rfp.txt", "text/plain", "requirements")
    cap = await store.ingest(b"Capability text", "profile.txt", "text/plain", "capabilities")

    assert [d.id for d in await store.list_documents("requirements")] == [req.id]
    assert [d.id for d in await store.list_documents("capabilities")] == [cap.id]
    assert [d.id for d in await store.list_documents()] == [req.id, cap.id]


@pytest.mark.asyncio
async def test_delete_cascades_to_chunks_cache_and_vectors(
    store: DocumentStore, repo, cache: SummaryCache, index: RetrievalIndex
) -> None:
    doc = await store.ingest(b"We provide 24/7 SRE coverage", "p.txt", "text/plain", "capabilities")
    chunks = await store.chunk(doc)
    await index.upsert(chunks)
    await cache.set(
        AnalysisSummary(document_id=doc.id, title=doc.title, role="capabilities", text="summary")
    )

    assert await store.delete(doc.id) is True

    assert await store.get(doc.id) is None
    assert await repo.list_chunks(doc.id) == []
    assert not await cache.contains(doc.id)
    assert await index.count() == 0


@pytest.mark.asyncio
async def test_require_raises_for_unknown_document(store: DocumentStore) -> None:
    doc = await store.ingest(b"Must support 99.9% uptime", "rfp.txt", "text/plain", "requirements")

    assert await store.require(doc.id) == doc
    with pytest.raises(DocumentNotFoundError):
        await store.require(uuid4())


@pytest.mark.asyncio
async def test_reuploaded_document_is_analyzed_again(
    store: DocumentStore, cache: SummaryCache
) -> None:
    completion = RecordingCompletionClient()
    analyzer = DocumentAnalyzer(
        completion, cache, RetryPolicy(max_retries=0, base_delay_s=0.01, sleep=SleepRecorder())
    )
    data = b"Must support 99.9% uptime"

    first = await store.ingest(data, "rfp.txt", "text/plain", "requirements")
    await analyzer.analyze(first, is_requirements=True)
    await store.delete(first.id)
    second = await store.ingest(data, "rfp.txt", "text/plain", "requirements")
    await analyzer.analyze(second, is_requirements=True)

    assert second.id != first.id
    assert len(completion.calls) == 2


@pytest.mark.asyncio
async def test_delete_is_idempotent(store: DocumentStore) -> None:
    assert await store.delete(uuid4()) is False


@pytest.mark.asyncio
async def test_clear_removes_everything(store: DocumentStore, index: RetrievalIndex) -> None:
    doc = await store.ingest(b"Some requirement", "rfp.txt", "text/plain", "requirements")
    await index.upsert(await store.chunk(doc))

    await store.clear()

    assert await store.list_documents() == []
    assert await index.count() == 0


def test_overlap_must_be_smaller_than_chunk_size(repo) -> None:
    with pytest.raises(ValueError):
        DocumentStore(repo, chunk_size=100, chunk_overlap=100)
