"""Tests for the embedding-backed retrieval index."""

from uuid import UUID, uuid4

import pytest

from backend.tenderwriter.db.inmemory import InMemoryDocumentRepository
from backend.tenderwriter.index.embeddings import DeterministicEmbeddingClient
from backend.tenderwriter.index.retrieval import RetrievalIndex
from backend.tenderwriter.index.vector_store import InMemoryVectorStore
from backend.tenderwriter.models.documents import Chunk
from tests.fakes import FlakyEmbeddingClient, WrongDimensionEmbeddingClient, make_document

DIM = 64


def _chunk(document_id: UUID, index: int, text: str, category: str = "requirements") -> Chunk:
    return Chunk(
        chunk_id=Chunk.make_id(document_id, index),
        document_id=document_id,
        index=index,
        total=3,
        text=text,
        category=category,
        title="doc.txt",
    )


def _index(embedder=None, batch_size: int = 2) -> RetrievalIndex:
    return RetrievalIndex(
        embedder or DeterministicEmbeddingClient(DIM),
        InMemoryVectorStore(),
        dimension=DIM,
        batch_size=batch_size,
    )


@pytest.mark.asyncio
async def test_deterministic_embeddings_are_stable_and_normalized() -> None:
    embedder = DeterministicEmbeddingClient(DIM)

    first = await embedder.embed("We provide 24/7 SRE coverage")
    second = await embedder.embed("We provide 24/7 SRE coverage")

    assert first == second
    assert len(first) == DIM
    assert sum(v * v for v in first) == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_upsert_indexes_every_chunk_across_batches() -> None:
    index = _index(batch_size=2)
    doc_id = uuid4()
    chunks = [_chunk(doc_id, i, f"requirement text {i}") for i in range(5)]

    report = await index.upsert(chunks)

    assert report.indexed == 5
    assert report.failed == []
    assert await index.count() == 5


@pytest.mark.asyncio
async def test_embedding_failure_skips_only_that_chunk() -> None:
    index = _index(FlakyEmbeddingClient(dimension=DIM))
    doc_id = uuid4()
    chunks = [
        _chunk(doc_id, 0, "good text one"),
        _chunk(doc_id, 1, "POISON text"),
        _chunk(doc_id, 2, "good text two"),
    ]

    report = await index.upsert(chunks)

    assert report.indexed == 2
    assert [f.chunk_id for f in report.failed] == [chunks[1].chunk_id]
    assert report.failed[0].reason.startswith("embedding_failed")
    assert await index.count() == 2


@pytest.mark.asyncio
async def test_wrong_dimension_is_reported_not_stored() -> None:
    index = _index(WrongDimensionEmbeddingClient(DIM))
    chunks = [_chunk(uuid4(), 0, "any text")]

    report = await index.upsert(chunks)

    assert report.indexed == 0
    assert report.failed[0].reason.startswith("dimension_mismatch")
    assert await index.count() == 0


@pytest.mark.asyncio
async def test_query_returns_best_match_first_with_metadata() -> None:
    index = _index()
    doc_id = uuid4()
    await index.upsert(
        [
            _chunk(doc_id, 0, "The supplier must support 99.9% uptime"),
            _chunk(doc_id, 1, "Invoices are paid within thirty days"),
            _chunk(doc_id, 2, "Office opening hours and parking"),
        ]
    )

    matches = await index.query("uptime support", top_k=2)

    assert len(matches) == 2
    assert matches[0].chunk.text == "The supplier must support 99.9% uptime"
    assert matches[0].chunk.document_id == doc_id
    assert matches[0].chunk.index == 0
    assert matches[0].chunk.total == 3
    assert matches[0].score >= matches[1].score


@pytest.mark.asyncio
async def test_query_filters_by_category() -> None:
    index = _index()
    await index.upsert(
        [
            _chunk(uuid4(), 0, "uptime requirement", category="requirements"),
            _chunk(uuid4(), 0, "uptime capability", category="capabilities"),
        ]
    )

    matches = await index.query("uptime", top_k=5, flt={"category": "capabilities"})

    assert [m.chunk.category for m in matches] == ["capabilities"]


@pytest.mark.asyncio
async def test_delete_document_removes_only_its_vectors() -> None:
    index = _index()
    keep, drop = uuid4(), uuid4()
    await index.upsert([_chunk(keep, 0, "keep me"), _chunk(drop, 0, "drop"), _chunk(drop, 1, "x")])

    removed = await index.delete_document(drop)

    assert removed == 2
    assert await index.count() == 1


@pytest.mark.asyncio
async def test_reindex_rebuilds_from_repository() -> None:
    repo = InMemoryDocumentRepository()
    doc = make_document("stored text")
    await repo.put(doc)
    await repo.put_chunks(doc.id, [_chunk(doc.id, 0, "stored chunk")])
    index = _index()
    await index.upsert([_chunk(uuid4(), 0, "stale vector")])

    report = await index.reindex(repo)

    assert report.indexed == 1
    assert await index.count() == 1
    matches = await index.query("stored chunk", top_k=1)
    assert matches[0].chunk.document_id == doc.id


def test_batch_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        RetrievalIndex(DeterministicEmbeddingClient(DIM), InMemoryVectorStore(), batch_size=0)
