"""Service wiring and FastAPI dependencies."""

import asyncio
import logging
from dataclasses import dataclass, field
from functools import lru_cache

from backend.tenderwriter.analysis.analyzer import DocumentAnalyzer
from backend.tenderwriter.analysis.cache import SummaryCache
from backend.tenderwriter.config import Settings, get_settings
from backend.tenderwriter.db.engine import (
    create_async_engine_from_settings,
    create_session_factory,
)
from backend.tenderwriter.db.inmemory import InMemoryDocumentRepository
from backend.tenderwriter.db.localfs import LocalFileDocumentRepository
from backend.tenderwriter.db.repositories import DocumentRepository
from backend.tenderwriter.db.sql_repositories import SqlDocumentRepository
from backend.tenderwriter.docs.ingest import DocumentStore
from backend.tenderwriter.index.embeddings import EmbeddingClient, get_embedding_client
from backend.tenderwriter.index.qa import DocumentQA
from backend.tenderwriter.index.retrieval import RetrievalIndex
from backend.tenderwriter.index.vector_store import InMemoryVectorStore, VectorStore
from backend.tenderwriter.llm.client import CompletionClient, get_completion_client
from backend.tenderwriter.llm.retry import RetryPolicy
from backend.tenderwriter.orchestration.pipeline import TenderOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """All long-lived components for one process."""

    settings: Settings
    repository: DocumentRepository
    cache: SummaryCache
    completion: CompletionClient
    embedder: EmbeddingClient
    vector_store: VectorStore
    index: RetrievalIndex
    retry_policy: RetryPolicy
    analyzer: DocumentAnalyzer
    store: DocumentStore
    orchestrator: TenderOrchestrator
    qa: DocumentQA
    _started: bool = field(default=False, repr=False)
    _start_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def start(self) -> None:
        """Prepare storage and the vector index. Idempotent.

        The vector store lives in memory, so an empty index over persisted
        documents is rebuilt from their stored chunks.
        """
        async with self._start_lock:
            if self._started:
                return
            await self.repository.init()
            await self.index.ensure_ready()
            if await self.index.count() == 0 and await self.repository.list_documents():
                report = await self.index.reindex(self.repository)
                logger.info(
                    f"Restored vector index: {report.indexed} chunk(s) indexed, "
                    f"{len(report.failed)} failed"
                )
            self._started = True
            logger.info(f"Services started (storage={self.settings.storage_backend})")


def build_repository(settings: Settings) -> DocumentRepository:
    """Select the repository backend from STORAGE_BACKEND."""
    if settings.storage_backend == "local":
        return LocalFileDocumentRepository(settings.local_storage_dir)
    if settings.storage_backend == "sql":
        engine = create_async_engine_from_settings(settings)
        return SqlDocumentRepository(engine, create_session_factory(engine))
    return InMemoryDocumentRepository()


def build_container(
    settings: Settings,
    *,
    repository: DocumentRepository | None = None,
    completion: CompletionClient | None = None,
    embedder: EmbeddingClient | None = None,
    vector_store: VectorStore | None = None,
    retry_policy: RetryPolicy | None = None,
) -> ServiceContainer:
    """Wire every component from settings; any piece can be overridden."""
    repository = repository or build_repository(settings)
    completion = completion or get_completion_client(settings)
    embedder = embedder or get_embedding_client(settings)
    vector_store = vector_store or InMemoryVectorStore()
    retry_policy = retry_policy or RetryPolicy.from_settings(
        settings.retry_max_retries, settings.retry_base_delay_ms
    )

    cache = SummaryCache(error_ttl_seconds=settings.error_summary_ttl_seconds)
    index = RetrievalIndex(
        embedder,
        vector_store,
        index_name=settings.index_name,
        dimension=settings.embedding_dimension,
        batch_size=settings.index_batch_size,
    )
    analyzer = DocumentAnalyzer(
        completion, cache, retry_policy, max_chars=settings.analysis_max_chars
    )
    store = DocumentStore(
        repository,
        max_bytes=settings.max_upload_bytes,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        cache=cache,
        index=index,
    )
    orchestrator = TenderOrchestrator(
        repository,
        analyzer,
        completion,
        index=index,
        retry_policy=retry_policy,
        top_k=settings.retrieval_top_k,
    )
    qa = DocumentQA(index, completion, retry_policy)

    return ServiceContainer(
        settings=settings,
        repository=repository,
        cache=cache,
        completion=completion,
        embedder=embedder,
        vector_store=vector_store,
        index=index,
        retry_policy=retry_policy,
        analyzer=analyzer,
        store=store,
        orchestrator=orchestrator,
        qa=qa,
    )


@lru_cache
def _default_container() -> ServiceContainer:
    return build_container(get_settings())


async def get_container() -> ServiceContainer:
    """FastAPI dependency returning the started process-wide container."""
    container = _default_container()
    await container.start()
    return container
