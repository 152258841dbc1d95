"""Process-wide analysis summary cache keyed by document id."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from backend.tenderwriter.models.analysis import AnalysisSummary


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    """Cached summary with its insertion time.

    ttl_seconds=None means the entry never expires.
    """

    value: AnalysisSummary
    cached_at: datetime
    ttl_seconds: int | None

    def is_fresh(self, now: datetime) -> bool:
        """Check if cache entry is still valid."""
        if self.ttl_seconds is None:
            return True
        return (now - self.cached_at).total_seconds() < self.ttl_seconds


class SummaryCache:
    """At most one live summary per document id.

    Successful summaries live until invalidated. Error summaries expire
    after error_ttl_seconds so a transient outage is retried later.
    """

    def __init__(
        self,
        error_ttl_seconds: int = 300,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self._entries: dict[UUID, CacheEntry] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._generations: dict[UUID, int] = {}
        self._epoch = 0
        self._error_ttl = error_ttl_seconds
        self._now = now_fn or _utcnow

    def lock_for(self, document_id: UUID) -> asyncio.Lock:
        """Per-document lock used to single-flight concurrent analyses."""
        lock = self._locks.get(document_id)
        if lock is None:
            lock = self._locks[document_id] = asyncio.Lock()
        return lock

    async def get(self, document_id: UUID) -> AnalysisSummary | None:
        """Get cached summary if fresh, None otherwise."""
        entry = self._entries.get(document_id)
        if entry and entry.is_fresh(self._now()):
            return entry.value
        elif entry:
            # Expired - remove
            del self._entries[document_id]
        return None

    def token(self, document_id: UUID) -> tuple[int, int]:
        """Snapshot taken before an analysis starts; invalidation changes it."""
        return self._epoch, self._generations.get(document_id, 0)

    async def set(
        self, summary: AnalysisSummary, *, token: tuple[int, int] | None = None
    ) -> bool:
        """Store a summary, replacing any previous entry for the document.

        With a token, the summary is dropped if the document was invalidated
        after the token was taken.

        Returns:
            True if the summary was stored
        """
        if token is not None and token != self.token(summary.document_id):
            return False
        ttl = self._error_ttl if summary.is_error else None
        self._entries[summary.document_id] = CacheEntry(
            value=summary, cached_at=self._now(), ttl_seconds=ttl
        )
        return True

    async def contains(self, document_id: UUID) -> bool:
        return await self.get(document_id) is not None

    async def invalidate(self, document_id: UUID) -> None:
        self._entries.pop(document_id, None)
        self._generations[document_id] = self._generations.get(document_id, 0) + 1
        self._release_lock(document_id)

    async def clear(self) -> None:
        self._entries.clear()
        self._generations.clear()
        self._epoch += 1
        for document_id in list(self._locks):
            self._release_lock(document_id)

    def size(self) -> int:
        return len(self._entries)

    def _release_lock(self, document_id: UUID) -> None:
        # A held lock stays so waiters keep single-flighting on the same object
        lock = self._locks.get(document_id)
        if lock is not None and not lock.locked():
            del self._locks[document_id]
