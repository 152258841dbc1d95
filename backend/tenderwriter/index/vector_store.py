"""Vector store - in-process cosine similarity search over numpy arrays."""

from dataclasses import dataclass, field
from typing import Any, Protocol

import numpy as np

from backend.tenderwriter.errors import DimensionMismatchError


@dataclass
class VectorRecord:
    """One stored vector with its metadata."""

    id: str
    values: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorHit:
    """Query result: record id, cosine score and metadata."""

    id: str
    score: float
    metadata: dict[str, Any]


def matches_filter(metadata: dict[str, Any], flt: dict[str, Any] | None) -> bool:
    """Equality filter over metadata; None matches everything."""
    if not flt:
        return True
    return all(metadata.get(key) == value for key, value in flt.items())


class VectorStore(Protocol):
    """Protocol for vector store implementations."""

    async def ensure_index(self, name: str, dimension: int) -> None:
        """Create the index if missing. Idempotent.

        Raises:
            DimensionMismatchError: If the index exists with another dimension
        """
        ...

    async def upsert(self, records: list[VectorRecord]) -> None:
        """Insert or replace records.

        Raises:
            DimensionMismatchError: If any record has the wrong length (nothing stored)
        """
        ...

    async def query(
        self, vector: list[float], top_k: int, flt: dict[str, Any] | None = None
    ) -> list[VectorHit]:
        """Return up to top_k hits ranked by descending cosine similarity."""
        ...

    async def delete(self, flt: dict[str, Any]) -> int:
        """Delete records whose metadata matches the filter. Returns count."""
        ...

    async def delete_all(self) -> None:
        ...

    async def count(self) -> int:
        ...


class InMemoryVectorStore:
    """In-memory implementation of VectorStore."""

    def __init__(self) -> None:
        self._name: str | None = None
        self._dimension: int | None = None
        self._vectors: dict[str, np.ndarray] = {}
        self._metadata: dict[str, dict[str, Any]] = {}

    @property
    def dimension(self) -> int | None:
        return self._dimension

    async def ensure_index(self, name: str, dimension: int) -> None:
        if self._dimension is None:
            self._name = name
            self._dimension = dimension
            return
        if self._dimension != dimension:
            raise DimensionMismatchError(
                f"Index {self._name} has dimension {self._dimension}, requested {dimension}"
            )

    def _check(self, values: list[float]) -> None:
        if self._dimension is None:
            raise DimensionMismatchError("Index not initialized; call ensure_index first")
        if len(values) != self._dimension:
            raise DimensionMismatchError(
                f"Vector dimension {len(values)} does not match index dimension {self._dimension}"
            )

    async def upsert(self, records: list[VectorRecord]) -> None:
        # Validate the whole batch before storing anything
        for record in records:
            self._check(record.values)
        for record in records:
            self._vectors[record.id] = np.asarray(record.values, dtype=np.float64)
            self._metadata[record.id] = dict(record.metadata)

    async def query(
        self, vector: list[float], top_k: int, flt: dict[str, Any] | None = None
    ) -> list[VectorHit]:
        self._check(vector)
        ids = [rid for rid in self._vectors if matches_filter(self._metadata[rid], flt)]
        if not ids or top_k <= 0:
            return []

        matrix = np.vstack([self._vectors[rid] for rid in ids])
        q = np.asarray(vector, dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
        dots = matrix @ q
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        # Stable sort keeps insertion order among equal scores
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [
            VectorHit(id=ids[i], score=float(scores[i]), metadata=dict(self._metadata[ids[i]]))
            for i in order
        ]

    async def delete(self, flt: dict[str, Any]) -> int:
        doomed = [rid for rid, meta in self._metadata.items() if matches_filter(meta, flt)]
        for rid in doomed:
            self._vectors.pop(rid, None)
            self._metadata.pop(rid, None)
        return len(doomed)

    async def delete_all(self) -> None:
        self._vectors.clear()
        self._metadata.clear()

    async def count(self) -> int:
        return len(self._vectors)
