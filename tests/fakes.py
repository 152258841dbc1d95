"""Test doubles for the completion and embedding capabilities."""

from collections.abc import AsyncIterator, Callable
from datetime import datetime, timezone
from uuid import uuid4

from backend.tenderwriter.errors import EmbeddingFailedError
from backend.tenderwriter.index.embeddings import DeterministicEmbeddingClient
from backend.tenderwriter.llm.client import Parts, parts_text
from backend.tenderwriter.models.documents import (
    Document,
    FilePart,
    TextPart,
    binary_placeholder,
)


class RecordingCompletionClient:
    """Echoes prompts back, records every call and fails on demand.

    fail_when receives the flattened prompt and returns an exception to raise
    or None to succeed.
    """

    def __init__(
        self, fail_when: Callable[[str], BaseException | None] | None = None
    ) -> None:
        self.calls: list[str] = []
        self.systems: list[str | None] = []
        self.fail_when = fail_when

    async def complete(self, parts: Parts, system: str | None = None) -> str:
        prompt = parts_text(parts)
        self.calls.append(prompt)
        self.systems.append(system)
        if self.fail_when is not None:
            exc = self.fail_when(prompt)
            if exc is not None:
                raise exc
        return prompt

    async def stream(self, parts: Parts, system: str | None = None) -> AsyncIterator[str]:
        text = await self.complete(parts, system)
        for word in text.split(" "):
            yield word + " "

    def calls_containing(self, needle: str) -> list[str]:
        return [c for c in self.calls if needle in c]


class FlakyEmbeddingClient(DeterministicEmbeddingClient):
    """Hashing embedder that fails for texts containing a marker."""

    def __init__(self, marker: str = "POISON", dimension: int = 768) -> None:
        super().__init__(dimension)
        self.marker = marker

    async def embed(self, text: str) -> list[float]:
        if self.marker in text:
            raise EmbeddingFailedError(f"cannot embed text containing {self.marker}")
        return await super().embed(text)


class WrongDimensionEmbeddingClient(DeterministicEmbeddingClient):
    """Returns vectors one element short of the configured dimension."""

    async def embed(self, text: str) -> list[float]:
        return (await super().embed(text))[:-1]


class SleepRecorder:
    """Injectable sleep that records requested delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_document(
    text: str = "Must support 99.9% uptime",
    *,
    title: str = "rfp.txt",
    category: str = "requirements",
    uploaded_at: datetime | None = None,
) -> Document:
    """Build a stored text document without going through ingestion."""
    return Document(
        id=uuid4(),
        title=title,
        category=category,
        file_type="txt",
        mime_type="text/plain",
        part=TextPart(text=text),
        content=text,
        size_bytes=len(text.encode()),
        uploaded_at=uploaded_at or datetime.now(timezone.utc),
    )


def make_binary_document(
    data: bytes = b"%PDF-1.4 scanned", *, title: str = "scan.pdf", category: str = "requirements"
) -> Document:
    """Build a stored binary (scanned PDF) document."""
    return Document(
        id=uuid4(),
        title=title,
        category=category,
        file_type="pdf",
        mime_type="application/pdf",
        part=FilePart(data=data, mime_type="application/pdf", filename=title),
        content=binary_placeholder("application/pdf"),
        size_bytes=len(data),
        uploaded_at=datetime.now(timezone.utc),
    )
