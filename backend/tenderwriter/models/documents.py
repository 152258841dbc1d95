"""Document domain models."""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

DocumentCategory = Literal["requirements", "capabilities"]
FileType = Literal["pdf", "docx", "txt", "image"]


class TextPart(BaseModel):
    """Extracted text content."""

    kind: Literal["text"] = "text"
    text: str


class FilePart(BaseModel):
    """Opaque binary content sent inline to the completion capability."""

    kind: Literal["file"] = "file"
    data: bytes
    mime_type: str
    filename: str | None = None


ContentPart = Annotated[TextPart | FilePart, Field(discriminator="kind")]


def binary_placeholder(mime_type: str) -> str:
    """Marker stored in Document.content for binary documents."""
    return f"[binary document: {mime_type}]"


class Document(BaseModel):
    """Uploaded requirements or capabilities document (immutable)."""

    model_config = {"frozen": True}

    id: UUID
    title: str
    category: DocumentCategory
    file_type: FileType
    mime_type: str
    part: ContentPart
    content: str  # text, or binary_placeholder() for FilePart documents
    size_bytes: int
    uploaded_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_binary(self) -> bool:
        return isinstance(self.part, FilePart)


class Chunk(BaseModel):
    """Bounded slice of a document's text."""

    model_config = {"frozen": True}

    chunk_id: str
    document_id: UUID
    index: int  # 0-based
    total: int
    text: str
    category: DocumentCategory
    title: str

    @staticmethod
    def make_id(document_id: UUID, index: int) -> str:
        return f"{document_id}-chunk-{index}"


class ChunkMatch(BaseModel):
    """Retrieved chunk with cosine similarity score."""

    chunk: Chunk
    score: float


class IndexFailure(BaseModel):
    """One chunk that could not be indexed."""

    chunk_id: str
    reason: str


class IndexReport(BaseModel):
    """Outcome of a batch upsert into the retrieval index."""

    indexed: int = 0
    failed: list[IndexFailure] = Field(default_factory=list)
