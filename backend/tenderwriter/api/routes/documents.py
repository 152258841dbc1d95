"""Document endpoints for uploading, inspecting and removing tender documents."""

import logging
from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)
from pydantic import BaseModel, Field

from backend.tenderwriter.api.dependencies import ServiceContainer, get_container
from backend.tenderwriter.errors import (
    DocumentNotFoundError,
    EmptyDocumentError,
    PayloadTooLargeError,
    UnsupportedFormatError,
)
from backend.tenderwriter.models.documents import Document, DocumentCategory

router = APIRouter(prefix="/tender/documents", tags=["documents"])
logger = logging.getLogger(__name__)

DocType = Literal["source", "company"]

DOC_TYPE_CATEGORIES: dict[str, DocumentCategory] = {
    "source": "requirements",
    "company": "capabilities",
}


class UploadResponse(BaseModel):
    """Response for POST /tender/documents."""

    success: bool = True
    document_id: str = Field(serialization_alias="documentId")
    document_name: str = Field(serialization_alias="documentName")
    chunk_count: int = Field(serialization_alias="chunkCount")
    indexed_chunks: int = Field(serialization_alias="indexedChunks")
    failed_chunks: list[str] = Field(default_factory=list, serialization_alias="failedChunks")


class DocumentInfo(BaseModel):
    """Document metadata without content."""

    id: str
    title: str
    doc_type: DocType = Field(serialization_alias="docType")
    file_type: str = Field(serialization_alias="fileType")
    mime_type: str = Field(serialization_alias="mimeType")
    size_bytes: int = Field(serialization_alias="sizeBytes")
    is_binary: bool = Field(serialization_alias="isBinary")
    uploaded_at: datetime = Field(serialization_alias="uploadedAt")

    @classmethod
    def from_document(cls, document: Document) -> "DocumentInfo":
        return cls(
            id=str(document.id),
            title=document.title,
            doc_type="source" if document.category == "requirements" else "company",
            file_type=document.file_type,
            mime_type=document.mime_type,
            size_bytes=document.size_bytes,
            is_binary=document.is_binary,
            uploaded_at=document.uploaded_at,
        )


class DocumentListResponse(BaseModel):
    """Response for GET /tender/documents."""

    documents: list[DocumentInfo]
    count: int


class ReindexResponse(BaseModel):
    """Response for POST /tender/documents/reindex."""

    success: bool = True
    chunk_count: int = Field(serialization_alias="chunkCount")
    indexed_chunks: int = Field(serialization_alias="indexedChunks")
    failed_chunks: list[str] = Field(default_factory=list, serialization_alias="failedChunks")


@router.post("", response_model=UploadResponse, status_code=status.HTTP_200_OK)
async def upload_document(
    file: Annotated[UploadFile, File(description="PDF, DOCX, TXT or image file")],
    doc_type: Annotated[DocType, Form(alias="docType")],
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> UploadResponse:
    """Upload a source (requirements) or company (capabilities) document.

    The document is extracted, stored, chunked and indexed. Chunks that fail
    to embed are reported in failedChunks; the upload still succeeds.

    Raises:
        HTTPException: 400 for unsupported, oversized or empty files, 500 otherwise
    """
    filename = file.filename or "upload"
    logger.info(f"[POST /tender/documents] {filename} ({doc_type})")

    try:
        data = await file.read()
        document = await container.store.ingest(
            data, filename, file.content_type, DOC_TYPE_CATEGORIES[doc_type]
        )
        chunks = await container.store.chunk(document)
        report = await container.index.upsert(chunks)
    except (UnsupportedFormatError, PayloadTooLargeError, EmptyDocumentError) as e:
        logger.warning(f"[POST /tender/documents] rejected {filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error(f"[POST /tender/documents] {filename} failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process document: {e}",
        ) from e

    return UploadResponse(
        document_id=str(document.id),
        document_name=document.title,
        chunk_count=len(chunks),
        indexed_chunks=report.indexed,
        failed_chunks=[f.chunk_id for f in report.failed],
    )


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    container: Annotated[ServiceContainer, Depends(get_container)],
    doc_type: Annotated[DocType | None, Query(alias="docType")] = None,
) -> DocumentListResponse:
    """List stored documents, optionally filtered by type."""
    category = DOC_TYPE_CATEGORIES[doc_type] if doc_type else None
    documents = await container.store.list_documents(category)
    return DocumentListResponse(
        documents=[DocumentInfo.from_document(d) for d in documents],
        count=len(documents),
    )


@router.get("/{document_id}", response_model=DocumentInfo)
async def get_document(
    document_id: UUID,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> DocumentInfo:
    """Get metadata for one document.

    Raises:
        HTTPException: 404 if the document does not exist
    """
    try:
        document = await container.store.require(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return DocumentInfo.from_document(document)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> Response:
    """Delete a document with its chunks, cached analysis and vectors.

    Raises:
        HTTPException: 404 if the document does not exist
    """
    if not await container.store.delete(document_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document {document_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_documents(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> Response:
    """Delete every document, chunk, cached analysis and vector."""
    await container.store.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/reindex", response_model=ReindexResponse)
async def reindex_documents(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ReindexResponse:
    """Rebuild chunks and the vector index from stored documents."""
    chunks = await container.store.rechunk_all()
    report = await container.index.reindex(container.repository)
    logger.info(f"[POST /tender/documents/reindex] {report.indexed}/{len(chunks)} indexed")
    return ReindexResponse(
        chunk_count=len(chunks),
        indexed_chunks=report.indexed,
        failed_chunks=[f.chunk_id for f in report.failed],
    )
