"""File classification and text extraction for uploaded documents."""

import io
import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

from docx import Document as DocxDocument
from pypdf import PdfReader

from backend.tenderwriter.errors import UnsupportedFormatError
from backend.tenderwriter.models.documents import FileType

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TXT_MIME = "text/plain"

_EXTENSION_TYPES: dict[str, FileType] = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".txt": "txt",
}

_MIME_TYPES: dict[str, FileType] = {
    PDF_MIME: "pdf",
    DOCX_MIME: "docx",
    TXT_MIME: "txt",
}

_CANONICAL_MIME: dict[FileType, str] = {
    "pdf": PDF_MIME,
    "docx": DOCX_MIME,
    "txt": TXT_MIME,
}

_IMAGE_EXTENSIONS: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


@dataclass
class Extraction:
    """Result of text extraction. Empty text means treat as binary."""

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


def classify(filename: str, mime_type: str | None) -> tuple[FileType, str]:
    """Classify an upload by extension first, then by declared MIME type.

    Returns:
        (file_type, effective_mime_type)

    Raises:
        UnsupportedFormatError: If neither extension nor MIME is accepted
    """
    mime = (mime_type or "").split(";")[0].strip().lower()
    suffix = PurePath(filename or "").suffix.lower()

    if suffix in _EXTENSION_TYPES:
        file_type = _EXTENSION_TYPES[suffix]
        return file_type, _CANONICAL_MIME[file_type]

    if suffix in _IMAGE_EXTENSIONS:
        return "image", mime if mime.startswith("image/") else _IMAGE_EXTENSIONS[suffix]

    # No extension at all: trust the declared MIME type
    if not suffix:
        if mime in _MIME_TYPES:
            return _MIME_TYPES[mime], mime
        if mime.startswith("image/"):
            return "image", mime

    raise UnsupportedFormatError(
        f"Unsupported file type: {suffix or mime or 'unknown'}. Supported types: pdf, docx, txt"
    )


def read_text_from_pdf(data: bytes) -> Extraction:
    reader = PdfReader(io.BytesIO(data))
    parts = [page.extract_text() or "" for page in reader.pages]
    info = reader.metadata or {}
    metadata = {
        "page_count": len(reader.pages),
        "author": str(info.get("/Author", "") or ""),
        "pdf_title": str(info.get("/Title", "") or ""),
    }
    return Extraction(text="\n".join(parts), metadata=metadata)


def read_text_from_docx(data: bytes) -> Extraction:
    """Extract text from DOCX including both paragraphs and tables.

    Tables are rendered one row per line with " | " between cells.
    """
    doc = DocxDocument(io.BytesIO(data))
    parts = [para.text.strip() for para in doc.paragraphs if para.text.strip()]

    for table in doc.tables:
        rows = []
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                rows.append(" | ".join(cells))
        if rows:
            parts.append("\n".join(rows))

    return Extraction(text="\n\n".join(parts), metadata={"table_count": len(doc.tables)})


def read_text_from_txt(data: bytes) -> Extraction:
    return Extraction(text=data.decode("utf-8", errors="replace"))


def extract(file_type: FileType, data: bytes) -> Extraction:
    """Extract text for a classified upload. Images are never extracted."""
    if file_type == "pdf":
        try:
            return read_text_from_pdf(data)
        except Exception as e:
            # Unparseable PDFs are still forwarded to the model as binary
            logger.warning(f"PDF text extraction failed, storing as binary: {e}")
            return Extraction(text="", metadata={"extraction_error": type(e).__name__})
    if file_type == "docx":
        try:
            return read_text_from_docx(data)
        except Exception as e:
            raise UnsupportedFormatError(f"DOCX parsing error: {e}") from e
    if file_type == "txt":
        return read_text_from_txt(data)
    return Extraction(text="")
