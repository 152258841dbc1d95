"""Conversion between Document models and persisted (metadata, payload) pairs.

Persistent backends store the document's descriptive fields as JSON and its
payload (extracted text as UTF-8, or the original binary) as raw bytes.
"""

from typing import Any

from backend.tenderwriter.models.documents import (
    Document,
    FilePart,
    TextPart,
    binary_placeholder,
)


def document_to_record(document: Document) -> tuple[dict[str, Any], bytes]:
    """Split a document into a JSON-safe metadata dict and its payload bytes."""
    meta = document.model_dump(mode="json", exclude={"part", "content"})
    if isinstance(document.part, FilePart):
        meta["part_kind"] = "file"
        meta["part_filename"] = document.part.filename
        payload = document.part.data
    else:
        meta["part_kind"] = "text"
        payload = document.part.text.encode("utf-8")
    return meta, payload


def document_from_record(meta: dict[str, Any], payload: bytes) -> Document:
    """Rebuild a document from its stored metadata and payload."""
    fields = {k: v for k, v in meta.items() if not k.startswith("part_")}
    if meta.get("part_kind") == "file":
        part: TextPart | FilePart = FilePart(
            data=payload,
            mime_type=meta["mime_type"],
            filename=meta.get("part_filename"),
        )
        content = binary_placeholder(meta["mime_type"])
    else:
        text = payload.decode("utf-8")
        part = TextPart(text=text)
        content = text
    return Document.model_validate({**fields, "part": part.model_dump(), "content": content})
