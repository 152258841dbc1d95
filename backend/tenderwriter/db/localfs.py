"""Local-filesystem implementation of the document repository.

Layout under the storage root:

    source-docs/<id>-metadata.json
    source-docs/<id>-content
    source-docs/<id>-chunks.json
    company-docs/...

Requirements documents live in source-docs/, capabilities in company-docs/.
"""

import asyncio
import json
import logging
import shutil
from pathlib import Path
from uuid import UUID

from backend.tenderwriter.db.records import document_from_record, document_to_record
from backend.tenderwriter.models.documents import Chunk, Document, DocumentCategory

logger = logging.getLogger(__name__)

CATEGORY_DIRS: dict[str, str] = {
    "requirements": "source-docs",
    "capabilities": "company-docs",
}


class LocalFileDocumentRepository:
    """File-backed implementation of DocumentRepository."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def _dir(self, category: str) -> Path:
        return self._root / CATEGORY_DIRS[category]

    def _find_dir(self, document_id: UUID) -> Path | None:
        for name in CATEGORY_DIRS.values():
            candidate = self._root / name
            if (candidate / f"{document_id}-metadata.json").exists():
                return candidate
        return None

    async def init(self) -> None:
        """Create category directories."""
        await asyncio.to_thread(self._init_sync)

    def _init_sync(self) -> None:
        for name in CATEGORY_DIRS.values():
            (self._root / name).mkdir(parents=True, exist_ok=True)

    async def get(self, document_id: UUID) -> Document | None:
        return await asyncio.to_thread(self._get_sync, document_id)

    def _get_sync(self, document_id: UUID) -> Document | None:
        folder = self._find_dir(document_id)
        if folder is None:
            return None
        return self._load(folder, document_id)

    def _load(self, folder: Path, document_id: UUID | str) -> Document:
        meta = json.loads((folder / f"{document_id}-metadata.json").read_text(encoding="utf-8"))
        payload = (folder / f"{document_id}-content").read_bytes()
        return document_from_record(meta, payload)

    async def put(self, document: Document) -> None:
        await asyncio.to_thread(self._put_sync, document)

    def _put_sync(self, document: Document) -> None:
        folder = self._dir(document.category)
        folder.mkdir(parents=True, exist_ok=True)
        meta, payload = document_to_record(document)
        # Payload first so a metadata file never points at missing content
        (folder / f"{document.id}-content").write_bytes(payload)
        (folder / f"{document.id}-metadata.json").write_text(
            json.dumps(meta, indent=2), encoding="utf-8"
        )

    async def delete(self, document_id: UUID) -> bool:
        return await asyncio.to_thread(self._delete_sync, document_id)

    def _delete_sync(self, document_id: UUID) -> bool:
        folder = self._find_dir(document_id)
        if folder is None:
            return False
        for suffix in ("metadata.json", "content", "chunks.json"):
            (folder / f"{document_id}-{suffix}").unlink(missing_ok=True)
        return True

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear_sync)

    def _clear_sync(self) -> None:
        for name in CATEGORY_DIRS.values():
            shutil.rmtree(self._root / name, ignore_errors=True)
        self._init_sync()

    async def list_documents(self, category: DocumentCategory | None = None) -> list[Document]:
        return await asyncio.to_thread(self._list_sync, category)

    def _list_sync(self, category: DocumentCategory | None) -> list[Document]:
        categories = [category] if category else list(CATEGORY_DIRS)
        docs: list[Document] = []
        for cat in categories:
            folder = self._dir(cat)
            if not folder.exists():
                continue
            for meta_path in folder.glob("*-metadata.json"):
                doc_id = meta_path.name.removesuffix("-metadata.json")
                try:
                    docs.append(self._load(folder, doc_id))
                except (OSError, ValueError) as e:
                    logger.warning(f"Skipping unreadable document {doc_id}: {e}")
        return sorted(docs, key=lambda d: d.uploaded_at)

    async def put_chunks(self, document_id: UUID, chunks: list[Chunk]) -> None:
        await asyncio.to_thread(self._put_chunks_sync, document_id, chunks)

    def _put_chunks_sync(self, document_id: UUID, chunks: list[Chunk]) -> None:
        folder = self._find_dir(document_id)
        if folder is None:
            return
        data = [c.model_dump(mode="json") for c in sorted(chunks, key=lambda c: c.index)]
        (folder / f"{document_id}-chunks.json").write_text(json.dumps(data), encoding="utf-8")

    async def list_chunks(self, document_id: UUID) -> list[Chunk]:
        return await asyncio.to_thread(self._list_chunks_sync, document_id)

    def _list_chunks_sync(self, document_id: UUID) -> list[Chunk]:
        folder = self._find_dir(document_id)
        if folder is None:
            return []
        path = folder / f"{document_id}-chunks.json"
        if not path.exists():
            return []
        return [Chunk.model_validate(item) for item in json.loads(path.read_text(encoding="utf-8"))]
