"""Vector search endpoint - POST /tender/vector-search."""

import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from backend.tenderwriter.api.dependencies import ServiceContainer, get_container
from backend.tenderwriter.models.documents import ChunkMatch

router = APIRouter(prefix="/tender", tags=["search"])
logger = logging.getLogger(__name__)

Operation = Literal["search", "summarize", "extract-requirements", "generate-section"]


class SearchOptions(BaseModel):
    """Options for the search operation."""

    model_config = ConfigDict(populate_by_name=True)

    top_k: int = Field(5, ge=1, le=50, alias="topK")
    filter: dict[str, Any] | None = None


class VectorSearchRequest(BaseModel):
    """Request body for POST /tender/vector-search."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    operation: Operation = "search"
    options: SearchOptions = Field(default_factory=SearchOptions)
    documents: list[ChunkMatch] | None = None
    section_title: str | None = Field(None, alias="sectionTitle")


@router.post("/vector-search")
async def vector_search(
    request: VectorSearchRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict[str, Any]:
    """Semantic search plus summarize / extract-requirements / generate-section.

    Raises:
        HTTPException: 400 for missing inputs, 500 if the operation fails
    """
    op = request.operation
    if op == "search" and not request.query:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query is required for search operation",
        )
    if op != "search" and not request.documents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Documents are required for {op} operation",
        )
    if op == "generate-section" and not request.section_title:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Section title is required for generate-section operation",
        )

    qa = container.qa
    documents = request.documents or []
    try:
        if op == "search":
            results = await qa.search(
                request.query, top_k=request.options.top_k, flt=request.options.filter
            )
            return {
                "results": [r.model_dump(mode="json") for r in results],
                "query": request.query,
                "count": len(results),
                "operation": op,
            }
        if op == "summarize":
            summary = await qa.summarize(documents, request.query)
            return {"summary": summary, "operation": op}
        if op == "extract-requirements":
            requirements = await qa.extract_requirements(documents)
            return {"requirements": requirements, "count": len(requirements), "operation": op}
        content = await qa.generate_section(request.section_title or "", documents)
        return {"title": request.section_title, "content": content, "operation": op}
    except Exception as e:
        logger.error(f"[POST /tender/vector-search] {op} failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Operation failed: {e}",
        ) from e
