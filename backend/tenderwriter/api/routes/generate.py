"""Generation endpoint - POST /tender/generate streams a markdown document."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from backend.tenderwriter.api.dependencies import ServiceContainer, get_container
from backend.tenderwriter.models.generation import GenerationRequest, SectionPlan
from backend.tenderwriter.streaming.transport import MarkdownStreamTransport

router = APIRouter(prefix="/tender", tags=["generate"])
logger = logging.getLogger(__name__)


class GenerateBody(BaseModel):
    """Request body for POST /tender/generate."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field("Tender Response", min_length=1, max_length=200)
    prompt: str | None = None
    additional_context: str | None = Field(None, alias="additionalContext")
    company_context: str | None = Field(None, alias="companyContext")
    sections: list[SectionPlan] | None = None

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            title=self.title,
            prompt=self.prompt,
            additional_context=self.additional_context,
            company_context=self.company_context,
            sections=self.sections or None,
        )


@router.post("/generate")
async def generate(
    body: GenerateBody,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> StreamingResponse:
    """Generate a tender response as a chunked markdown stream.

    Progress lines are framed as ``<!-- PROGRESS_UPDATE: ... -->`` so clients
    can strip them from rendered output. The stream ends when the run does.
    """
    logger.info(
        f"[POST /tender/generate] title={body.title!r} sections={len(body.sections or [])}"
    )
    transport = MarkdownStreamTransport(container.orchestrator)
    return StreamingResponse(
        transport.stream(body.to_request()),
        media_type="text/markdown; charset=utf-8",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
