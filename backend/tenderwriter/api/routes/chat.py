"""Chat endpoint - POST /chat streams assistant tokens as server-sent events."""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from backend.tenderwriter.api.dependencies import ServiceContainer, get_container
from backend.tenderwriter.llm.prompts import chat_system_prompt
from backend.tenderwriter.models.documents import TextPart
from backend.tenderwriter.streaming.transport import sse_stream

router = APIRouter(tags=["chat"])
logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    """One chat turn."""

    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    """Request body for POST /chat."""

    messages: list[ChatMessage] = Field(..., min_length=1)


def render_transcript(messages: list[ChatMessage]) -> str:
    """Flatten the conversation into a single prompt, latest turn last."""
    return "\n\n".join(f"{m.role.upper()}: {m.content}" for m in messages)


@router.post("/chat")
async def chat(
    request: ChatRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> StreamingResponse:
    """Stream an assistant reply framed as ``data: <json>`` events ending in [DONE]."""
    logger.info(f"[POST /chat] {len(request.messages)} message(s)")
    system = "\n\n".join(
        [chat_system_prompt(), *(m.content for m in request.messages if m.role == "system")]
    )
    turns = [m for m in request.messages if m.role != "system"]
    tokens = container.completion.stream(
        [TextPart(text=render_transcript(turns))], system=system
    )
    return StreamingResponse(
        sse_stream(tokens),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
