"""Streaming adapters: markdown progress stream and SSE token stream."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from backend.tenderwriter.errors import classify_error, user_message
from backend.tenderwriter.models.generation import GenerationRequest
from backend.tenderwriter.orchestration.pipeline import TenderOrchestrator
from backend.tenderwriter.orchestration.state import CancelToken, GenerationResult

logger = logging.getLogger(__name__)

SSE_DONE = "data: [DONE]\n\n"


def progress_line(message: str) -> str:
    """Frame a progress message so clients can filter it out of rendered markdown."""
    # "-->" inside the message would end the comment early
    safe = message.replace("-->", "--&gt;").replace("\n", " ")
    return f"<!-- PROGRESS_UPDATE: {safe} -->\n"


def sse_event(payload: object) -> str:
    return f"data: {json.dumps(payload)}\n\n"


class _Close:
    """Queue sentinel marking end of stream."""


_CLOSE = _Close()


class MarkdownStreamTransport:
    """Runs the orchestrator in a task and yields its output as it is produced.

    Producer callbacks only call put_nowait on an unbounded queue, so they
    never block a pipeline stage. The stream closes exactly once; an
    unexpected failure yields a final ``## Error`` block first. Closing the
    generator early (client disconnect) cancels the run.
    """

    def __init__(self, orchestrator: TenderOrchestrator) -> None:
        self._orchestrator = orchestrator
        self.result: GenerationResult | None = None

    async def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        queue: asyncio.Queue[str | _Close] = asyncio.Queue()
        cancel = CancelToken()

        async def produce() -> GenerationResult:
            return await self._orchestrator.run(
                request,
                on_progress=lambda message: queue.put_nowait(progress_line(message)),
                on_content=queue.put_nowait,
                cancel=cancel,
            )

        def on_done(task: "asyncio.Task[GenerationResult]") -> None:
            if not task.cancelled():
                exc = task.exception()
                if exc is not None:
                    logger.error(f"Generation task failed: {type(exc).__name__}: {exc}")
                    queue.put_nowait(
                        f"\n## Error\n\n{user_message(classify_error(exc))}\n\n"
                        f"Details: {exc}\n"
                    )
                else:
                    self.result = task.result()
            queue.put_nowait(_CLOSE)

        task = asyncio.create_task(produce())
        task.add_done_callback(on_done)

        try:
            while True:
                item = await queue.get()
                if isinstance(item, _Close):
                    break
                yield item
        finally:
            if not task.done():
                logger.info("Stream closed before generation finished; cancelling run")
                cancel.cancel()
                task.cancel()
                # Wait for the run to unwind; its outcome is reported by on_done
                await asyncio.gather(task, return_exceptions=True)


async def sse_stream(tokens: AsyncIterator[str]) -> AsyncIterator[str]:
    """Frame tokens as ``data: <json>`` events, always ending with ``data: [DONE]``."""
    try:
        async for token in tokens:
            yield sse_event(token)
    except Exception as e:
        logger.exception("Token stream failed")
        yield sse_event({"error": user_message(classify_error(e))})
    yield SSE_DONE
