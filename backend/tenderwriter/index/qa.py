"""Retrieval-backed document operations: search, summarize, extract, draft."""

import json
import logging
import re
from typing import Any

from backend.tenderwriter.index.retrieval import RetrievalIndex
from backend.tenderwriter.llm.client import CompletionClient
from backend.tenderwriter.llm.prompts import (
    SYSTEM_PROMPT,
    extract_requirements_prompt,
    generate_section_prompt,
    summarize_prompt,
)
from backend.tenderwriter.llm.retry import RetryPolicy
from backend.tenderwriter.models.documents import ChunkMatch, TextPart
from backend.tenderwriter.utils.metrics import metrics

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\n([\s\S]*?)\n```")
_BARE_ARRAY = re.compile(r"(\[[\s\S]*\])")


def parse_requirement_list(response: str) -> list[str]:
    """Pull a JSON array of strings out of a model response.

    Accepts fenced ```json blocks, bare arrays, or falls back to bullet lines.
    """
    match = _FENCED_JSON.search(response) or _BARE_ARRAY.search(response)
    candidate = match.group(1) if match else response
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return [
            line.strip()[2:].strip()
            for line in response.splitlines()
            if line.strip().startswith(("- ", "* "))
        ]
    if not isinstance(data, list):
        return []
    return [str(item).strip() for item in data if str(item).strip()]


class DocumentQA:
    """Operations exposed by the vector-search endpoint."""

    def __init__(
        self,
        index: RetrievalIndex,
        completion: CompletionClient,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._index = index
        self._completion = completion
        self._retry = retry_policy or RetryPolicy()

    async def _complete(self, prompt: str, operation: str) -> str:
        try:
            text = await self._retry.run(
                lambda: self._completion.complete([TextPart(text=prompt)], system=SYSTEM_PROMPT)
            )
        except Exception:
            metrics.record_call(operation, "error")
            raise
        metrics.record_call(operation, "success")
        return text

    async def search(
        self, query: str, top_k: int = 5, flt: dict[str, Any] | None = None
    ) -> list[ChunkMatch]:
        """Semantic search over indexed chunks."""
        return await self._index.query(query, top_k=top_k, flt=flt)

    async def summarize(self, documents: list[ChunkMatch], query: str = "") -> str:
        """Summarize retrieved passages with respect to a query."""
        return await self._complete(summarize_prompt(query, documents), "summarize")

    async def extract_requirements(self, documents: list[ChunkMatch]) -> list[str]:
        """Extract explicit and implicit requirements as a list of strings."""
        response = await self._complete(
            extract_requirements_prompt(documents), "extract_requirements"
        )
        requirements = parse_requirement_list(response)
        if not requirements:
            logger.warning("Requirement extraction returned no parseable requirements")
        return requirements

    async def generate_section(self, section_title: str, documents: list[ChunkMatch]) -> str:
        """Draft one tender section from reference passages."""
        return await self._complete(
            generate_section_prompt(section_title, documents), "generate_section"
        )
