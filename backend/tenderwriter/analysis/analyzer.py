"""Document analyzer - one cached LLM summary per document."""

import logging
import time

from backend.tenderwriter.analysis.cache import SummaryCache
from backend.tenderwriter.errors import AnalysisFailedError, classify_error, user_message
from backend.tenderwriter.llm.client import CompletionClient
from backend.tenderwriter.llm.prompts import SYSTEM_PROMPT, analysis_prompt, truncation_note
from backend.tenderwriter.llm.retry import RetryPolicy
from backend.tenderwriter.models.analysis import AnalysisSummary
from backend.tenderwriter.models.documents import Document, FilePart, TextPart
from backend.tenderwriter.utils.metrics import metrics

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 100_000


def truncate_content(content: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Cut content to max_chars, appending a visible truncation note."""
    if len(content) <= max_chars:
        return content
    logger.info(f"Truncating document from {len(content)} to {max_chars} characters")
    return content[:max_chars] + truncation_note(len(content))


class DocumentAnalyzer:
    """Analyzes documents into requirements or capabilities summaries.

    Every outcome, including failures, is cached under the document id so a
    document costs at most one completion call per cache lifetime.
    """

    def __init__(
        self,
        completion: CompletionClient,
        cache: SummaryCache,
        retry_policy: RetryPolicy | None = None,
        max_chars: int = DEFAULT_MAX_CHARS,
    ) -> None:
        self._completion = completion
        self._cache = cache
        self._retry = retry_policy or RetryPolicy()
        self._max_chars = max_chars

    @property
    def cache(self) -> SummaryCache:
        return self._cache

    async def analyze(self, document: Document, is_requirements: bool) -> AnalysisSummary:
        """Return the cached summary for a document, analyzing it on a miss.

        Never raises for completion failures; those become error summaries.
        """
        summary, _ = await self.analyze_with_hit(document, is_requirements)
        return summary

    async def analyze_with_hit(
        self, document: Document, is_requirements: bool
    ) -> tuple[AnalysisSummary, bool]:
        """Like analyze(), also reporting whether the cache served the result."""
        role = "requirements" if is_requirements else "capabilities"

        async with self._cache.lock_for(document.id):
            cached = await self._cache.get(document.id)
            if cached is not None:
                metrics.inc_cache_hit(role)
                logger.debug(f"Summary cache hit for {document.id}")
                return cached, True

            token = self._cache.token(document.id)
            parts = self._build_parts(document, is_requirements)
            start = time.monotonic()
            try:
                text = await self._retry.run(
                    lambda: self._completion.complete(parts, system=SYSTEM_PROMPT)
                )
                summary = AnalysisSummary(
                    document_id=document.id, title=document.title, role=role, text=text
                )
                metrics.record_call("analysis", "success")
            except Exception as e:
                failure = AnalysisFailedError(document.title, e)
                kind = classify_error(failure)
                metrics.record_call("analysis", kind.value)
                logger.warning(
                    f"{failure} after {(time.monotonic() - start) * 1000:.0f}ms",
                    extra={"structured": {"document_id": str(document.id), "kind": kind.value}},
                )
                summary = AnalysisSummary(
                    document_id=document.id,
                    title=document.title,
                    role=role,
                    text=(
                        "Error analyzing this document. Please review it manually. "
                        f"({user_message(kind)})"
                    ),
                    is_error=True,
                    error_kind=kind,
                )

            if not await self._cache.set(summary, token=token):
                logger.info(f"Discarding analysis of {document.id}; invalidated while running")
            return summary, False

    def _build_parts(self, document: Document, is_requirements: bool) -> list[TextPart | FilePart]:
        prompt = analysis_prompt(is_requirements)
        if isinstance(document.part, FilePart):
            return [document.part, TextPart(text=prompt)]
        content = truncate_content(document.part.text, self._max_chars)
        return [TextPart(text=f"{prompt}\n\nDocument content:\n{content}")]
