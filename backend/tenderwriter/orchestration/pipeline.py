"""Tender generation pipeline.

Stages run in strict sequence:

    preparing -> analyzing_source -> analyzing_company -> planning
    -> writing -> reviewing -> finalizing -> complete

with terminal `error` (reachable from any stage) and `cancelled`.
Per-document and per-section failures are contained; only a failed review
(assembly) call or an unexpected fault ends the run in `error`, in which
case the partial analyses are emitted as a fallback body.
"""

import logging
import time
from collections.abc import Callable

from backend.tenderwriter.analysis.analyzer import DocumentAnalyzer
from backend.tenderwriter.db.repositories import DocumentRepository
from backend.tenderwriter.errors import (
    AssemblyFailedError,
    ErrorKind,
    GenerationCancelledError,
    SectionGenerationFailedError,
    classify_error,
    user_message,
)
from backend.tenderwriter.index.retrieval import RetrievalIndex
from backend.tenderwriter.llm.client import CompletionClient, Parts
from backend.tenderwriter.llm.prompts import (
    FALLBACK_INSTRUCTION,
    SYSTEM_PROMPT,
    review_prompt,
    section_prompt,
)
from backend.tenderwriter.llm.retry import RetryPolicy
from backend.tenderwriter.models.analysis import AnalysisSummary
from backend.tenderwriter.models.documents import ChunkMatch, Document, TextPart
from backend.tenderwriter.models.generation import (
    GenerationRequest,
    GenerationStage,
    Section,
    SectionPlan,
)
from backend.tenderwriter.orchestration.planner import (
    CallerOutlinePlanner,
    DefaultOutlinePlanner,
    SectionPlanner,
    extract_requirement_items,
)
from backend.tenderwriter.orchestration.state import (
    CancelToken,
    GenerationResult,
    GenerationSession,
)
from backend.tenderwriter.utils.logging import StructuredStageLogger
from backend.tenderwriter.utils.metrics import metrics

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
ContentCallback = Callable[[str], None]

DEFAULT_INSTRUCTION = (
    "Write a complete, professional tender response that addresses every requirement "
    "and highlights the company's relevant capabilities."
)


def format_analyses(summaries: list[AnalysisSummary]) -> str:
    """Concatenate per-document summaries into one aggregate string."""
    return "".join(f"\n## Analysis of: {s.title}\n{s.text}\n" for s in summaries)


def error_block(message: str, detail: str | None = None) -> str:
    lines = [f"> **Error:** {message}"]
    if detail:
        lines.append(">")
        lines.append(f"> {detail}")
    return "\n".join(lines)


class TenderOrchestrator:
    """Runs the staged generation pipeline for one request at a time.

    Instances hold no per-run state and can serve concurrent runs.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        analyzer: DocumentAnalyzer,
        completion: CompletionClient,
        *,
        index: RetrievalIndex | None = None,
        retry_policy: RetryPolicy | None = None,
        planner: SectionPlanner | None = None,
        top_k: int = 5,
        stage_logger: StructuredStageLogger | None = None,
    ) -> None:
        self._repo = repository
        self._analyzer = analyzer
        self._completion = completion
        self._index = index
        self._retry = retry_policy or RetryPolicy()
        self._planner = planner or DefaultOutlinePlanner()
        self._top_k = top_k
        self._stage_logger = stage_logger or StructuredStageLogger()

    async def run(
        self,
        request: GenerationRequest,
        on_progress: ProgressCallback | None = None,
        on_content: ContentCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> GenerationResult:
        """Generate a tender document.

        Args:
            request: Caller instruction, contexts and optional section outline
            on_progress: Receives human-readable progress messages
            on_content: Receives markdown content blocks in document order
            cancel: Checked before every upstream call

        Returns:
            GenerationResult with the assembled markdown and final status.
            Only asyncio cancellation propagates as an exception.
        """
        session = GenerationSession(
            prompt=request.prompt,
            additional_context=request.additional_context,
            company_context=request.company_context,
            title=request.title,
        )
        cancel = cancel or CancelToken()
        planner = CallerOutlinePlanner(request.sections) if request.sections else self._planner
        run = _Run(session, on_progress, on_content)

        status = "complete"
        try:
            await self._prepare(run, cancel)
            await self._analyze(run, cancel, is_requirements=True)
            await self._analyze(run, cancel, is_requirements=False)
            await self._plan(run, planner)
            await self._write(run, cancel)
            await self._review(run, cancel)
            self._finalize(run)
            self._enter(run, GenerationStage.COMPLETE, "Document generation complete")
        except GenerationCancelledError:
            status = "cancelled"
            self._enter(run, GenerationStage.CANCELLED, "Generation cancelled")
        except AssemblyFailedError as e:
            status = "error"
            logger.warning(f"Generation {session.session_id} failed in review: {e}")
            self._fail(run, classify_error(e), str(e))
        except Exception as e:
            status = "error"
            logger.exception(f"Generation {session.session_id} failed unexpectedly")
            self._fail(run, classify_error(e), str(e))

        elapsed_ms = session.elapsed_ms()
        session.stats.elapsed_ms = elapsed_ms
        metrics.record_generation(status, elapsed_ms)
        return GenerationResult(session=session, document=run.document(), status=status)

    # Stage helpers

    def _enter(self, run: "_Run", stage: GenerationStage, message: str) -> None:
        run.session.stage = stage
        self._stage_logger.log_stage(str(run.session.session_id), stage.value, message)
        run.progress(message)

    def _fail(self, run: "_Run", kind: ErrorKind, detail: str) -> None:
        session = run.session
        session.error_kind = kind
        self._enter(run, GenerationStage.ERROR, f"Error: {user_message(kind)}")
        run.emit(f"## Error\n\n{error_block(user_message(kind), detail)}\n\n")
        run.emit(
            "## Analysis Summary\n\n"
            "The full document could not be assembled. The analyses gathered so far follow.\n\n"
            f"### Requirements Analysis\n{session.requirements_analysis or 'Not available.'}\n\n"
            f"### Company Capabilities\n{session.capabilities_analysis or 'Not available.'}\n"
        )

    async def _complete(
        self, run: "_Run", stage: GenerationStage, parts: Parts, cancel: CancelToken, target: str
    ) -> str:
        """One completion call with retry, cancellation checks and accounting."""
        session_id = str(run.session.session_id)

        async def attempt() -> str:
            cancel.throw_if_cancelled()
            return await self._completion.complete(parts, system=SYSTEM_PROMPT)

        start = time.monotonic()
        run.session.stats.record_call(stage)
        try:
            text = await self._retry.run(attempt)
        except GenerationCancelledError:
            raise
        except Exception as e:
            latency = (time.monotonic() - start) * 1000
            kind = classify_error(e)
            metrics.record_call(stage.value, kind.value)
            self._stage_logger.log_call(
                session_id, stage.value, "error", latency, target, error_reason=kind.value
            )
            raise
        latency = (time.monotonic() - start) * 1000
        metrics.record_call(stage.value, "success")
        self._stage_logger.log_call(session_id, stage.value, "success", latency, target)
        return text

    async def _prepare(self, run: "_Run", cancel: CancelToken) -> None:
        session = run.session
        self._enter(run, GenerationStage.PREPARING, "Loading documents...")
        cancel.throw_if_cancelled()

        sources = await self._repo.list_documents("requirements")
        companies = await self._repo.list_documents("capabilities")
        run.sources, run.companies = sources, companies
        session.document_ids = [d.id for d in sources + companies]

        run.progress(
            f"Found {len(sources)} source document(s) and {len(companies)} company document(s)"
        )
        if not sources:
            session.used_fallback = True
            run.progress(user_message(ErrorKind.NO_DOCUMENTS))

        run.emit(f"# {session.title}\n\n")

    async def _analyze(self, run: "_Run", cancel: CancelToken, *, is_requirements: bool) -> None:
        session = run.session
        if is_requirements:
            stage, documents, label = GenerationStage.ANALYZING_SOURCE, run.sources, "source"
        else:
            stage, documents, label = GenerationStage.ANALYZING_COMPANY, run.companies, "company"

        self._enter(run, stage, f"Analyzing {len(documents)} {label} document(s)...")

        summaries: list[AnalysisSummary] = []
        for i, document in enumerate(documents, start=1):
            cancel.throw_if_cancelled()
            run.progress(f"Analyzing {label} document {i}/{len(documents)}: {document.title}")
            summary, hit = await self._analyzer.analyze_with_hit(document, is_requirements)
            if hit:
                session.stats.cache_hits += 1
                run.progress(f"Using cached analysis for {document.title}")
            else:
                session.stats.record_call(stage)
            if summary.is_error:
                run.progress(f"Could not analyze {document.title}; continuing without it")
            summaries.append(summary)

        if is_requirements:
            session.source_summaries = summaries
            session.requirements_analysis = format_analyses(summaries)
        else:
            session.company_summaries = summaries
            session.capabilities_analysis = format_analyses(summaries)

    async def _plan(self, run: "_Run", planner: SectionPlanner) -> None:
        self._enter(run, GenerationStage.PLANNING, "Planning document structure...")
        run.session.plan = await planner.plan(run.session)
        run.progress(f"Planned {len(run.session.plan)} section(s)")

    async def _retrieve(self, run: "_Run", plan: SectionPlan) -> list[ChunkMatch]:
        if self._index is None:
            return []
        query = " ".join([plan.title, plan.description, *plan.requirements]).strip()
        try:
            matches = await self._index.query(
                query, top_k=self._top_k, flt={"category": "capabilities"}
            )
        except Exception as e:
            logger.warning(f"Retrieval failed for section '{plan.title}': {e}")
            return []
        run.session.stats.retrieved_chunks += len(matches)
        return matches

    async def _write(self, run: "_Run", cancel: CancelToken) -> None:
        session = run.session
        total = len(session.plan)
        self._enter(run, GenerationStage.WRITING, f"Writing {total} section(s)...")

        instruction = session.prompt or DEFAULT_INSTRUCTION
        if session.used_fallback:
            instruction = f"{FALLBACK_INSTRUCTION}\n\n{session.prompt or ''}".strip()

        for i, plan in enumerate(session.plan, start=1):
            cancel.throw_if_cancelled()
            run.progress(f"Writing section {i}/{total}: {plan.title}")
            passages = await self._retrieve(run, plan)
            prompt = section_prompt(
                section=plan,
                requirements_analysis=session.requirements_analysis,
                capabilities_analysis=session.capabilities_analysis,
                instruction=instruction,
                additional_context=session.additional_context,
                company_context=session.company_context,
                passages=passages,
            )
            try:
                body = await self._complete(
                    run, GenerationStage.WRITING, [TextPart(text=prompt)], cancel, plan.title
                )
                section = Section(
                    title=plan.title, body=body.strip(), requirements=plan.requirements
                )
            except GenerationCancelledError:
                raise
            except Exception as e:
                failure = SectionGenerationFailedError(plan.title, e)
                logger.warning(str(failure))
                run.progress(f"Section {plan.title} failed; continuing with the next section")
                section = Section(
                    title=plan.title,
                    body=error_block(str(failure), user_message(classify_error(failure))),
                    requirements=plan.requirements,
                    error=str(failure),
                )
            session.sections.append(section)
            run.emit(f"## {section.title}\n\n{section.body}\n\n")

    async def _review(self, run: "_Run", cancel: CancelToken) -> None:
        session = run.session
        self._enter(run, GenerationStage.REVIEWING, "Reviewing document for compliance...")
        cancel.throw_if_cancelled()

        drafted = "\n\n".join(
            f"## {s.title}\n\n{s.body}" for s in session.sections if s.error is None
        )
        prompt = review_prompt(
            title=session.title,
            drafted_sections=drafted or "No sections were drafted successfully.",
            requirements_analysis=session.requirements_analysis,
            instruction=session.prompt or DEFAULT_INSTRUCTION,
        )
        try:
            review = await self._complete(
                run, GenerationStage.REVIEWING, [TextPart(text=prompt)], cancel, "review"
            )
        except GenerationCancelledError:
            raise
        except Exception as e:
            raise AssemblyFailedError(e) from e

        session.review = review.strip()
        run.emit(f"## Compliance Review\n\n{session.review}\n\n")

    def _finalize(self, run: "_Run") -> None:
        session = run.session
        self._enter(run, GenerationStage.FINALIZING, "Finalizing document...")

        addressed = {
            req.lower() for s in session.sections if s.error is None for req in s.requirements
        }
        requirements = extract_requirement_items(
            "\n".join(s.text for s in session.source_summaries if not s.is_error)
        )
        if requirements:
            checklist = "\n".join(
                f"- [{'x' if req.lower() in addressed else ' '}] {req}" for req in requirements
            )
            run.emit(f"## Requirements Checklist\n\n{checklist}\n\n")

        session.sections = [
            s.model_copy(update={"status": "final"}) if s.error is None else s
            for s in session.sections
        ]

        stats = session.stats
        calls = ", ".join(f"{stage}: {n}" for stage, n in stats.stage_calls.items()) or "none"
        run.emit(
            "---\n\n"
            f"*Generated {len(session.sections)} section(s) in {session.elapsed_ms() / 1000:.1f}s. "
            f"Completion calls: {calls}. Cached analyses: {stats.cache_hits}. "
            f"Retrieved passages: {stats.retrieved_chunks}.*\n"
        )


class _Run:
    """Per-invocation callbacks and emitted content."""

    def __init__(
        self,
        session: GenerationSession,
        on_progress: ProgressCallback | None,
        on_content: ContentCallback | None,
    ) -> None:
        self.session = session
        self.sources: list[Document] = []
        self.companies: list[Document] = []
        self._on_progress = on_progress
        self._on_content = on_content
        self._blocks: list[str] = []

    def progress(self, message: str) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(message)
        except Exception:
            logger.exception("Progress callback raised; ignoring")

    def emit(self, block: str) -> None:
        self._blocks.append(block)
        if self._on_content is None:
            return
        try:
            self._on_content(block)
        except Exception:
            logger.exception("Content callback raised; ignoring")

    def document(self) -> str:
        return "".join(self._blocks)
