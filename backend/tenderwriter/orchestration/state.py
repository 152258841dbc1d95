"""Generation session state for orchestration."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal
from uuid import UUID, uuid4

from backend.tenderwriter.errors import ErrorKind, GenerationCancelledError
from backend.tenderwriter.models.analysis import AnalysisSummary
from backend.tenderwriter.models.generation import (
    GenerationStage,
    GenerationStats,
    Section,
    SectionPlan,
)

RunStatus = Literal["complete", "error", "cancelled"]


@dataclass
class CancelToken:
    """Token for cancellation signaling."""

    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    def throw_if_cancelled(self) -> None:
        """Raise GenerationCancelledError if cancelled."""
        if self.cancelled:
            raise GenerationCancelledError("generation cancelled")


@dataclass
class GenerationSession:
    """State for one orchestrator invocation. Never persisted."""

    prompt: str | None = None
    additional_context: str | None = None
    company_context: str | None = None
    title: str = "Tender Response"
    session_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    stage: GenerationStage = GenerationStage.PREPARING

    # Inputs resolved during preparing
    document_ids: list[UUID] = field(default_factory=list)
    used_fallback: bool = False

    # Analysis outputs
    source_summaries: list[AnalysisSummary] = field(default_factory=list)
    company_summaries: list[AnalysisSummary] = field(default_factory=list)
    requirements_analysis: str = ""
    capabilities_analysis: str = ""

    # Planning and writing
    plan: list[SectionPlan] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    review: str | None = None

    # Terminal state
    error_kind: ErrorKind | None = None
    stats: GenerationStats = field(default_factory=GenerationStats)
    _started: float = field(default_factory=time.monotonic, repr=False)

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self._started) * 1000

    @property
    def failed_sections(self) -> list[Section]:
        return [s for s in self.sections if s.error is not None]


@dataclass
class GenerationResult:
    """Outcome of one orchestrator run."""

    session: GenerationSession
    document: str
    status: RunStatus
