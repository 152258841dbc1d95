"""Tender generation models - requests, planned sections, drafted sections."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class GenerationStage(str, Enum):
    """Pipeline stages, executed in this order."""

    PREPARING = "preparing"
    ANALYZING_SOURCE = "analyzing_source"
    ANALYZING_COMPANY = "analyzing_company"
    PLANNING = "planning"
    WRITING = "writing"
    REVIEWING = "reviewing"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"


class SectionPlan(BaseModel):
    """One planned section of the output document."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    requirements: list[str] = Field(default_factory=list)


class Section(BaseModel):
    """Drafted section of the output document."""

    title: str
    body: str
    requirements: list[str] = Field(default_factory=list)
    status: Literal["draft", "final"] = "draft"
    error: str | None = None


class GenerationRequest(BaseModel):
    """Input to one generation run."""

    title: str = "Tender Response"
    prompt: str | None = None
    additional_context: str | None = None
    company_context: str | None = None
    sections: list[SectionPlan] | None = None


class GenerationStats(BaseModel):
    """Aggregate statistics for one run."""

    elapsed_ms: float = 0.0
    stage_calls: dict[str, int] = Field(default_factory=dict)
    cache_hits: int = 0
    retrieved_chunks: int = 0

    def record_call(self, stage: GenerationStage) -> None:
        self.stage_calls[stage.value] = self.stage_calls.get(stage.value, 0) + 1
