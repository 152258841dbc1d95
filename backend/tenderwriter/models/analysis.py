"""Analysis summary model."""

from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from backend.tenderwriter.errors import ErrorKind

SummaryRole = Literal["requirements", "capabilities"]


class AnalysisSummary(BaseModel):
    """Condensed extraction of one document, cached by document id.

    Error summaries are cached too; downstream stages treat them as
    low-confidence content rather than a hard fault.
    """

    document_id: UUID
    title: str
    role: SummaryRole
    text: str
    is_error: bool = False
    error_kind: ErrorKind | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
