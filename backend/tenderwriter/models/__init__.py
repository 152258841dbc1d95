"""Models package - re-exports for convenience."""

from backend.tenderwriter.models.analysis import AnalysisSummary, SummaryRole
from backend.tenderwriter.models.documents import (
    Chunk,
    ChunkMatch,
    ContentPart,
    Document,
    DocumentCategory,
    FilePart,
    FileType,
    IndexFailure,
    IndexReport,
    TextPart,
    binary_placeholder,
)
from backend.tenderwriter.models.generation import (
    GenerationRequest,
    GenerationStage,
    GenerationStats,
    Section,
    SectionPlan,
)

__all__ = [
    # Documents
    "Chunk",
    "ChunkMatch",
    "ContentPart",
    "Document",
    "DocumentCategory",
    "FilePart",
    "FileType",
    "IndexFailure",
    "IndexReport",
    "TextPart",
    "binary_placeholder",
    # Analysis
    "AnalysisSummary",
    "SummaryRole",
    # Generation
    "GenerationRequest",
    "GenerationStage",
    "GenerationStats",
    "Section",
    "SectionPlan",
]
