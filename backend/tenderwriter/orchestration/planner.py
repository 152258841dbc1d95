"""Section planners - decide the outline of the generated document."""

import re
from typing import Protocol

from backend.tenderwriter.models.generation import SectionPlan
from backend.tenderwriter.orchestration.state import GenerationSession

_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.*\S)\s*$")

# (title, description) in document order
TENDER_OUTLINE: list[tuple[str, str]] = [
    ("Executive Summary", "Concise overview of the proposal and why the company fits."),
    ("Understanding of Requirements", "Restate the client's needs to show they are understood."),
    ("Proposed Solution", "How the company's capabilities meet each requirement."),
    ("Implementation Approach", "Methodology, phases and project management."),
    ("Timeline", "Key milestones and delivery schedule."),
    ("Team and Experience", "Key personnel, qualifications and relevant past projects."),
    ("Pricing", "Pricing structure and value for money."),
    ("Conclusion", "Closing statement reinforcing the value proposition."),
]

GENERIC_OUTLINE: list[tuple[str, str]] = [
    ("Executive Summary", "Overview of the company and the value it offers."),
    ("Company Capabilities", "Core competencies, certifications and strengths."),
    ("Approach and Methodology", "How the company typically delivers projects."),
    ("Experience", "Representative past projects and outcomes."),
    ("Conclusion", "Closing statement and next steps."),
]

# Sections that should explicitly address the extracted requirement list
_REQUIREMENT_SECTIONS = {"Understanding of Requirements", "Proposed Solution"}


def extract_requirement_items(analysis: str) -> list[str]:
    """Collect bullet and numbered list items from a requirements analysis.

    Duplicates are dropped, first occurrence wins.
    """
    items: list[str] = []
    seen: set[str] = set()
    for line in analysis.splitlines():
        match = _BULLET.match(line)
        if not match:
            continue
        item = match.group(1).strip().strip("*").strip()
        key = item.lower()
        if item and key not in seen:
            seen.add(key)
            items.append(item)
    return items


class SectionPlanner(Protocol):
    """Protocol for outline planners."""

    async def plan(self, session: GenerationSession) -> list[SectionPlan]:
        """Return the ordered sections to draft for this session."""
        ...


class DefaultOutlinePlanner:
    """Fixed tender outline, or a generic outline when no requirements exist."""

    async def plan(self, session: GenerationSession) -> list[SectionPlan]:
        if session.used_fallback:
            return [SectionPlan(title=t, description=d) for t, d in GENERIC_OUTLINE]

        requirements = extract_requirement_items(
            "\n".join(s.text for s in session.source_summaries if not s.is_error)
        )
        return [
            SectionPlan(
                title=title,
                description=description,
                requirements=requirements if title in _REQUIREMENT_SECTIONS else [],
            )
            for title, description in TENDER_OUTLINE
        ]


class CallerOutlinePlanner:
    """Uses the sections supplied with the request, in the given order."""

    def __init__(self, sections: list[SectionPlan]) -> None:
        if not sections:
            raise ValueError("CallerOutlinePlanner requires at least one section")
        self._sections = list(sections)

    async def plan(self, session: GenerationSession) -> list[SectionPlan]:
        return list(self._sections)
