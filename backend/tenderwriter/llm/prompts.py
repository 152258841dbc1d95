"""Prompt templates for analysis, section drafting and final review."""

from collections.abc import Sequence

from backend.tenderwriter.models.documents import ChunkMatch
from backend.tenderwriter.models.generation import SectionPlan

SYSTEM_PROMPT = (
    "You are an expert tender writer. You produce professional, compliant and "
    "persuasive tender responses in well-structured markdown. Only state company "
    "capabilities that appear in the provided material; if information is missing, "
    "say so rather than inventing details."
)

REQUIREMENTS_ANALYSIS_PROMPT = """Analyze this tender requirement document and extract key requirements, constraints, and evaluation criteria.
Focus on:
1. Mandatory requirements
2. Technical specifications
3. Compliance criteria
4. Evaluation metrics
5. Budget constraints
6. Timeline requirements
7. Required certifications or qualifications
8. Key deliverables

List each requirement as a markdown bullet ("- ") so it can be tracked in a checklist.
Format your response in clear, structured markdown."""

CAPABILITIES_ANALYSIS_PROMPT = """Analyze this company document and extract key capabilities, strengths, and qualifications.
Focus on:
1. Core competencies
2. Technical capabilities
3. Past experience and success stories
4. Certifications and qualifications
5. Unique selling points
6. Team expertise
7. Methodologies and approaches

Format your response in clear, structured markdown."""

FALLBACK_INSTRUCTION = (
    "No tender requirement documents were provided. Generate a generic, professional "
    "tender response document that a company could adapt, using placeholders where "
    "tender-specific details would normally appear."
)


def analysis_prompt(is_requirements: bool) -> str:
    return REQUIREMENTS_ANALYSIS_PROMPT if is_requirements else CAPABILITIES_ANALYSIS_PROMPT


def truncation_note(original_length: int) -> str:
    return (
        f"\n\n[Content truncated due to size limitations. "
        f"Original size: {original_length} characters]"
    )


def format_passages(matches: Sequence[ChunkMatch], max_chars: int = 1500) -> str:
    """Render retrieval hits as numbered reference passages."""
    blocks = []
    for i, match in enumerate(matches, start=1):
        text = match.chunk.text
        if len(text) > max_chars:
            text = text[:max_chars] + "..."
        blocks.append(
            f"Document {i} ({match.chunk.title}, relevance {match.score:.2f}):\n{text}"
        )
    return "\n\n".join(blocks)


def section_prompt(
    *,
    section: SectionPlan,
    requirements_analysis: str,
    capabilities_analysis: str,
    instruction: str,
    additional_context: str | None,
    company_context: str | None,
    passages: Sequence[ChunkMatch],
) -> str:
    """Build the drafting prompt for one section."""
    lines = [f'Write the tender section titled "{section.title}".']
    if section.description:
        lines.append(f"Section purpose: {section.description}")
    if section.requirements:
        lines.append("Requirements this section must address:")
        lines.extend(f"- {req}" for req in section.requirements)
    lines.append("")
    lines.append("## Instruction")
    lines.append(instruction)
    if additional_context:
        lines.append("")
        lines.append("## Additional Context")
        lines.append(additional_context)
    if company_context:
        lines.append("")
        lines.append("## Company Context")
        lines.append(company_context)
    lines.append("")
    lines.append("## Requirements Analysis")
    lines.append(requirements_analysis or "No requirements analysis available.")
    lines.append("")
    lines.append("## Company Capabilities")
    lines.append(capabilities_analysis or "No company capabilities analysis available.")
    if passages:
        lines.append("")
        lines.append("## Relevant Company Material")
        lines.append(format_passages(passages))
    lines.append("")
    lines.append(
        "Use professional, clear language appropriate for a formal tender response. "
        "Format the content with headings and bullet points where needed. "
        "Do not repeat the section title as a heading."
    )
    return "\n".join(lines)


def review_prompt(
    *, title: str, drafted_sections: str, requirements_analysis: str, instruction: str
) -> str:
    """Build the final review/assembly prompt over all drafted sections."""
    return "\n".join(
        [
            f'Review the drafted tender response "{title}" below.',
            "Write a short compliance review that states which requirements are addressed, "
            "flags any gaps, and ends with a concise closing summary for the evaluators.",
            "",
            "## Instruction",
            instruction,
            "",
            "## Requirements Analysis",
            requirements_analysis or "No requirements analysis available.",
            "",
            "## Drafted Sections",
            drafted_sections,
        ]
    )


def summarize_prompt(query: str, passages: Sequence[ChunkMatch]) -> str:
    return f"""I need a comprehensive summary of the following documents in relation to this query: "{query}"

{format_passages(passages, max_chars=1000)}

Please provide:
1. A concise summary of the key information from these documents that's relevant to the query
2. Important points that should be considered when addressing the query
3. Any contradictions or gaps in the information

Format your response as a well-structured summary that could be used in a tender document."""


def extract_requirements_prompt(passages: Sequence[ChunkMatch]) -> str:
    return f"""Extract all explicit and implicit requirements from the following documents:

{format_passages(passages)}

For each requirement:
1. State it clearly and concisely
2. Indicate if it's mandatory or optional (when specified)
3. Include any metrics, deadlines, or specific constraints mentioned

Format your response as a JSON array of requirement strings.
Example: ["Must provide 24/7 customer support", "System uptime must be at least 99.9%"]"""


def generate_section_prompt(section_title: str, passages: Sequence[ChunkMatch]) -> str:
    return f"""Generate a professional tender section titled "{section_title}" based on the following reference documents:

{format_passages(passages)}

Your task is to:
1. Create a well-structured section that addresses all requirements related to "{section_title}"
2. Include specific details from the reference documents where relevant
3. Use professional, clear language appropriate for a formal tender response
4. Be comprehensive but concise
5. Format the content with appropriate headings and bullet points where needed"""


def chat_system_prompt() -> str:
    return (
        "You are a helpful assistant for writing and improving tender responses. "
        "Answer concisely in markdown."
    )
