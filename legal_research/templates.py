from __future__ import annotations

from string import Template
from typing import Iterable, Mapping, Sequence

from .models import CitationToken

CITATION_RULES = """CITATION RULES:
- Cite with [[C#]] tokens immediately after the claim they support.
- Several sources: "This is supported by [[C1]][[C3]]."
- Only use keys listed under AVAILABLE SOURCES."""

FORMAT_RULES = """RESPONSE FORMAT:
- Plain prose in complete paragraphs, no markdown headings, bold or bullets.
- Start directly with the content, no preamble."""


LEGAL_ANSWER = Template(
    """Query: "$query"

$format_rules

$citation_rules
- Use each citation number once where possible and spread them across the answer.

CONTENT:
- Focus on precedents, the legal principles they establish and how courts apply them.
- Recommend consulting a licensed attorney for advice on a specific matter.

AVAILABLE LEGAL SOURCES:
$context

CITATION MAPPING:
$mapping
$insights
Answer:"""
)

PAPER_ANSWER = Template(
    """Research Query: "$query"

$format_rules

$citation_rules

CONTENT:
- Adapt the structure to the question: comparisons contrast approaches, "latest"
  questions focus on recent papers, technical questions explain mechanisms.

AVAILABLE SOURCES:
$context

CITATION MAPPING:
$mapping

Answer:"""
)

INSIGHT_LABELS = {
    "emotional": "EMOTIONAL DYNAMICS",
    "bias": "BIAS REVIEW",
    "predictive": "PREDICTIVE OUTLOOK",
    "transparent": "REASONING",
    "multi_document": "CROSS-DOCUMENT PATTERNS",
    "adaptive": "NOVEL ASPECTS",
}

SOURCE_SEPARATOR = "\n\n---\n\n"


def _case_context(tokens: Sequence[CitationToken]) -> str:
    blocks = []
    for token in tokens:
        citation = token.citation
        blocks.append(
            "\n".join(
                [
                    f"{token.marker} {citation.title}",
                    f"Court: {citation.authors[0] if citation.authors else 'Unknown'}",
                    f"Year: {citation.year or 'n.d.'} | Citation: {citation.journal or 'Unknown'}",
                    f"Summary: {token.summary}",
                ]
            )
        )
    return SOURCE_SEPARATOR.join(blocks)


def _paper_context(tokens: Sequence[CitationToken]) -> str:
    blocks = []
    for token in tokens:
        citation = token.citation
        blocks.append(
            "\n".join(
                [
                    f"{token.marker} {citation.title}",
                    f"Authors: {', '.join(citation.authors)}",
                    f"Year: {citation.year or 'n.d.'} | Venue: {citation.journal or 'Unknown'}",
                    f"Summary: {token.summary}",
                ]
            )
        )
    return SOURCE_SEPARATOR.join(blocks)


def render_citation_mapping(tokens: Iterable[CitationToken]) -> str:
    return "\n".join(f"{token.marker} -> {token.in_text}" for token in tokens)


def render_insights(insights: Mapping[str, str]) -> str:
    """Render the non-empty insight lines; empty analyses are left out."""

    lines = [
        f"{INSIGHT_LABELS.get(name, name.upper())}: {text.strip()}"
        for name, text in insights.items()
        if text and text.strip()
    ]
    if not lines:
        return ""
    return "\nSUPPORTING ANALYSIS:\n" + "\n".join(lines) + "\n"


def render_legal_prompt(
    query: str,
    tokens: Sequence[CitationToken],
    insights: Mapping[str, str] | None = None,
) -> str:
    """Render the prompt for a cited legal-research answer."""

    return LEGAL_ANSWER.safe_substitute(
        query=query,
        format_rules=FORMAT_RULES,
        citation_rules=CITATION_RULES,
        context=_case_context(tokens),
        mapping=render_citation_mapping(tokens),
        insights=render_insights(insights or {}),
    )


def render_paper_prompt(query: str, tokens: Sequence[CitationToken]) -> str:
    """Render the prompt for a cited literature answer."""

    return PAPER_ANSWER.safe_substitute(
        query=query,
        format_rules=FORMAT_RULES,
        citation_rules=CITATION_RULES,
        context=_paper_context(tokens),
        mapping=render_citation_mapping(tokens),
    )
