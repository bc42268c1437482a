"""Short supporting analyses that enrich a cited legal answer."""
from __future__ import annotations

import asyncio
import logging
from string import Template
from typing import Any, Dict, List, Sequence

from legal_research.models import LegalCase

logger = logging.getLogger(__name__)

INSIGHT_MAX_TOKENS = 200
BIAS_MAX_TOKENS = 150

EMOTIONAL = Template(
    """Analyze the emotional and interpersonal dynamics in this legal research query and the related cases.

QUERY: "$query"
RELATED CASES:
$cases

Cover the emotional tone, the interpersonal dynamics that may affect outcomes and how to handle them.
Answer in 2-3 sentences."""
)

BIAS = Template(
    """Review this legal research for potential bias.

QUERY: "$query"
CASE SUMMARIES: $summaries

Consider demographic, geographic, temporal and selection bias. Answer in 1-2 sentences."""
)

PREDICTIVE = Template(
    """Give a short predictive outlook for this legal question.

QUERY: "$query"
CASE TRENDS: $trends

Cover likely trends, risk factors and strategy. Answer in 2-3 sentences."""
)

TRANSPARENT = Template(
    """Explain the reasoning that links these cases to the question.

QUERY: "$query"
SELECTED CASES: $titles

Cover why the cases were chosen and the legal principles connecting them. Answer in 2-3 sentences."""
)

MULTI_DOCUMENT = Template(
    """Compare these sources for the legal question.

QUERY: "$query"
DOCUMENTS:
$documents

Cover shared patterns, conflicts between sources and an overall synthesis. Answer in 2-3 sentences."""
)

ADAPTIVE = Template(
    """Identify what is novel about this legal scenario.

LEGAL SCENARIO: "$query"
EXISTING PATTERNS: $titles
CONTEXT: $context

Cover the novel aspects and how existing precedent does or does not apply. Answer in 2-3 sentences."""
)


def _titles(cases: Sequence[LegalCase], count: int) -> str:
    return ", ".join(legal_case.title for legal_case in cases[:count])


def _summaries(cases: Sequence[LegalCase], count: int) -> str:
    return " ".join(legal_case.summary or "" for legal_case in cases[:count]).strip()


def _case_lines(cases: Sequence[LegalCase]) -> str:
    return "\n".join(f"- {legal_case.title}: {legal_case.summary or ''}" for legal_case in cases)


def build_insight_prompts(query: str, cases: Sequence[LegalCase]) -> Dict[str, str]:
    """Render the six insight prompts keyed by insight name."""

    return {
        "emotional": EMOTIONAL.substitute(query=query, cases=_case_lines(cases[:3])),
        "bias": BIAS.substitute(query=query, summaries=_summaries(cases, 3)),
        "predictive": PREDICTIVE.substitute(
            query=query,
            trends=", ".join(f"{c.title} ({c.year or 'n.d.'})" for c in cases[:5]),
        ),
        "transparent": TRANSPARENT.substitute(query=query, titles=_titles(cases, 3)),
        "multi_document": MULTI_DOCUMENT.substitute(query=query, documents=_case_lines(cases)),
        "adaptive": ADAPTIVE.substitute(query=query, titles=_titles(cases, 3), context=_summaries(cases, 2)),
    }


class InsightAgent:
    """Runs the supporting analyses concurrently; each one is optional."""

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    async def _run(self, name: str, prompt: str) -> str:
        max_tokens = BIAS_MAX_TOKENS if name == "bias" else INSIGHT_MAX_TOKENS
        try:
            return (await self.llm.complete(prompt, max_tokens=max_tokens)) or ""
        except Exception as exc:
            logger.warning("Insight %s failed: %s", name, exc)
            return ""

    async def gather(self, query: str, cases: Sequence[LegalCase]) -> Dict[str, str]:
        prompts = build_insight_prompts(query, cases)
        names: List[str] = list(prompts)
        results = await asyncio.gather(*(self._run(name, prompts[name]) for name in names))
        return dict(zip(names, results))
