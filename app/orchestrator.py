"""Research pipeline: search, rank, cite, enrich and stream an answer."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from legal_research.citations import (
    prepare_case_citations,
    prepare_paper_citations,
    renumber_citation_tokens,
)
from legal_research.models import CitationToken, LegalCase, Paper, QueryAnalysis
from legal_research.query_analysis import (
    analyze_legal_query,
    analyze_paper_query,
    build_legal_queries,
    build_paper_queries,
    per_query_limit,
)
from legal_research.safety import QuerySafety, SafetyProcessor
from legal_research.search_ranking import select_cases, select_papers

from app.agents.insights import InsightAgent
from app.agents.writer import WriterAgent
from app.observability import MetricsEmitter

logger = logging.getLogger(__name__)

Event = Dict[str, Any]

SCHOLAR_MAX_RESULTS = 10

NO_CASES_MESSAGE = (
    "No legal cases found. This may be because no search API keys are configured, "
    "the query did not match any available data, or the search services are unavailable."
)
NO_PAPERS_MESSAGE = "No papers found. Try rephrasing with different keywords."
NO_LEGAL_ANSWER = "No response generated. Please try rephrasing your legal question."
NO_PAPER_ANSWER = "No response generated. Please try rephrasing your question."


def status(content: str) -> Event:
    return {"type": "status", "content": content}


def citation_event(token: CitationToken, index: int) -> Event:
    return {
        "type": "citation",
        "key": token.key,
        "citation": token.citation.to_dict(),
        "in_text": token.in_text,
        "reference": token.reference,
        "index": index,
    }


class ResearchPipeline:
    """Coordinates the search clients, insight agent and writer for one query.

    Both stream methods are async generators of event dicts. Failures after the
    stream has started surface as a final ``error`` event.
    """

    def __init__(
        self,
        *,
        case_search: Any,
        scholar_search: Optional[Any],
        paper_search: Any,
        insights: InsightAgent,
        writer: WriterAgent,
        safety: SafetyProcessor,
        metrics: Optional[MetricsEmitter] = None,
    ) -> None:
        self.case_search = case_search
        self.scholar_search = scholar_search
        self.paper_search = paper_search
        self.insights = insights
        self.writer = writer
        self.safety = safety
        self.metrics = metrics or MetricsEmitter()

    def check_query(self, query: str) -> QuerySafety:
        """Screen a query before streaming; a critical result blocks it."""

        analysis = self.safety.analyze_query_safety(query)
        if analysis.blocked:
            logger.warning("Blocked query with %d safety warnings", len(analysis.warnings))
            self.metrics.emit_safety_block(analysis.risk_level, len(analysis.warnings))
        return analysis

    async def search_cases(self, query: str, analysis: QueryAnalysis) -> List[LegalCase]:
        queries = build_legal_queries(query, analysis.search_variations)
        limit = per_query_limit(analysis.target_count, len(queries))
        batches = await asyncio.gather(*(self.case_search.search(q, limit) for q in queries))
        cases = [legal_case for batch in batches for legal_case in batch]
        self.metrics.emit_search("courtlistener", query, len(cases))

        if self.scholar_search is not None:
            scholar_cases = await self.scholar_search.search(
                query, min(SCHOLAR_MAX_RESULTS, analysis.target_count)
            )
            self.metrics.emit_search("scholar", query, len(scholar_cases))
            cases.extend(scholar_cases)
        logger.info("Collected %d candidate cases for %r", len(cases), query)
        return cases

    async def search_papers(self, query: str, analysis: QueryAnalysis) -> List[Paper]:
        queries = build_paper_queries(query, analysis.search_variations)
        limit = per_query_limit(analysis.target_count, len(queries))
        batches = await asyncio.gather(*(self.paper_search.search(q, limit) for q in queries))
        papers = [paper for batch in batches for paper in batch]
        self.metrics.emit_search("semantic_scholar", query, len(papers))
        return papers

    async def stream_legal(self, query: str, safety: Optional[QuerySafety] = None) -> AsyncIterator[Event]:
        """Stream a cited case-law answer with safety annotations."""

        try:
            query_safety = safety or self.safety.analyze_query_safety(query)
            analysis = analyze_legal_query(query)
            yield status(
                f"Searching {analysis.target_count} legal cases across {analysis.search_variations} queries..."
            )
            if query_safety.warnings:
                yield {"type": "warning", "content": f"AI Safety Alert: {'; '.join(query_safety.warnings)}"}

            candidates = await self.search_cases(query, analysis)
            if not candidates:
                self.metrics.emit_search_empty_results(query)
                self.metrics.emit_stream_outcome("legal", "empty")
                yield {"type": "error", "content": NO_CASES_MESSAGE}
                return

            selected = select_cases(candidates, analysis.target_count)
            tokens = prepare_case_citations(selected)
            for index, token in enumerate(tokens, start=1):
                yield citation_event(token, index)

            yield status(f"Analyzing {len(selected)} relevant legal cases...")
            yield status("Running bias, predictive and cross-document analyses...")
            insights = await self.insights.gather(query, selected)

            parts: List[str] = []
            async for chunk in self.writer.stream_legal(query, tokens, insights):
                parts.append(chunk)
                yield {"type": "text", "content": chunk}

            full_text = "".join(parts)
            if full_text:
                review = self.safety.analyze_response_safety(renumber_citation_tokens(full_text))
                if not review.is_safe:
                    yield {"type": "warning", "content": f"Safety Alert: {'; '.join(review.issues)}"}
                if review.suggestions:
                    yield {"type": "info", "content": f"Quality Check: {'; '.join(review.suggestions)}"}
            else:
                yield {"type": "text", "content": NO_LEGAL_ANSWER}

            self.metrics.emit_stream_outcome("legal", "complete", citations=len(tokens))
            yield {"type": "complete"}
        except Exception as exc:
            logger.exception("Legal research stream failed: %s", exc)
            self.metrics.emit_stream_outcome("legal", "error")
            yield {"type": "error", "content": str(exc) or "An error occurred"}

    async def stream_papers(self, query: str) -> AsyncIterator[Event]:
        """Stream a cited literature answer from Semantic Scholar results."""

        try:
            analysis = analyze_paper_query(query)
            yield status(
                f"Searching {analysis.target_count} papers across {analysis.search_variations} queries..."
            )

            candidates = await self.search_papers(query, analysis)
            if not candidates:
                self.metrics.emit_search_empty_results(query)
                self.metrics.emit_stream_outcome("papers", "empty")
                yield {"type": "error", "content": NO_PAPERS_MESSAGE}
                return

            selected = select_papers(candidates, analysis.target_count)
            tokens = prepare_paper_citations(selected)
            for index, token in enumerate(tokens, start=1):
                yield citation_event(token, index)

            yield status(f"Analyzing {len(selected)} high-quality papers...")

            has_content = False
            async for chunk in self.writer.stream_papers(query, tokens):
                has_content = True
                yield {"type": "text", "content": chunk}
            if not has_content:
                yield {"type": "text", "content": NO_PAPER_ANSWER}

            self.metrics.emit_stream_outcome("papers", "complete", citations=len(tokens))
            yield {"type": "complete"}
        except Exception as exc:
            logger.exception("Paper research stream failed: %s", exc)
            self.metrics.emit_stream_outcome("papers", "error")
            yield {"type": "error", "content": str(exc) or "An error occurred"}
