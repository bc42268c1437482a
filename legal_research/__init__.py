"""Framework-free legal research utilities: ranking, citations, prompts and safety checks."""

from .citations import (
    format_reference_apa,
    prepare_case_citations,
    prepare_paper_citations,
    renumber_citation_tokens,
)
from .models import Citation, CitationToken, CitationType, LegalCase, Paper, QueryAnalysis
from .query_analysis import analyze_legal_query, analyze_paper_query
from .safety import Incident, SafetyProcessor
from .search_ranking import select_cases, select_papers

__all__ = [
    "Citation",
    "CitationToken",
    "CitationType",
    "Incident",
    "LegalCase",
    "Paper",
    "QueryAnalysis",
    "SafetyProcessor",
    "analyze_legal_query",
    "analyze_paper_query",
    "format_reference_apa",
    "prepare_case_citations",
    "prepare_paper_citations",
    "renumber_citation_tokens",
    "select_cases",
    "select_papers",
]
