"""Citation formatting and ``[[C#]]`` token handling for generated answers."""
import re
from typing import Iterable, List, Optional

from .models import Citation, CitationToken, CitationType, LegalCase, Paper

LEGAL_REPORTER_MARKERS = ("F.", "U.S.", "S.Ct.")

CITATION_TOKEN_PATTERN = re.compile(r"\[\[C(\d+)\]\]")
_VERSUS_PATTERN = re.compile(r"\s+v\.\s+", re.IGNORECASE)
_WHITESPACE_PATTERN = re.compile(r"\s+")

PAPER_SUMMARY_LIMIT = 400


def format_case_name(case_name: str) -> str:
    """Normalize the spacing around ``v.`` in a case caption."""

    return _VERSUS_PATTERN.sub(" v. ", case_name).strip()


def _year_text(year: Optional[int]) -> str:
    return str(year) if year is not None else ""


def format_legal_citation(citation: Citation) -> str:
    """Render a case citation in reporter form when volume and page are known."""

    case_name = format_case_name(citation.title)
    volume = citation.volume or ""
    reporter = citation.journal or ""
    page = citation.page or ""
    year = _year_text(citation.year)

    if reporter and volume and page:
        return f"{case_name}, {volume} {reporter} {page} ({year})"
    return f"{case_name} ({year})"


def format_in_text_citation(citation: Citation) -> str:
    """Short form used inside prose, e.g. ``Smith v. Jones (2019)``."""

    case_name = format_case_name(citation.title)
    year = _year_text(citation.year)
    return f"{case_name} ({year})" if year else case_name


def is_legal_reporter(journal: Optional[str]) -> bool:
    return bool(journal) and any(marker in journal for marker in LEGAL_REPORTER_MARKERS)


def format_reference_apa(citation: Citation) -> str:
    """Render the reference-list entry.

    Case law published in a federal or Supreme Court reporter keeps its legal
    form; everything else falls back to an APA-style academic reference.
    """

    if is_legal_reporter(citation.journal):
        return format_legal_citation(citation)

    authors = ", ".join(citation.authors)
    year = f"({citation.year})" if citation.year else "(n.d.)"
    title = citation.title.strip()
    venue = f" {citation.journal}." if citation.journal else ""
    return _WHITESPACE_PATTERN.sub(" ", f"{authors} {year}. {title}.{venue}").strip()


def _token(index: int, citation: Citation, summary: str) -> CitationToken:
    return CitationToken(
        key=f"C{index + 1}",
        citation=citation,
        in_text=format_in_text_citation(citation),
        reference=format_reference_apa(citation),
        summary=summary,
    )


def prepare_case_citations(cases: Iterable[LegalCase]) -> List[CitationToken]:
    """Number selected cases ``C1..Cn`` and attach formatted citations."""

    tokens: List[CitationToken] = []
    for index, legal_case in enumerate(cases):
        citation = Citation(
            id=legal_case.case_id,
            title=legal_case.title,
            authors=[legal_case.court or "Unknown Court"],
            year=legal_case.year,
            journal=legal_case.citation,
            url=legal_case.url,
            court=legal_case.court,
            citation_type=CitationType.CASE,
        )
        tokens.append(_token(index, citation, legal_case.summary or "No summary available."))
    return tokens


def prepare_paper_citations(papers: Iterable[Paper]) -> List[CitationToken]:
    """Number selected papers ``C1..Cn`` and attach formatted citations."""

    tokens: List[CitationToken] = []
    for index, paper in enumerate(papers):
        citation = Citation(
            id=paper.paper_id,
            title=paper.title,
            authors=list(paper.authors),
            year=paper.year,
            journal=paper.venue,
            url=paper.url,
        )
        if paper.tldr:
            summary = paper.tldr
        elif paper.abstract:
            summary = paper.abstract[:PAPER_SUMMARY_LIMIT]
        else:
            summary = "No abstract available."
        tokens.append(_token(index, citation, summary))
    return tokens


def renumber_citation_tokens(text: str) -> str:
    """Renumber ``[[C#]]`` tokens so they count up in order of first use.

    Repeated references to the same source keep sharing one number.
    """

    mapping = {}

    def replace(match: "re.Match[str]") -> str:
        original = match.group(1)
        if original not in mapping:
            mapping[original] = len(mapping) + 1
        return f"[[C{mapping[original]}]]"

    return CITATION_TOKEN_PATTERN.sub(replace, text)


def extract_citation_keys(text: str) -> List[str]:
    """Return the distinct cited keys (``C1``...) in order of first appearance."""

    seen: List[str] = []
    for match in CITATION_TOKEN_PATTERN.finditer(text):
        key = f"C{match.group(1)}"
        if key not in seen:
            seen.append(key)
    return seen
