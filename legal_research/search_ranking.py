import math
from collections import Counter
from datetime import date
from typing import Callable, Hashable, Iterable, List, Optional, Sequence, TypeVar

from .models import LegalCase, Paper, Scored

T = TypeVar("T")

TOP_COURTS = (
    "U.S. Supreme Court",
    "U.S. Court of Appeals",
    "U.S. District Court",
    "State Supreme Court",
)

TOP_VENUES = (
    "NeurIPS",
    "ICML",
    "ICLR",
    "ACL",
    "EMNLP",
    "CVPR",
    "ICCV",
    "Nature",
    "Science",
    "Cell",
    "PNAS",
    "JMLR",
)

CASE_WEIGHTS = {"recency": 0.40, "court": 0.35, "summary": 0.25}
PAPER_WEIGHTS = {"citations": 0.30, "recency": 0.25, "venue": 0.25, "abstract": 0.20}

# Case law ages more slowly than research papers.
CASE_RECENCY_DECAY_YEARS = 20
PAPER_RECENCY_DECAY_YEARS = 5

MAX_SELECTED_CASES = 20
MAX_CASES_PER_COURT = 2
MAX_CASES_PER_YEAR = 3

MAX_SELECTED_PAPERS = 25
MAX_PAPERS_PER_AUTHOR = 2
MAX_PAPERS_PER_YEAR = 5

UNKNOWN_COURT = "Unknown"


def _current_year(current_year: Optional[int]) -> int:
    return current_year if current_year is not None else date.today().year


def dedupe(items: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
    """Drop repeated items, keeping the first occurrence of each id."""

    seen = set()
    unique: List[T] = []
    for item in items:
        identifier = key(item)
        if identifier in seen:
            continue
        seen.add(identifier)
        unique.append(item)
    return unique


def score_court(court: Optional[str]) -> float:
    if not court:
        return 0.3
    return 1.0 if any(top in court for top in TOP_COURTS) else 0.5


def score_case(legal_case: LegalCase, current_year: Optional[int] = None) -> float:
    """Weighted blend of recency, court authority and summary richness."""

    age = _current_year(current_year) - (legal_case.year or 1900)
    recency = math.exp(-age / CASE_RECENCY_DECAY_YEARS)
    court = score_court(legal_case.court)
    summary = 1.0 if len(legal_case.summary or "") > 100 else 0.5
    return (
        CASE_WEIGHTS["recency"] * recency
        + CASE_WEIGHTS["court"] * court
        + CASE_WEIGHTS["summary"] * summary
    )


def score_venue(venue: Optional[str]) -> float:
    if not venue:
        return 0.3
    upper = venue.upper()
    return 1.0 if any(top.upper() in upper for top in TOP_VENUES) else 0.5


def score_paper(paper: Paper, current_year: Optional[int] = None) -> float:
    """Weighted blend of citation impact, recency, venue and abstract quality."""

    citations = math.log10((paper.citation_count or 1) + 1) / 4
    age = _current_year(current_year) - (paper.year or 2000)
    recency = math.exp(-age / PAPER_RECENCY_DECAY_YEARS)
    venue = score_venue(paper.venue)
    if paper.tldr:
        abstract = 1.0
    elif len(paper.abstract or "") > 200:
        abstract = 0.7
    else:
        abstract = 0.3
    return (
        PAPER_WEIGHTS["citations"] * citations
        + PAPER_WEIGHTS["recency"] * recency
        + PAPER_WEIGHTS["venue"] * venue
        + PAPER_WEIGHTS["abstract"] * abstract
    )


def select_diverse(
    scored: Sequence[Scored[T]],
    target: int,
    *,
    group_key: Callable[[T], Optional[Hashable]],
    year_of: Callable[[T], Optional[int]],
    max_per_group: int,
    max_per_year: int,
) -> List[T]:
    """
    Greedily pick the highest scoring items while capping repeats.

    Args:
        scored: items paired with their scores.
        target: maximum number of items to return.
        group_key: extracts the grouping value (court, first author); ``None``
            means the item is never limited by group.
        year_of: extracts the year; missing years share the bucket ``0``.
        max_per_group: cap on items sharing a group value.
        max_per_year: cap on items sharing a year.

    Returns:
        Selected items ordered by descending score. Ties keep input order.
    """

    ranked = sorted(scored, key=lambda entry: entry.score, reverse=True)
    selected: List[T] = []
    per_group: Counter = Counter()
    per_year: Counter = Counter()

    for entry in ranked:
        if len(selected) >= target:
            break

        group = group_key(entry.item)
        year = year_of(entry.item) or 0

        if group is not None and per_group[group] >= max_per_group:
            continue
        if per_year[year] >= max_per_year:
            continue

        selected.append(entry.item)
        if group is not None:
            per_group[group] += 1
        per_year[year] += 1

    return selected


def select_cases(
    cases: Iterable[LegalCase], target: int, current_year: Optional[int] = None
) -> List[LegalCase]:
    """Dedupe, score and diversify case-law results across courts and years."""

    unique = dedupe(cases, key=lambda legal_case: legal_case.case_id)
    scored = [Scored(item=legal_case, score=score_case(legal_case, current_year)) for legal_case in unique]
    return select_diverse(
        scored,
        min(target, MAX_SELECTED_CASES),
        group_key=lambda legal_case: legal_case.court or UNKNOWN_COURT,
        year_of=lambda legal_case: legal_case.year,
        max_per_group=MAX_CASES_PER_COURT,
        max_per_year=MAX_CASES_PER_YEAR,
    )


def select_papers(
    papers: Iterable[Paper], target: int, current_year: Optional[int] = None
) -> List[Paper]:
    """Dedupe, score and diversify papers across first authors and years."""

    unique = dedupe(papers, key=lambda paper: paper.paper_id)
    scored = [Scored(item=paper, score=score_paper(paper, current_year)) for paper in unique]
    return select_diverse(
        scored,
        min(target, MAX_SELECTED_PAPERS),
        group_key=lambda paper: paper.first_author,
        year_of=lambda paper: paper.year,
        max_per_group=MAX_PAPERS_PER_AUTHOR,
        max_per_year=MAX_PAPERS_PER_YEAR,
    )
