import math
import re
from dataclasses import dataclass
from typing import List

from .models import QueryAnalysis

RECENCY_PATTERN = re.compile(r"\b(recent|latest|new|current|2024|2025)\b", re.IGNORECASE)
COMPARISON_PATTERN = re.compile(r"\b(compar\w*|versus|vs|difference|better)\b", re.IGNORECASE)
DEPTH_PATTERN = re.compile(r"\b(comprehensive|detailed|thorough|deep dive)\b", re.IGNORECASE)

SHORT_QUERY_WORDS = 3


@dataclass(frozen=True)
class CountProfile:
    """Result counts for each kind of query signal."""

    base: int
    recent: int
    compare: int
    comprehensive: int
    short: int


LEGAL_COUNTS = CountProfile(base=15, recent=20, compare=25, comprehensive=30, short=10)
PAPER_COUNTS = CountProfile(base=20, recent=30, compare=35, comprehensive=40, short=15)

LEGAL_QUERY_SUFFIXES = ["case law", "precedent"]
PAPER_QUERY_SUFFIXES = ["methods", "applications"]


def _analyze(query: str, counts: CountProfile) -> QueryAnalysis:
    words = len(query.split())
    has_recent = bool(RECENCY_PATTERN.search(query))
    has_compare = bool(COMPARISON_PATTERN.search(query))
    has_depth = bool(DEPTH_PATTERN.search(query))

    # Later signals win; a very short query always narrows the search.
    target = counts.base
    if has_recent:
        target = counts.recent
    if has_compare:
        target = counts.compare
    if has_depth:
        target = counts.comprehensive
    if words <= SHORT_QUERY_WORDS:
        target = counts.short

    variations = 1
    if has_recent or has_compare:
        variations = 2
    if has_depth:
        variations = 3

    return QueryAnalysis(target_count=target, search_variations=variations)


def analyze_legal_query(query: str) -> QueryAnalysis:
    """Decide how many cases to gather and how many query variants to issue."""

    return _analyze(query, LEGAL_COUNTS)


def analyze_paper_query(query: str) -> QueryAnalysis:
    """Decide how many papers to gather and how many query variants to issue."""

    return _analyze(query, PAPER_COUNTS)


def _variants(query: str, variations: int, suffixes: List[str]) -> List[str]:
    queries = [query]
    queries.extend(f"{query} {suffix}" for suffix in suffixes)
    return queries[: max(1, variations)]


def build_legal_queries(query: str, variations: int) -> List[str]:
    return _variants(query, variations, LEGAL_QUERY_SUFFIXES)


def build_paper_queries(query: str, variations: int) -> List[str]:
    return _variants(query, variations, PAPER_QUERY_SUFFIXES)


def per_query_limit(total: int, query_count: int) -> int:
    """Split the overall result budget evenly across query variants."""

    return math.ceil(total / max(1, query_count))
