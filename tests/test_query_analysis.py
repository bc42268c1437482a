import pytest

from legal_research.query_analysis import (
    analyze_legal_query,
    analyze_paper_query,
    build_legal_queries,
    build_paper_queries,
    per_query_limit,
)


@pytest.mark.parametrize(
    "query, target, variations",
    [
        ("What remedies exist for breach of contract", 15, 1),
        ("What are the recent rulings on noncompete clauses", 20, 2),
        ("Compare negligence standards in Texas and Ohio", 25, 2),
        ("A comprehensive overview of fair use doctrine", 30, 3),
        ("adverse possession", 10, 1),
    ],
)
def test_legal_query_counts(query, target, variations):
    analysis = analyze_legal_query(query)
    assert analysis.target_count == target
    assert analysis.search_variations == variations


def test_comparison_stems_are_detected():
    assert analyze_legal_query("how do courts handle comparative fault rules").target_count == 25


def test_short_query_overrides_other_signals():
    analysis = analyze_paper_query("latest transformers")
    assert analysis.target_count == 15
    assert analysis.search_variations == 2


def test_paper_query_counts():
    assert analyze_paper_query("methods for legal text classification").target_count == 20
    assert analyze_paper_query("a thorough review of legal language models").target_count == 40


def test_query_variants():
    assert build_legal_queries("fair use", 3) == ["fair use", "fair use case law", "fair use precedent"]
    assert build_paper_queries("fair use", 2) == ["fair use", "fair use methods"]
    assert build_legal_queries("fair use", 0) == ["fair use"]


def test_per_query_limit_rounds_up():
    assert per_query_limit(25, 2) == 13
    assert per_query_limit(10, 0) == 10
