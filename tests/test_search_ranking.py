import math

from legal_research.models import LegalCase, Paper, Scored
from legal_research.search_ranking import (
    dedupe,
    score_case,
    score_court,
    score_paper,
    score_venue,
    select_cases,
    select_diverse,
    select_papers,
)


def _case(case_id, court="U.S. District Court", year=2020, summary="s"):
    return LegalCase(case_id=case_id, title=f"Case {case_id}", court=court, year=year, summary=summary)


def _paper(paper_id, author="A", year=2020, citations=10):
    return Paper(paper_id=paper_id, title=f"Paper {paper_id}", authors=[author], year=year, citation_count=citations)


def test_dedupe_keeps_first_occurrence():
    items = [_case("a", year=2001), _case("b"), _case("a", year=2002)]
    unique = dedupe(items, key=lambda item: item.case_id)
    assert [item.case_id for item in unique] == ["a", "b"]
    assert unique[0].year == 2001


def test_court_and_venue_scores():
    assert score_court("U.S. Supreme Court") == 1.0
    assert score_court("Ohio Court of Claims") == 0.5
    assert score_court(None) == 0.3
    assert score_venue("Proceedings of NeurIPS 2021") == 1.0
    assert score_venue("Workshop on Things") == 0.5
    assert score_venue("") == 0.3


def test_score_case_blends_recency_court_and_summary():
    legal_case = _case("x", court="U.S. Supreme Court", year=2020, summary="y" * 101)
    expected = 0.40 * math.exp(0) + 0.35 * 1.0 + 0.25 * 1.0
    assert math.isclose(score_case(legal_case, current_year=2020), expected)


def test_score_case_treats_missing_year_as_old():
    recent = _case("r", year=2024)
    undated = _case("u", year=None)
    assert score_case(recent, current_year=2024) > score_case(undated, current_year=2024)


def test_score_paper_rewards_tldr_and_citations():
    plain = _paper("p", citations=0)
    cited = _paper("c", citations=10000)
    cited.tldr = "summary"
    assert score_paper(cited, current_year=2020) > score_paper(plain, current_year=2020)


def test_select_diverse_caps_groups_and_years():
    scored = [
        Scored(item=("a", 2020), score=0.9),
        Scored(item=("a", 2021), score=0.8),
        Scored(item=("a", 2022), score=0.7),
        Scored(item=("b", 2020), score=0.6),
        Scored(item=("c", 2020), score=0.5),
    ]
    selected = select_diverse(
        scored,
        10,
        group_key=lambda item: item[0],
        year_of=lambda item: item[1],
        max_per_group=2,
        max_per_year=2,
    )
    assert selected == [("a", 2020), ("a", 2021), ("b", 2020)]


def test_select_diverse_respects_target():
    scored = [Scored(item=index, score=float(index)) for index in range(10)]
    selected = select_diverse(
        scored, 3, group_key=lambda item: None, year_of=lambda item: item, max_per_group=1, max_per_year=5
    )
    assert selected == [9, 8, 7]


def test_select_cases_limits_repeats_per_court():
    cases = [_case(str(index), court="U.S. Supreme Court", year=2000 + index) for index in range(5)]
    selected = select_cases(cases, 10, current_year=2024)
    assert len(selected) == 2
    assert [legal_case.case_id for legal_case in selected] == ["4", "3"]


def test_select_cases_caps_cases_without_a_court():
    cases = [_case(str(index), court=None, year=2000 + index) for index in range(4)]
    assert len(select_cases(cases, 10, current_year=2024)) == 2


def test_select_papers_limits_first_author_and_dedupes():
    papers = [_paper("1", author="X"), _paper("2", author="X"), _paper("3", author="X"), _paper("1", author="Y")]
    selected = select_papers(papers, 10, current_year=2024)
    assert [paper.paper_id for paper in selected] == ["1", "2"]


def test_select_papers_without_authors_are_not_grouped():
    papers = [Paper(paper_id=str(index), title="t", year=2010 + index) for index in range(4)]
    assert len(select_papers(papers, 10, current_year=2024)) == 4
