from legal_research.citations import (
    extract_citation_keys,
    format_case_name,
    format_in_text_citation,
    format_legal_citation,
    format_reference_apa,
    prepare_case_citations,
    prepare_paper_citations,
    renumber_citation_tokens,
)
from legal_research.models import Citation, CitationType


def test_format_case_name_normalizes_versus_spacing():
    assert format_case_name("Hadley  V.   Baxendale ") == "Hadley v. Baxendale"


def test_legal_citation_uses_reporter_form_when_complete():
    citation = Citation(
        id="1", title="Roe v. Wade", year=1973, journal="U.S.", volume="410", page="113"
    )
    assert format_legal_citation(citation) == "Roe v. Wade, 410 U.S. 113 (1973)"


def test_legal_citation_falls_back_to_name_and_year():
    citation = Citation(id="1", title="Roe v. Wade", year=1973, journal="U.S.")
    assert format_legal_citation(citation) == "Roe v. Wade (1973)"


def test_in_text_citation_without_year_is_just_the_name():
    assert format_in_text_citation(Citation(id="1", title="Doe v. Roe")) == "Doe v. Roe"


def test_reference_keeps_legal_form_for_federal_reporters():
    citation = Citation(id="1", title="Smith v. Jones", authors=["U.S. Court of Appeals"], year=2019, journal="123 F.3d 456")
    assert format_reference_apa(citation) == "Smith v. Jones (2019)"


def test_reference_falls_back_to_apa_for_papers():
    citation = Citation(id="p", title=" Deep Learning ", authors=["LeCun", "Bengio"], year=2015, journal="Nature")
    assert format_reference_apa(citation) == "LeCun, Bengio (2015). Deep Learning. Nature."


def test_reference_without_year_uses_nd():
    citation = Citation(id="p", title="Untimed", authors=["Anon"])
    assert format_reference_apa(citation) == "Anon (n.d.). Untimed."


def test_prepare_case_citations_numbers_in_order(sample_cases):
    tokens = prepare_case_citations(sample_cases)

    assert [token.key for token in tokens] == ["C1", "C2", "C3"]
    assert tokens[0].marker == "[[C1]]"
    assert tokens[0].in_text == "Hadley v. Baxendale (2019)"
    assert tokens[0].citation.citation_type is CitationType.CASE
    assert tokens[2].citation.authors == ["Unknown Court"]
    assert tokens[2].summary == "No summary available."


def test_prepare_paper_citations_prefers_tldr_then_abstract(sample_papers):
    tokens = prepare_paper_citations(sample_papers)

    assert tokens[0].summary == "A new architecture built only on attention."
    assert tokens[1].summary == "x" * 250
    assert tokens[1].citation.to_dict()["citation_type"] == "academic"


def test_renumber_orders_by_first_use_and_keeps_repeats():
    text = "First [[C3]], then [[C1]], again [[C3]] and [[C7]]."
    assert renumber_citation_tokens(text) == "First [[C1]], then [[C2]], again [[C1]] and [[C3]]."


def test_renumber_leaves_text_without_tokens_untouched():
    assert renumber_citation_tokens("No sources [C1] here.") == "No sources [C1] here."


def test_extract_citation_keys_is_distinct_and_ordered():
    assert extract_citation_keys("[[C2]] [[C1]] [[C2]]") == ["C2", "C1"]
