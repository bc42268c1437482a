import pytest

from legal_research.fakes import FakeCaseSearch, FakePaperSearch
from legal_research.models import LegalCase, Paper
from legal_research.safety import SafetyProcessor
from legal_research.incidents import SAMPLE_INCIDENTS

from app.agents.insights import InsightAgent
from app.agents.writer import WriterAgent
from app.orchestrator import ResearchPipeline
from app.repositories import ChatStore


@pytest.fixture()
def sample_cases():
    return [
        LegalCase(
            case_id="cl-1",
            title="Hadley  v.  Baxendale",
            summary="Damages for breach of contract are limited to losses that were foreseeable "
            "to both parties at the time the contract was formed, a rule still applied today.",
            court="U.S. Court of Appeals",
            year=2019,
            citation="123 F.3d 456",
            url="https://www.courtlistener.com/opinion/1/",
        ),
        LegalCase(
            case_id="cl-2",
            title="Smith v. Jones",
            summary="Short summary.",
            court="State Supreme Court",
            year=2015,
            citation="12 N.Y.3d 34",
        ),
        LegalCase(
            case_id="cl-3",
            title="Acme Corp. v. Widget LLC",
            summary=None,
            court=None,
            year=None,
        ),
    ]


@pytest.fixture()
def sample_papers():
    return [
        Paper(
            paper_id="p1",
            title="Attention Is All You Need",
            abstract="We propose the Transformer, a model architecture based solely on attention.",
            authors=["Ashish Vaswani", "Noam Shazeer"],
            year=2017,
            citation_count=90000,
            venue="NeurIPS",
            url="https://example.org/p1",
            tldr="A new architecture built only on attention.",
        ),
        Paper(
            paper_id="p2",
            title="Legal Judgment Prediction",
            abstract="x" * 250,
            authors=["Ilias Chalkidis"],
            year=2019,
            citation_count=300,
            venue="ACL",
        ),
    ]


@pytest.fixture()
def safety_processor():
    return SafetyProcessor(SAMPLE_INCIDENTS)


@pytest.fixture()
def chat_store(tmp_path):
    return ChatStore(tmp_path / "chats.db")


@pytest.fixture()
def make_pipeline(sample_cases, sample_papers, safety_processor):
    def factory(llm, *, cases=None, papers=None, case_error=None, paper_error=None):
        return ResearchPipeline(
            case_search=FakeCaseSearch(sample_cases if cases is None else cases, error=case_error),
            scholar_search=None,
            paper_search=FakePaperSearch(sample_papers if papers is None else papers, error=paper_error),
            insights=InsightAgent(llm),
            writer=WriterAgent(llm),
            safety=safety_processor,
        )

    return factory
