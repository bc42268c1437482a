import asyncio

import pytest

from legal_research.fakes import FakeLLMClient

from app.agents.analysis import LegalAnalyst, render_documents
from app.agents.insights import InsightAgent, build_insight_prompts
from app.exceptions import LLMError


class FlakyLLM(FakeLLMClient):
    """Fails only the bias prompt."""

    async def complete(self, prompt, max_tokens=None):
        if "potential bias" in prompt:
            raise LLMError("rate limited")
        return await super().complete(prompt, max_tokens)


class RecordingLLM(FakeLLMClient):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.max_tokens = []

    async def complete(self, prompt, max_tokens=None):
        self.max_tokens.append(max_tokens)
        return await super().complete(prompt, max_tokens)


def test_insight_prompts_cover_every_analysis(sample_cases):
    prompts = build_insight_prompts("breach of contract damages", sample_cases)

    assert set(prompts) == {"emotional", "bias", "predictive", "transparent", "multi_document", "adaptive"}
    assert all('"breach of contract damages"' in prompt for prompt in prompts.values())
    assert "Hadley  v.  Baxendale" in prompts["transparent"]


def test_insight_failures_become_empty_strings(sample_cases):
    agent = InsightAgent(FlakyLLM(default="fine"))

    insights = asyncio.run(agent.gather("breach of contract damages", sample_cases))

    assert insights["bias"] == ""
    assert insights["predictive"] == "fine"
    assert list(insights) == ["emotional", "bias", "predictive", "transparent", "multi_document", "adaptive"]


def test_insight_token_budgets(sample_cases):
    llm = RecordingLLM(default="x")
    asyncio.run(InsightAgent(llm).gather("q", sample_cases))
    assert sorted(llm.max_tokens) == [150, 200, 200, 200, 200, 200]


def test_render_documents_accepts_strings_and_dicts():
    rendered = render_documents(["First text", {"content": "Second text", "title": "ignored"}])
    assert rendered == "DOCUMENT 1:\nFirst text\n---\n\nDOCUMENT 2:\nSecond text\n---"


def test_analyst_fills_defaults_into_prompts():
    llm = RecordingLLM(default="report")
    analyst = LegalAnalyst(llm)

    assert asyncio.run(analyst.predictive("Tenant withheld rent")) == "report"

    assert 'Not specified' in llm.prompts[0]
    assert llm.max_tokens == [2500]


def test_analyst_empty_answer_uses_fallback():
    analyst = LegalAnalyst(FakeLLMClient(default=""))
    assert asyncio.run(analyst.bias_detection("content")) == "No bias analysis available"
    assert asyncio.run(analyst.emotional("scenario")) == "No analysis available"


def test_analyst_propagates_model_errors():
    analyst = LegalAnalyst(FakeLLMClient(error=LLMError("boom")))
    with pytest.raises(LLMError):
        asyncio.run(analyst.explainable("Is this enforceable?"))
