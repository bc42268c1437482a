"""Writer agent that streams cited answers from the rendered prompts."""
from __future__ import annotations

from typing import Any, AsyncIterator, Mapping, Optional, Sequence

from legal_research.models import CitationToken
from legal_research.templates import render_legal_prompt, render_paper_prompt


class WriterAgent:
    """Streams prose that cites the numbered sources with ``[[C#]]`` tokens."""

    def __init__(self, llm: Any, max_tokens: Optional[int] = None) -> None:
        self.llm = llm
        self.max_tokens = max_tokens

    def stream_legal(
        self,
        query: str,
        tokens: Sequence[CitationToken],
        insights: Optional[Mapping[str, str]] = None,
    ) -> AsyncIterator[str]:
        prompt = render_legal_prompt(query, tokens, insights)
        return self.llm.stream(prompt, max_tokens=self.max_tokens)

    def stream_papers(self, query: str, tokens: Sequence[CitationToken]) -> AsyncIterator[str]:
        prompt = render_paper_prompt(query, tokens)
        return self.llm.stream(prompt, max_tokens=self.max_tokens)
