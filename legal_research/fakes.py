from __future__ import annotations

from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence

from .models import LegalCase, Paper


class FakeCaseSearch:
    """Deterministic case-law provider that returns fixed cases for tests."""

    def __init__(self, cases: Iterable[LegalCase] = (), *, error: Optional[Exception] = None):
        self.cases = list(cases)
        self.error = error
        self.calls: List[Dict] = []

    async def search(self, query: str, limit: int = 10) -> List[LegalCase]:
        self.calls.append({"query": query, "limit": limit})
        if self.error is not None:
            raise self.error
        return self.cases[:limit]


class FakePaperSearch:
    """Deterministic paper provider mirroring the Semantic Scholar client."""

    def __init__(self, papers: Iterable[Paper] = (), *, error: Optional[Exception] = None):
        self.papers = list(papers)
        self.error = error
        self.calls: List[Dict] = []

    async def search(self, query: str, limit: int = 10) -> List[Paper]:
        self.calls.append({"query": query, "limit": limit})
        if self.error is not None:
            raise self.error
        return self.papers[:limit]


class FakeLLMClient:
    """In-memory stand-in for the chat completion client.

    ``complete`` answers from ``responses`` keyed by a substring of the prompt
    and otherwise returns ``default``. ``stream`` yields ``chunks``.
    """

    def __init__(
        self,
        *,
        chunks: Sequence[str] = (),
        default: str = "",
        responses: Optional[Dict[str, str]] = None,
        error: Optional[Exception] = None,
    ):
        self.chunks = list(chunks)
        self.default = default
        self.responses = dict(responses or {})
        self.error = error
        self.prompts: List[str] = []

    async def complete(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        for needle, answer in self.responses.items():
            if needle in prompt:
                return answer
        return self.default

    async def stream(self, prompt: str, max_tokens: Optional[int] = None) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        for chunk in self.chunks:
            yield chunk


__all__ = ["FakeCaseSearch", "FakePaperSearch", "FakeLLMClient"]
