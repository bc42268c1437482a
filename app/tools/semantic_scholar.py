"""Semantic Scholar paper search client."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from legal_research.models import Paper

from app.exceptions import ConfigurationError, SearchError
from app.tools.base import RateLimiter, RetryConfig, Sleep

logger = logging.getLogger(__name__)

PAPER_FIELDS = "paperId,title,abstract,authors,year,citationCount,venue,url,tldr"
TOO_MANY_REQUESTS = 429


def paper_from_result(result: Dict[str, Any]) -> Paper:
    tldr = result.get("tldr") or {}
    return Paper(
        paper_id=str(result.get("paperId") or ""),
        title=result.get("title") or "Untitled",
        abstract=result.get("abstract"),
        authors=[author.get("name", "") for author in result.get("authors") or [] if author.get("name")],
        year=result.get("year"),
        citation_count=result.get("citationCount") or 0,
        venue=result.get("venue") or None,
        url=result.get("url"),
        tldr=tldr.get("text") if isinstance(tldr, dict) else None,
    )


class SemanticScholarClient:
    """Paper search with rate limiting and retries.

    Rate-limited responses (429) back off and retry; other HTTP errors fail
    immediately. Transport errors are retried and raised on the last attempt.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://api.semanticscholar.org/graph/v1",
        min_interval: float = 1.1,
        timeout: float = 30.0,
        retry: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry = retry or RetryConfig()
        self._transport = transport
        self._sleep = sleep or asyncio.sleep
        self._limiter = RateLimiter(min_interval, sleep=sleep)

    async def search(self, query: str, limit: int = 10) -> List[Paper]:
        if not self.api_key:
            raise ConfigurationError("SEMANTIC_SCHOLAR_API_KEY missing")

        await self._limiter.wait()
        params = {"query": query.strip(), "limit": str(limit), "fields": PAPER_FIELDS}
        headers = {"x-api-key": self.api_key}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for attempt in range(1, self.retry.max_attempts + 1):
                try:
                    response = await client.get(f"{self.base_url}/paper/search", params=params, headers=headers)
                except httpx.TransportError as exc:
                    if attempt == self.retry.max_attempts:
                        raise SearchError(f"Semantic Scholar request failed: {exc}") from exc
                    logger.warning("Semantic Scholar transport error (attempt %d): %s", attempt, exc)
                    await self._sleep(self.retry.delay_for(attempt))
                    continue

                if response.status_code == TOO_MANY_REQUESTS:
                    logger.warning("Semantic Scholar rate limited (attempt %d)", attempt)
                    await self._sleep(self.retry.delay_for(attempt))
                    continue
                if response.is_error:
                    raise SearchError(f"Semantic Scholar API error: {response.status_code}")

                data = response.json().get("data") or []
                papers = [paper_from_result(item) for item in data]
                logger.info("Semantic Scholar returned %d papers for %r", len(papers), query)
                return papers

        logger.warning("Semantic Scholar kept rate limiting %r; giving up", query)
        return []
