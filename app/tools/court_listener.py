"""CourtListener opinion search client."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from legal_research.models import LegalCase

from app.tools.base import RateLimiter, Sleep

logger = logging.getLogger(__name__)

USER_AGENT = "LegalResearch/1.0"
COURTLISTENER_HOST = "https://www.courtlistener.com"


def _year(value: Optional[str]) -> Optional[int]:
    if not value or len(value) < 4 or not value[:4].isdigit():
        return None
    return int(value[:4])


def _first(value: Any) -> Optional[str]:
    if isinstance(value, list):
        return str(value[0]) if value else None
    return str(value) if value else None


def _snippet(result: Dict[str, Any]) -> Optional[str]:
    snippet = result.get("snippet")
    if not snippet:
        for opinion in result.get("opinions") or []:
            if opinion.get("snippet"):
                snippet = opinion["snippet"]
                break
    return snippet.strip() if isinstance(snippet, str) and snippet.strip() else None


def case_from_result(result: Dict[str, Any]) -> LegalCase:
    """Map one CourtListener search hit onto a ``LegalCase``."""

    absolute_url = result.get("absolute_url")
    url = f"{COURTLISTENER_HOST}{absolute_url}" if absolute_url and absolute_url.startswith("/") else absolute_url
    case_id = result.get("resource_uri") or result.get("cluster_id") or result.get("id") or absolute_url or ""
    court = result.get("court") or None
    return LegalCase(
        case_id=str(case_id),
        title=result.get("caseName") or result.get("case_name") or "Unknown Case",
        summary=_snippet(result) or absolute_url or None,
        court=court,
        year=_year(result.get("dateFiled") or result.get("date_filed")),
        citation=_first(result.get("citation")),
        url=url,
        jurisdiction=court,
        area_of_law=result.get("area_of_law"),
    )


class CourtListenerClient:
    """Best-effort precedential opinion search.

    Without an API key, or on any transport or HTTP failure, the client logs
    and returns no cases so the other providers can still answer.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://www.courtlistener.com/api/rest/v4",
        min_interval: float = 0.5,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._limiter = RateLimiter(min_interval, sleep=sleep)

    def _params(self, query: str) -> Dict[str, str]:
        return {
            "q": query.strip(),
            "type": "o",
            "order_by": "score desc",
            "stat_Precedential": "on",
            "stat_Errata": "off",
            "stat_Non_Precedential": "off",
            "format": "json",
        }

    async def search(self, query: str, limit: int = 10) -> List[LegalCase]:
        if not self.api_key:
            logger.info("CourtListener API key not configured; skipping case search")
            return []

        await self._limiter.wait()
        headers = {"Authorization": f"Token {self.api_key}", "User-Agent": USER_AGENT}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/search/", params=self._params(query), headers=headers)
                response.raise_for_status()
                payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError(f"unexpected payload type {type(payload).__name__}")
            results = [result for result in payload.get("results") or [] if isinstance(result, dict)]
            cases = [case_from_result(result) for result in results[:limit]]
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as exc:
            logger.warning("CourtListener search failed for %r: %s", query, exc)
            return []

        logger.info("CourtListener returned %d cases for %r", len(cases), query)
        return cases
