"""Google Scholar case-law scraper."""
from __future__ import annotations

import hashlib
import logging
import re
from datetime import date
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup

from legal_research.models import LegalCase

from app.tools.base import RateLimiter, Sleep

logger = logging.getLogger(__name__)

SCHOLAR_HOST = "https://scholar.google.com"
EARLIEST_YEAR = 2020

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

YEAR_PATTERN = re.compile(r"(\d{4})")
COURT_PATTERN = re.compile(
    r"(Supreme Court|Court of Appeals|District Court|Circuit Court|Federal Court|State Court)",
    re.IGNORECASE,
)
LEGAL_HINT_PATTERN = re.compile(r"case|court|decision|ruling|judgment", re.IGNORECASE)
DEFAULT_COURT = "Legal Document"


def _text(node) -> str:
    return node.get_text(" ", strip=True) if node is not None else ""


def _result_id(href: str) -> str:
    return "gs_" + hashlib.sha1(href.encode("utf-8")).hexdigest()[:12]


def parse_results(html: str, limit: int) -> List[LegalCase]:
    """Extract legal-looking hits from a Scholar results page."""

    soup = BeautifulSoup(html, "html.parser")
    cases: List[LegalCase] = []

    for heading in soup.select(".gs_rt"):
        if len(cases) >= limit:
            break
        link = heading.find("a")
        if link is None or not link.get("href"):
            continue
        title = _text(link)
        if not title:
            continue

        href = link["href"]
        summary = _text(heading.find_next_sibling(class_="gs_rs")) or None
        citation_line = _text(heading.find_next_sibling(class_="gs_a"))

        year_match = YEAR_PATTERN.search(citation_line)
        court_match = COURT_PATTERN.search(citation_line)
        looks_legal = (
            LEGAL_HINT_PATTERN.search(title) is not None
            or LEGAL_HINT_PATTERN.search(citation_line) is not None
            or "legal" in title.lower()
        )
        if not looks_legal:
            continue

        cases.append(
            LegalCase(
                case_id=_result_id(href),
                title=title,
                summary=summary,
                court=court_match.group(1) if court_match else DEFAULT_COURT,
                year=int(year_match.group(1)) if year_match else None,
                citation=citation_line or None,
                url=href if href.startswith("http") else f"{SCHOLAR_HOST}{href}",
                jurisdiction="Academic/Legal",
                area_of_law="Legal Research",
            )
        )
    return cases


class ScholarLegalClient:
    """Best-effort scrape of Scholar's legal documents; failures yield no cases."""

    def __init__(
        self,
        *,
        base_url: str = f"{SCHOLAR_HOST}/scholar",
        min_interval: float = 1.0,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._limiter = RateLimiter(min_interval, sleep=sleep)

    async def search(self, query: str, limit: int = 10) -> List[LegalCase]:
        params = {
            "q": f"{query} legal case law",
            "hl": "en",
            "as_sdt": "0,5",
            "as_ylo": str(EARLIEST_YEAR),
            "as_yhi": str(date.today().year),
        }
        await self._limiter.wait()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport, follow_redirects=True
            ) as client:
                response = await client.get(self.base_url, params=params, headers=BROWSER_HEADERS)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Scholar legal search failed for %r: %s", query, exc)
            return []

        cases = parse_results(response.text, limit)
        logger.info("Scholar returned %d legal documents for %r", len(cases), query)
        return cases
