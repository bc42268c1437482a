"""Runtime wiring for the research pipeline, chat store and safety catalogue."""
from __future__ import annotations

import logging
from typing import List, Optional

from legal_research.incidents import IncidentLoader, default_sources
from legal_research.safety import Incident, SafetyProcessor

from app.agents.analysis import LegalAnalyst
from app.agents.insights import InsightAgent
from app.agents.writer import WriterAgent
from app.config import AppSettings
from app.observability import MetricsEmitter
from app.orchestrator import ResearchPipeline
from app.repositories import ChatStore
from app.tools.base import LoopLocks, RetryConfig
from app.tools.court_listener import CourtListenerClient
from app.tools.openai_chat import OpenAIChatClient
from app.tools.scholar_legal import ScholarLegalClient
from app.tools.semantic_scholar import SemanticScholarClient

logger = logging.getLogger(__name__)


class SafetyCatalog:
    """Owns the safety processor and loads the incident catalogue once."""

    def __init__(self, processor: SafetyProcessor, loader: IncidentLoader) -> None:
        self.processor = processor
        self.loader = loader
        self._initialized = False
        self._locks = LoopLocks()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def ensure_loaded(self) -> None:
        if self._initialized:
            return
        async with self._locks.get():
            if self._initialized:
                return
            try:
                await self.reload()
            except Exception as exc:
                logger.exception("Failed to initialize incident catalogue: %s", exc)

    async def reload(self) -> List[Incident]:
        incidents = await self.loader.load_all()
        self.processor.load_incidents(incidents)
        self._initialized = True
        logger.info("Incident catalogue ready: %d incidents", len(incidents))
        return incidents


def build_llm_client(settings: AppSettings) -> OpenAIChatClient:
    if not settings.openai.api_key:
        logger.warning("OPENAI_API_KEY not detected; model calls will fail")
    return OpenAIChatClient(settings.openai)


def build_chat_store(settings: AppSettings) -> ChatStore:
    return ChatStore(settings.chat_db_path)


def build_safety_catalog(settings: AppSettings, loader: Optional[IncidentLoader] = None) -> SafetyCatalog:
    loader = loader or IncidentLoader(
        default_sources(settings.incident_data_dir),
        timeout=settings.search.timeout_seconds,
    )
    return SafetyCatalog(SafetyProcessor(), loader)


def build_analyst(settings: AppSettings, llm: Optional[OpenAIChatClient] = None) -> LegalAnalyst:
    return LegalAnalyst(llm or build_llm_client(settings))


def build_pipeline(
    settings: AppSettings,
    safety: SafetyProcessor,
    *,
    llm: Optional[OpenAIChatClient] = None,
    metrics: Optional[MetricsEmitter] = None,
) -> ResearchPipeline:
    """Construct a pipeline wired with the real search providers and model client."""

    search = settings.search
    llm = llm or build_llm_client(settings)
    if not search.courtlistener_api_key:
        logger.warning("COURTLISTENER_API_KEY not set; case search limited to Scholar")

    return ResearchPipeline(
        case_search=CourtListenerClient(
            search.courtlistener_api_key,
            base_url=search.courtlistener_base_url,
            min_interval=search.courtlistener_delay_seconds,
            timeout=search.timeout_seconds,
        ),
        scholar_search=ScholarLegalClient(
            base_url=search.scholar_base_url,
            min_interval=search.scholar_delay_seconds,
            timeout=search.timeout_seconds,
        ),
        paper_search=SemanticScholarClient(
            search.semantic_scholar_api_key,
            base_url=search.semantic_scholar_base_url,
            min_interval=search.semantic_scholar_delay_seconds,
            timeout=search.timeout_seconds,
            retry=RetryConfig(max_attempts=search.max_retries),
        ),
        insights=InsightAgent(llm),
        writer=WriterAgent(llm, max_tokens=settings.openai.max_tokens),
        safety=safety,
        metrics=metrics,
    )
