from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import load_settings
from app.exceptions import ChatNotFoundError
from app.observability import MetricsEmitter, configure_logging
from app.runtime import (
    build_analyst,
    build_chat_store,
    build_llm_client,
    build_pipeline,
    build_safety_catalog,
)
from app.schemas import (
    AdaptiveLearningRequest,
    BiasDetectionRequest,
    ChatMessageCreate,
    ChatUpdate,
    EmotionalLegalRequest,
    ExplainableAIRequest,
    MultiDocumentRequest,
    PredictiveLegalRequest,
    ResearchQuery,
    SafetyActionRequest,
)

# Ensure .env is loaded even if uvicorn is started from a different CWD.
_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(_DOTENV_PATH, override=False)
settings = load_settings()
configure_logging(settings.observability)
logger = logging.getLogger("app")
metrics = MetricsEmitter()

app = FastAPI(title="Legal Research API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response


if settings.observability.log_requests:
    app.add_middleware(LoggingMiddleware)

_llm = build_llm_client(settings)
_store = build_chat_store(settings)
_safety = build_safety_catalog(settings)
_pipeline = build_pipeline(settings, _safety.processor, llm=_llm, metrics=metrics)
_analyst = build_analyst(settings, llm=_llm)

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _sse(events: AsyncIterator[Dict[str, Any]]) -> StreamingResponse:
    async def event_stream():
        async for event in events:
            yield f"data: {json.dumps(event)}\n\n"

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)


def _chat_payload(chat_id: str) -> dict:
    chat = _store.get_chat(chat_id)
    if chat is None:
        raise ChatNotFoundError(chat_id)
    return {"chat": chat.model_dump(mode="json")}


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/health/ready")
async def readiness_check() -> dict:
    """Readiness check: reports which upstream credentials are configured."""
    keys = {
        "openai_api_key_configured": bool(settings.openai.api_key),
        "courtlistener_api_key_configured": bool(settings.search.courtlistener_api_key),
        "semantic_scholar_api_key_configured": bool(settings.search.semantic_scholar_api_key),
    }
    return {
        "status": "ready" if keys["openai_api_key_configured"] else "degraded",
        **keys,
        "incident_catalog_loaded": _safety.initialized,
    }


@app.get("/api/chats")
def list_chats() -> dict:
    return {"chats": [chat.model_dump(mode="json") for chat in _store.list_chats()]}


@app.post("/api/chats")
def create_chat() -> dict:
    chat = _store.create_chat()
    return {"chat": chat.model_dump(mode="json")}


@app.get("/api/chats/{chat_id}")
def get_chat(chat_id: str) -> dict:
    return _chat_payload(chat_id)


@app.post("/api/chats/{chat_id}")
def add_message(chat_id: str, payload: ChatMessageCreate) -> dict:
    message = _store.add_message(
        chat_id,
        payload.role,
        payload.content,
        citations=payload.citations,
        completion_tokens=payload.completion_tokens,
    )
    return {"message": message.model_dump(mode="json")}


@app.patch("/api/chats/{chat_id}")
def update_chat(chat_id: str, payload: ChatUpdate) -> dict:
    if payload.title is not None:
        _store.update_title(chat_id, payload.title)
    if payload.citation_panel_open is not None:
        _store.set_citation_panel(chat_id, payload.citation_panel_open)
    return _chat_payload(chat_id)


@app.delete("/api/chats/{chat_id}")
def delete_chat(chat_id: str) -> dict:
    _store.delete_chat(chat_id)
    return {"success": True}


@app.post("/api/legal")
async def legal_research(payload: ResearchQuery):
    """Stream a cited case-law answer as server-sent events."""

    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query required")

    await _safety.ensure_loaded()
    safety = _pipeline.check_query(query)
    if safety.blocked:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Query blocked due to high safety risk",
                "details": safety.warnings,
                "recommendations": safety.recommendations,
            },
        )
    return _sse(_pipeline.stream_legal(query, safety))


@app.post("/api/algo")
async def paper_research(payload: ResearchQuery):
    """Stream a cited literature answer as server-sent events."""

    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query required")
    return _sse(_pipeline.stream_papers(query))


@app.post("/api/ai-safety")
async def safety_action(payload: SafetyActionRequest) -> dict:
    await _safety.ensure_loaded()
    processor = _safety.processor
    action = payload.action

    if action == "analyze_query":
        if not payload.query:
            raise HTTPException(status_code=400, detail="Query required for analysis")
        analysis = processor.analyze_query_safety(payload.query, payload.context)
        return {"success": True, "analysis": analysis.to_dict(), "timestamp": _timestamp()}

    if action == "analyze_response":
        if not payload.response:
            raise HTTPException(status_code=400, detail="Response required for analysis")
        analysis = processor.analyze_response_safety(payload.response)
        return {"success": True, "analysis": analysis.to_dict(), "timestamp": _timestamp()}

    if action == "validate_response":
        if not payload.response:
            raise HTTPException(status_code=400, detail="Response required for validation")
        validation = processor.validate_response_safety(payload.response, payload.query or "")
        return {"success": True, "validation": validation.to_dict(), "timestamp": _timestamp()}

    if action == "get_safety_stats":
        return {"success": True, "stats": processor.stats(), "timestamp": _timestamp()}

    if action == "get_recent_incidents":
        incidents = processor.recent_incidents(payload.limit)
        return {
            "success": True,
            "incidents": [incident.to_dict() for incident in incidents],
            "timestamp": _timestamp(),
        }

    if action == "get_domain_recommendations":
        if not payload.domain:
            raise HTTPException(status_code=400, detail="Domain required")
        return {
            "success": True,
            "recommendations": processor.domain_recommendations(payload.domain),
            "timestamp": _timestamp(),
        }

    if action == "load_incident_data":
        try:
            incidents = await _safety.reload()
        except Exception as exc:
            logger.exception("Incident reload failed: %s", exc)
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": "Failed to load incident data", "details": str(exc)},
            )
        return {
            "success": True,
            "message": f"Loaded {len(incidents)} incidents",
            "count": len(incidents),
            "timestamp": _timestamp(),
        }

    raise HTTPException(status_code=400, detail="Invalid action")


@app.get("/api/ai-safety")
async def safety_report(action: str = "get_safety_stats", limit: int = 5) -> dict:
    await _safety.ensure_loaded()
    processor = _safety.processor

    if action == "get_safety_stats":
        return {"success": True, "stats": processor.stats(), "timestamp": _timestamp()}
    if action == "get_recent_incidents":
        incidents = processor.recent_incidents(limit)
        return {
            "success": True,
            "incidents": [incident.to_dict() for incident in incidents],
            "timestamp": _timestamp(),
        }
    if action == "get_sources":
        return {
            "success": True,
            "sources": [source.to_dict() for source in _safety.loader.sources()],
            "timestamp": _timestamp(),
        }
    raise HTTPException(status_code=400, detail="Invalid action")


async def _run_analysis(name: str, coro) -> str:
    try:
        return await coro
    except Exception as exc:
        logger.exception("%s failed: %s", name, exc)
        raise HTTPException(status_code=500, detail=f"{name} failed") from exc


def _require(value: Optional[Any], message: str) -> Any:
    if not value:
        raise HTTPException(status_code=400, detail=message)
    return value


@app.post("/api/bias-detection")
async def bias_detection(payload: BiasDetectionRequest) -> dict:
    content = _require(payload.legal_content, "Legal content required")
    analysis = await _run_analysis(
        "Bias analysis", _analyst.bias_detection(content, payload.analysis_type)
    )
    return {
        "analysis": analysis,
        "timestamp": _timestamp(),
        "content": content,
        "analysis_type": payload.analysis_type or "comprehensive",
    }


@app.post("/api/emotional-legal")
async def emotional_legal(payload: EmotionalLegalRequest) -> dict:
    scenario = _require(payload.legal_scenario, "Legal scenario required")
    analysis = await _run_analysis("Analysis", _analyst.emotional(scenario, payload.context))
    return {
        "analysis": analysis,
        "timestamp": _timestamp(),
        "scenario": scenario,
        "context": payload.context or None,
    }


@app.post("/api/predictive-legal")
async def predictive_legal(payload: PredictiveLegalRequest) -> dict:
    details = _require(payload.case_details, "Case details required")
    analysis = await _run_analysis(
        "Predictive analysis",
        _analyst.predictive(details, payload.jurisdiction, payload.case_type),
    )
    return {
        "analysis": analysis,
        "timestamp": _timestamp(),
        "case_details": details,
        "jurisdiction": payload.jurisdiction or None,
        "case_type": payload.case_type or None,
    }


@app.post("/api/adaptive-learning")
async def adaptive_learning(payload: AdaptiveLearningRequest) -> dict:
    scenario = _require(payload.legal_scenario, "Legal scenario required")
    analysis = await _run_analysis(
        "Adaptive learning analysis",
        _analyst.adaptive(scenario, payload.context, payload.existing_knowledge),
    )
    return {
        "analysis": analysis,
        "timestamp": _timestamp(),
        "scenario": scenario,
        "context": payload.context or None,
        "existing_knowledge": payload.existing_knowledge or None,
    }


@app.post("/api/multi-document")
async def multi_document(payload: MultiDocumentRequest) -> dict:
    if payload.documents is None:
        raise HTTPException(status_code=400, detail="Documents array required")
    analysis = await _run_analysis(
        "Multi-document analysis",
        _analyst.multi_document(payload.documents, payload.analysis_focus),
    )
    return {
        "analysis": analysis,
        "timestamp": _timestamp(),
        "document_count": len(payload.documents),
        "analysis_focus": payload.analysis_focus or "comprehensive",
    }


@app.post("/api/explainable-ai")
async def explainable_ai(payload: ExplainableAIRequest) -> dict:
    query = _require(payload.legal_query, "Legal query required")
    analysis = await _run_analysis(
        "Explainable analysis", _analyst.explainable(query, payload.analysis_type)
    )
    return {
        "analysis": analysis,
        "timestamp": _timestamp(),
        "query": query,
        "analysis_type": payload.analysis_type or "comprehensive",
    }


@app.exception_handler(ChatNotFoundError)
async def chat_not_found_handler(request: Request, exc: ChatNotFoundError):
    logger.info("Chat not found: %s", exc.chat_id)
    return JSONResponse(status_code=404, content={"error": "Chat not found"})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Invalid request body for %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error("HTTP error %s: %s", exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
