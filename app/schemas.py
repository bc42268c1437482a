from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from app.models import MessageRole, StoredCitation


class ChatMessageCreate(BaseModel):
    role: MessageRole
    content: str
    citations: List[StoredCitation] = Field(default_factory=list)
    completion_tokens: Optional[int] = None


class ChatUpdate(BaseModel):
    title: Optional[str] = None
    citation_panel_open: Optional[bool] = None


class ResearchQuery(BaseModel):
    query: str = Field("", description="Research question to answer with cited sources.")


class SafetyActionRequest(BaseModel):
    action: str
    query: Optional[str] = None
    response: Optional[str] = None
    context: Optional[str] = None
    domain: Optional[str] = None
    limit: int = Field(5, ge=0)


class BiasDetectionRequest(BaseModel):
    legal_content: Optional[str] = None
    analysis_type: Optional[str] = None


class EmotionalLegalRequest(BaseModel):
    legal_scenario: Optional[str] = None
    context: Optional[str] = None


class PredictiveLegalRequest(BaseModel):
    case_details: Optional[str] = None
    jurisdiction: Optional[str] = None
    case_type: Optional[str] = None


class AdaptiveLearningRequest(BaseModel):
    legal_scenario: Optional[str] = None
    context: Optional[str] = None
    existing_knowledge: Optional[str] = None


class MultiDocumentRequest(BaseModel):
    documents: Optional[List[Union[str, Dict[str, Any]]]] = None
    analysis_focus: Optional[str] = None


class ExplainableAIRequest(BaseModel):
    legal_query: Optional[str] = None
    analysis_type: Optional[str] = None
