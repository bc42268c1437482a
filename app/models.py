from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class StoredCitation(BaseModel):
    """Citation attached to a stored assistant message."""

    id: Optional[str] = None
    title: str
    authors: List[str] = Field(default_factory=list)
    year: Optional[int] = None
    journal: Optional[str] = None
    url: Optional[str] = None


class Message(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str
    role: MessageRole
    content: str
    citations: List[StoredCitation] = Field(default_factory=list)
    created_at: datetime
    completion_tokens: Optional[int] = None


class ChatSummary(BaseModel):
    id: str
    title: str
    citation_panel_open: bool = False
    created_at: datetime
    updated_at: datetime


class ChatDetail(ChatSummary):
    messages: List[Message] = Field(default_factory=list)
