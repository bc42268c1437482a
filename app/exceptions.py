"""Custom exceptions for research service failures."""
from __future__ import annotations


class LegalResearchError(RuntimeError):
    """Base exception for service failures."""
    pass


class ConfigurationError(LegalResearchError):
    """Raised when a required credential or setting is missing."""
    pass


class SearchError(LegalResearchError):
    """Raised when a search provider fails after its retries."""
    pass


class LLMError(LegalResearchError):
    """Raised when the language model call fails."""
    pass


class ChatNotFoundError(LegalResearchError):
    """Raised when a chat id does not exist."""

    def __init__(self, chat_id: str):
        super().__init__(f"Chat not found: {chat_id}")
        self.chat_id = chat_id
