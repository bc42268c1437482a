"""Core package for the legal research service."""

__all__ = [
    "ResearchPipeline",
    "ChatStore",
    "AppSettings",
    "load_settings",
]

from .config import AppSettings, load_settings
from .orchestrator import ResearchPipeline
from .repositories import ChatStore
