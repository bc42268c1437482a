"""Environment-driven configuration for the legal research service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, MutableMapping, Optional

from dotenv import load_dotenv

DEFAULT_ENV_FILE = Path(".env")
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 8000


def _to_bool(value: Optional[str], *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_list(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class ObservabilitySettings:
    """Logging toggles."""

    log_level: str = "INFO"
    log_requests: bool = True


@dataclass
class OpenAISettings:
    api_key: Optional[str] = None
    model: str = DEFAULT_OPENAI_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = 0.3


@dataclass
class SearchSettings:
    """Credentials and politeness settings for the search providers."""

    courtlistener_api_key: Optional[str] = None
    semantic_scholar_api_key: Optional[str] = None
    courtlistener_base_url: str = "https://www.courtlistener.com/api/rest/v4"
    scholar_base_url: str = "https://scholar.google.com/scholar"
    semantic_scholar_base_url: str = "https://api.semanticscholar.org/graph/v1"
    courtlistener_delay_seconds: float = 0.5
    scholar_delay_seconds: float = 1.0
    semantic_scholar_delay_seconds: float = 1.1
    max_retries: int = 3
    timeout_seconds: float = 30.0


@dataclass
class AppSettings:
    """Aggregated configuration for the application."""

    openai: OpenAISettings = field(default_factory=OpenAISettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)
    chat_db_path: Path = Path("data/chats.db")
    incident_data_dir: Path = Path("data/aiid")
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])


def load_settings(
    env: Mapping[str, str] | MutableMapping[str, str] | None = None,
    env_file: Optional[Path] = None,
) -> AppSettings:
    """Load settings from the provided environment mapping (defaults to ``os.environ``).

    A ``.env`` file is read first when present; variables already set in the
    environment take precedence over its values.
    """

    env_file_path = env_file or DEFAULT_ENV_FILE
    if env is None and env_file_path.exists():
        load_dotenv(env_file_path, override=False)

    env = env if env is not None else os.environ

    defaults = SearchSettings()
    search = SearchSettings(
        courtlistener_api_key=env.get("COURTLISTENER_API_KEY") or None,
        semantic_scholar_api_key=env.get("SEMANTIC_SCHOLAR_API_KEY") or None,
        courtlistener_base_url=env.get("COURTLISTENER_BASE_URL", defaults.courtlistener_base_url),
        scholar_base_url=env.get("SCHOLAR_BASE_URL", defaults.scholar_base_url),
        semantic_scholar_base_url=env.get("SEMANTIC_SCHOLAR_BASE_URL", defaults.semantic_scholar_base_url),
        courtlistener_delay_seconds=float(
            env.get("COURTLISTENER_DELAY_SECONDS", defaults.courtlistener_delay_seconds)
        ),
        scholar_delay_seconds=float(env.get("SCHOLAR_DELAY_SECONDS", defaults.scholar_delay_seconds)),
        semantic_scholar_delay_seconds=float(
            env.get("SEMANTIC_SCHOLAR_DELAY_SECONDS", defaults.semantic_scholar_delay_seconds)
        ),
        max_retries=int(env.get("SEARCH_MAX_RETRIES", defaults.max_retries)),
        timeout_seconds=float(env.get("HTTP_TIMEOUT_SECONDS", defaults.timeout_seconds)),
    )

    openai = OpenAISettings(
        api_key=env.get("OPENAI_API_KEY") or None,
        model=env.get("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        max_tokens=int(env.get("OPENAI_MAX_TOKENS", DEFAULT_MAX_TOKENS)),
        temperature=float(env.get("OPENAI_TEMPERATURE", 0.3)),
    )

    observability = ObservabilitySettings(
        log_level=env.get("LOG_LEVEL", "INFO"),
        log_requests=_to_bool(env.get("LOG_REQUESTS"), default=True),
    )

    return AppSettings(
        openai=openai,
        search=search,
        observability=observability,
        chat_db_path=Path(env.get("CHAT_DB_PATH", "data/chats.db")),
        incident_data_dir=Path(env.get("INCIDENT_DATA_DIR", "data/aiid")),
        allowed_origins=_to_list(env.get("ALLOWED_ORIGINS"), ["*"]),
    )
