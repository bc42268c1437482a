from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class CitationType(str, Enum):
    """Enumerates the kinds of authority a citation can point at."""

    CASE = "case"
    STATUTE = "statute"
    REGULATION = "regulation"
    ACADEMIC = "academic"


@dataclass
class LegalCase:
    """A court decision returned by a case-law search provider."""

    case_id: str
    title: str
    summary: Optional[str] = None
    court: Optional[str] = None
    year: Optional[int] = None
    citation: Optional[str] = None
    url: Optional[str] = None
    jurisdiction: Optional[str] = None
    area_of_law: Optional[str] = None


@dataclass
class Paper:
    """An academic paper returned by the paper search provider."""

    paper_id: str
    title: str
    abstract: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    year: Optional[int] = None
    citation_count: int = 0
    venue: Optional[str] = None
    url: Optional[str] = None
    tldr: Optional[str] = None

    @property
    def first_author(self) -> Optional[str]:
        return self.authors[0] if self.authors else None


@dataclass
class Citation:
    """Describes a cited authority in a way that can be formatted and stored."""

    id: str
    title: str
    authors: List[str] = field(default_factory=list)
    year: Optional[int] = None
    journal: Optional[str] = None
    url: Optional[str] = None
    volume: Optional[str] = None
    page: Optional[str] = None
    reporter: Optional[str] = None
    court: Optional[str] = None
    citation_type: CitationType = CitationType.ACADEMIC

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["citation_type"] = self.citation_type.value
        return payload


@dataclass
class CitationToken:
    """A numbered source handed to the writer, e.g. ``[[C1]]``."""

    key: str
    citation: Citation
    in_text: str
    reference: str
    summary: str

    @property
    def marker(self) -> str:
        return f"[[{self.key}]]"


@dataclass(frozen=True)
class QueryAnalysis:
    """How many results to gather and how many query variants to issue."""

    target_count: int
    search_variations: int


@dataclass(frozen=True)
class Scored(Generic[T]):
    item: T
    score: float
