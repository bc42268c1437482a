"""Loads AI incident records from CSV exports, JSON files or an HTTP API."""
from __future__ import annotations

import asyncio
import csv
import json
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

from .safety import Incident

logger = logging.getLogger(__name__)

MAX_ROWS_PER_FILE = 10
MAX_TEXT_KEYWORDS = 10

SAMPLE_INCIDENTS: List[Incident] = [
    Incident(
        id="aiid_001",
        title="AI Bias in Legal Sentencing Algorithms",
        description=(
            "Machine learning algorithms used for criminal sentencing showed significant racial bias, "
            "with Black defendants receiving longer sentences for similar crimes compared to white defendants."
        ),
        date="2023-06-15T10:30:00Z",
        severity="high",
        category="bias",
        keywords=["sentencing", "racial bias", "criminal justice", "algorithm", "discrimination"],
        mitigation=[
            "Implement bias detection algorithms",
            "Regular fairness audits of sentencing data",
            "Diverse training data review",
            "Human oversight requirements",
        ],
        affected_domains=["criminal_justice", "legal", "sentencing"],
        legal_implications=[
            "Potential civil rights violations",
            "Constitutional equal protection claims",
            "Regulatory compliance issues",
        ],
    ),
    Incident(
        id="aiid_002",
        title="Privacy Breach in Legal Document Analysis",
        description=(
            "AI system processing legal documents inadvertently exposed confidential client information "
            "due to insufficient data anonymization protocols."
        ),
        date="2023-08-22T14:15:00Z",
        severity="critical",
        category="privacy",
        keywords=["privacy", "confidentiality", "data breach", "legal documents", "anonymization"],
        mitigation=[
            "Implement end-to-end encryption",
            "Enhanced data anonymization",
            "Access control protocols",
            "Regular security audits",
        ],
        affected_domains=["legal", "privacy", "confidentiality"],
        legal_implications=[
            "Attorney-client privilege violations",
            "GDPR compliance issues",
            "Professional liability claims",
        ],
    ),
    Incident(
        id="aiid_003",
        title="Misinformation in Legal Research AI",
        description=(
            "AI legal research tool provided outdated case law and incorrect legal precedents, "
            "leading to flawed legal advice and potential malpractice claims."
        ),
        date="2023-11-10T09:45:00Z",
        severity="high",
        category="misinformation",
        keywords=["misinformation", "outdated data", "legal precedents", "malpractice", "verification"],
        mitigation=[
            "Real-time data validation",
            "Source verification protocols",
            "Regular database updates",
            "Confidence scoring for responses",
        ],
        affected_domains=["legal_research", "legal_advice", "malpractice"],
        legal_implications=[
            "Professional malpractice claims",
            "Bar association investigations",
            "Client harm and liability",
        ],
    ),
    Incident(
        id="aiid_004",
        title="AI Security Vulnerability in Legal Platforms",
        description=(
            "Critical security vulnerability in AI-powered legal platform allowed unauthorized access "
            "to sensitive case files and client data."
        ),
        date="2024-01-05T16:20:00Z",
        severity="critical",
        category="security",
        keywords=["security", "vulnerability", "unauthorized_access", "data_breach", "cybersecurity"],
        mitigation=[
            "Immediate security patch deployment",
            "Penetration testing protocols",
            "Multi-factor authentication",
            "Regular security monitoring",
        ],
        affected_domains=["cybersecurity", "legal_platforms", "data_protection"],
        legal_implications=[
            "Data breach notification requirements",
            "Regulatory investigations",
            "Client notification obligations",
        ],
    ),
    Incident(
        id="aiid_005",
        title="AI Safety Issue in Contract Analysis",
        description=(
            "AI system failed to identify critical contract clauses, leading to unfavorable terms "
            "being accepted by clients without proper review."
        ),
        date="2024-02-14T11:30:00Z",
        severity="medium",
        category="safety",
        keywords=["contract_analysis", "safety", "risk_assessment", "clause_detection", "client_harm"],
        mitigation=[
            "Enhanced clause detection algorithms",
            "Human review requirements for critical contracts",
            "Risk assessment protocols",
            "Client notification systems",
        ],
        affected_domains=["contract_law", "client_representation", "risk_management"],
        legal_implications=[
            "Professional liability exposure",
            "Client harm and damages",
            "Malpractice prevention requirements",
        ],
    ),
    Incident(
        id="aiid_006",
        title="Gender Bias in Legal AI Hiring Tools",
        description=(
            "AI-powered legal hiring platform showed systematic bias against female candidates, "
            "filtering out qualified women from consideration."
        ),
        date="2024-03-20T13:45:00Z",
        severity="high",
        category="bias",
        keywords=["gender_bias", "hiring", "discrimination", "employment_law", "fairness"],
        mitigation=[
            "Bias testing in hiring algorithms",
            "Diverse training data requirements",
            "Regular fairness audits",
            "Human oversight in hiring decisions",
        ],
        affected_domains=["employment_law", "hiring", "discrimination"],
        legal_implications=[
            "Employment discrimination claims",
            "EEOC investigations",
            "Workplace diversity requirements",
        ],
    ),
    Incident(
        id="aiid_007",
        title="AI Hallucination in Legal Brief Generation",
        description=(
            "AI system generated fictional case citations and legal precedents that appeared "
            "authentic but were completely fabricated."
        ),
        date="2024-04-10T08:30:00Z",
        severity="critical",
        category="misinformation",
        keywords=["hallucination", "fabricated_citations", "legal_briefs", "misinformation", "verification"],
        mitigation=[
            "Citation verification systems",
            "Source validation protocols",
            "Human review requirements",
            "Confidence scoring for generated content",
        ],
        affected_domains=["legal_writing", "legal_research", "malpractice"],
        legal_implications=[
            "Professional malpractice claims",
            "Bar association sanctions",
            "Client trust and reputation damage",
        ],
    ),
    Incident(
        id="aiid_008",
        title="Data Privacy Violation in Legal AI Training",
        description=(
            "AI system was trained on confidential client data without proper consent, violating "
            "attorney-client privilege and data protection laws."
        ),
        date="2024-05-15T11:20:00Z",
        severity="critical",
        category="privacy",
        keywords=["data_privacy", "training_data", "attorney_client_privilege", "consent", "violation"],
        mitigation=[
            "Consent verification for training data",
            "Data anonymization protocols",
            "Privacy impact assessments",
            "Regular compliance audits",
        ],
        affected_domains=["privacy_law", "attorney_ethics", "data_protection"],
        legal_implications=[
            "Attorney disciplinary actions",
            "Privacy law violations",
            "Client confidentiality breaches",
        ],
    ),
]

CRITICAL_TERMS = ("killed", "death", "fatal", "critical", "severe", "hack", "breach", "stolen")
HIGH_TERMS = ("harm", "injury", "discrimination", "bias", "unfair", "violation")
MEDIUM_TERMS = ("error", "mistake", "incorrect", "problem", "issue")

# Checked in order; the first matching category wins.
CATEGORY_TERMS = (
    ("bias", ("bias", "discrimination", "unfair")),
    ("privacy", ("privacy", "data", "personal")),
    ("security", ("security", "hack", "breach")),
    ("misinformation", ("misinformation", "false", "incorrect")),
    ("safety", ("safety", "harm", "injury")),
)

DOMAIN_TERMS = (
    ("legal", ("legal", "law")),
    ("healthcare", ("health", "medical")),
    ("criminal_justice", ("criminal", "justice")),
    ("finance", ("finance", "bank")),
    ("education", ("education", "school")),
    ("transportation", ("transport", "vehicle")),
)

IMPLICATION_TERMS = (
    ("Potential discrimination claims", ("discrimination", "bias")),
    ("Privacy law compliance issues", ("privacy", "data")),
    ("Product liability concerns", ("safety", "harm")),
    ("Cybersecurity regulatory requirements", ("security", "breach")),
)

CATEGORY_MITIGATIONS = {
    "bias": ["Implement bias detection algorithms", "Regular fairness audits"],
    "privacy": ["Enhanced data protection measures", "Privacy impact assessments"],
    "security": ["Security vulnerability assessments", "Penetration testing"],
    "misinformation": ["Fact-checking protocols", "Source verification systems"],
    "safety": ["Safety monitoring systems", "Risk assessment protocols"],
}
ESCALATION_MITIGATIONS = ["Immediate review and remediation", "Enhanced monitoring"]

SEVERITY_ALIASES = {
    "1": "low",
    "2": "medium",
    "3": "high",
    "4": "critical",
    "low": "low",
    "medium": "medium",
    "high": "high",
    "critical": "critical",
    "severe": "critical",
    "minor": "low",
}

CATEGORY_ALIASES = {
    "bias": "bias",
    "discrimination": "bias",
    "fairness": "bias",
    "privacy": "privacy",
    "data_protection": "privacy",
    "security": "security",
    "vulnerability": "security",
    "misinformation": "misinformation",
    "disinformation": "misinformation",
    "safety": "safety",
    "harm": "safety",
}

_WORD_SPLIT = re.compile(r"\W+")


@dataclass
class IncidentSource:
    """Where incidents come from: a CSV or JSON file, or an API endpoint."""

    name: str
    format: str
    path: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "format": self.format, "path": self.path, "url": self.url}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _generated_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:9]}"


def _matches(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


def determine_severity(title: str, description: str) -> str:
    text = f"{title} {description}".lower()
    if _matches(text, CRITICAL_TERMS):
        return "critical"
    if _matches(text, HIGH_TERMS):
        return "high"
    if _matches(text, MEDIUM_TERMS):
        return "medium"
    return "low"


def determine_category(title: str, description: str) -> str:
    text = f"{title} {description}".lower()
    for category, terms in CATEGORY_TERMS:
        if _matches(text, terms):
            return category
    return "other"


def extract_domains(parties: Iterable[str]) -> List[str]:
    domains: List[str] = []
    for party in parties:
        lowered = party.lower()
        for domain, terms in DOMAIN_TERMS:
            if domain not in domains and _matches(lowered, terms):
                domains.append(domain)
    return domains


def extract_legal_implications(description: str) -> List[str]:
    text = description.lower()
    return [implication for implication, terms in IMPLICATION_TERMS if _matches(text, terms)]


def mitigation_suggestions(category: str, severity: str) -> List[str]:
    suggestions = list(CATEGORY_MITIGATIONS.get(category, []))
    if severity in ("critical", "high"):
        suggestions.extend(ESCALATION_MITIGATIONS)
    return suggestions


def map_severity(value: Any) -> str:
    return SEVERITY_ALIASES.get(str(value).lower(), "medium")


def map_category(value: Any) -> str:
    return CATEGORY_ALIASES.get(str(value).lower(), "other")


def keywords_from_text(text: str) -> List[str]:
    words = [word for word in _WORD_SPLIT.split(text.lower()) if len(word) > 3]
    return words[:MAX_TEXT_KEYWORDS]


def extract_keywords(item: Dict[str, Any]) -> List[str]:
    """Gather keywords from explicit fields and from the title and description."""

    keywords: List[str] = []
    keywords.extend(_as_list(item.get("keywords")))
    keywords.extend(_as_list(item.get("tags")))
    if item.get("title"):
        keywords.extend(keywords_from_text(str(item["title"])))
    if item.get("description"):
        keywords.extend(keywords_from_text(str(item["description"])))

    unique: List[str] = []
    for keyword in keywords:
        if keyword and len(str(keyword)) > 2 and keyword not in unique:
            unique.append(str(keyword))
    return unique


def extract_mitigation(item: Dict[str, Any]) -> List[str]:
    measures: List[str] = []
    for field_name in ("mitigation", "recommendations", "solutions"):
        for measure in _as_list(item.get(field_name)):
            if measure and measure not in measures:
                measures.append(str(measure))
    return measures


def parse_array_field(value: Optional[str]) -> List[str]:
    """Read list-valued CSV cells written either as JSON or comma separated."""

    if not value or value == "[]":
        return []
    try:
        parsed = json.loads(value)
    except ValueError:
        items = (re.sub(r'[\[\]"]', "", part).strip() for part in value.split(","))
        return [item for item in items if item]
    return [str(item) for item in _as_list(parsed)]


def dedupe_incidents(incidents: Iterable[Incident]) -> List[Incident]:
    seen = set()
    unique: List[Incident] = []
    for incident in incidents:
        if incident.id in seen:
            continue
        seen.add(incident.id)
        unique.append(incident)
    return unique


def incident_from_row(row: Dict[str, str]) -> Incident:
    title = row.get("title") or "Untitled Incident"
    description = row.get("description") or ""
    severity = determine_severity(title, description)
    category = determine_category(title, description)
    parties = (
        parse_array_field(row.get("Alleged harmed or nearly harmed parties"))
        + parse_array_field(row.get("Alleged deployer of AI system"))
        + parse_array_field(row.get("Alleged developer of AI system"))
    )
    return Incident(
        id=row.get("incident_id") or row.get("_id") or _generated_id("incident"),
        title=title,
        description=description,
        date=row.get("date") or _now_iso(),
        severity=severity,
        category=category,
        keywords=keywords_from_text(f"{title} {description}"),
        mitigation=mitigation_suggestions(category, severity),
        affected_domains=extract_domains(parties),
        legal_implications=extract_legal_implications(description),
    )


def _summary_row(
    kind: str,
    label: str,
    severity: str,
    keywords: List[str],
    mitigation: List[str],
    domain: str,
) -> Callable[[Dict[str, str]], Incident]:
    def transform(row: Dict[str, str]) -> Incident:
        incident_id = row.get("incident_id")
        return Incident(
            id=f"{kind}_{incident_id}" if incident_id else _generated_id(kind),
            title=f"{label}: {incident_id or 'Unknown'}",
            description=row.get("description") or f"{label} data",
            date=row.get("date") or _now_iso(),
            severity=severity,
            category="other",
            keywords=list(keywords),
            mitigation=list(mitigation),
            affected_domains=[domain],
        )

    return transform


ROW_TRANSFORMS = (
    ("incidents.csv", incident_from_row),
    (
        "classifications",
        _summary_row(
            "classification",
            "Classification",
            "medium",
            ["classification", "categorization"],
            ["Review classification accuracy", "Implement quality controls"],
            "classification",
        ),
    ),
    (
        "reports.csv",
        _summary_row(
            "report",
            "Report",
            "low",
            ["report", "documentation"],
            ["Ensure report accuracy", "Regular review processes"],
            "reporting",
        ),
    ),
    (
        "submissions.csv",
        _summary_row(
            "submission",
            "Submission",
            "low",
            ["submission", "user_report"],
            ["Review submission process", "Validate user reports"],
            "submissions",
        ),
    ),
)


def _row_transform(path: str) -> Optional[Callable[[Dict[str, str]], Incident]]:
    for marker, transform in ROW_TRANSFORMS:
        if marker in path:
            return transform
    return None


def incident_from_payload(item: Dict[str, Any]) -> Incident:
    return Incident(
        id=str(item.get("id") or item.get("incident_id") or _generated_id("incident")),
        title=item.get("title") or item.get("name") or "Untitled Incident",
        description=item.get("description") or item.get("summary") or "",
        date=item.get("date") or item.get("created_at") or _now_iso(),
        severity=map_severity(item.get("severity") or item.get("risk_level") or "medium"),
        category=map_category(item.get("category") or item.get("type") or "other"),
        keywords=extract_keywords(item),
        mitigation=extract_mitigation(item),
        affected_domains=_as_list(item.get("affected_domains") or item.get("domains")),
        legal_implications=_as_list(item.get("legal_implications") or item.get("legal_issues")),
    )


def incidents_from_payload(data: Any) -> List[Incident]:
    if not isinstance(data, list):
        return []
    return [incident_from_payload(item) for item in data if isinstance(item, dict)]


def default_sources(data_dir: Path) -> List[IncidentSource]:
    return [
        IncidentSource(name="AIID Incidents CSV", format="csv", path=str(data_dir / "incidents.csv")),
        IncidentSource(
            name="AIID Classifications CSV",
            format="csv",
            path=str(data_dir / "classifications_CSETv1.csv"),
        ),
        IncidentSource(name="AIID Reports CSV", format="csv", path=str(data_dir / "reports.csv")),
        IncidentSource(name="AIID Submissions CSV", format="csv", path=str(data_dir / "submissions.csv")),
    ]


class IncidentLoader:
    """Reads incidents from every configured source, falling back to the samples."""

    def __init__(
        self,
        sources: Optional[Iterable[IncidentSource]] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self._sources: List[IncidentSource] = list(sources or [])
        self._transport = transport
        self._timeout = timeout

    def add_source(self, source: IncidentSource) -> None:
        self._sources.append(source)

    def sources(self) -> List[IncidentSource]:
        return list(self._sources)

    async def load_all(self) -> List[Incident]:
        collected: List[Incident] = []
        for source in self._sources:
            try:
                incidents = await self.load_source(source)
            except Exception as exc:
                logger.warning("Failed to load incidents from %s: %s", source.name, exc)
                continue
            logger.info("Loaded %d incidents from %s", len(incidents), source.name)
            collected.extend(incidents)

        if not collected:
            logger.info("No incidents loaded from sources, using bundled samples")
            collected = list(SAMPLE_INCIDENTS)

        return dedupe_incidents(collected)

    async def load_source(self, source: IncidentSource) -> List[Incident]:
        if source.format == "csv":
            return await asyncio.to_thread(self.load_csv, _require(source.path, source))
        if source.format == "json":
            return await asyncio.to_thread(self.load_json, _require(source.path, source))
        if source.format == "api":
            return await self.load_api(_require(source.url, source))
        raise ValueError(f"Unsupported incident source format: {source.format}")

    def load_csv(self, path: str) -> List[Incident]:
        transform = _row_transform(Path(path).name)
        if transform is None:
            logger.debug("No row mapping for %s", path)
            return []

        incidents: List[Incident] = []
        with open(path, newline="", encoding="utf-8") as handle:
            for row in csv.DictReader(handle):
                if len(incidents) >= MAX_ROWS_PER_FILE:
                    break
                # Short rows fill with None and long rows collect under the None key.
                if None in row or any(value is None for value in row.values()):
                    continue
                incidents.append(transform(row))
        return incidents

    def load_json(self, path: str) -> List[Incident]:
        with open(path, encoding="utf-8") as handle:
            return incidents_from_payload(json.load(handle))

    async def load_api(self, url: str) -> List[Incident]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.get(url)
            response.raise_for_status()
            return incidents_from_payload(response.json())


def _require(value: Optional[str], source: IncidentSource) -> str:
    if not value:
        raise ValueError(f"Incident source {source.name} has no location")
    return value
