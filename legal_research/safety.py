"""Keyword safety checks built from a catalogue of known AI incidents.

Queries are screened against patterns derived from incident keywords, and
generated answers are screened with fixed term lists and PII regexes.
"""
from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

SEVERITIES = ("low", "medium", "high", "critical")
SEVERITY_SCORES = {name: index + 1 for index, name in enumerate(SEVERITIES)}
CATEGORIES = ("bias", "privacy", "security", "misinformation", "safety", "other")

RESPONSE_BIAS_TERMS = (
    "only", "always", "never", "all", "none", "every",
    "typical", "normal", "abnormal", "unusual",
)
MISINFORMATION_TERMS = (
    "definitely", "certainly", "without doubt", "guaranteed",
    "proven fact", "scientific consensus",
)
PII_PATTERNS = (
    re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
    re.compile(r"\b\d{4}\s?\d{4}\s?\d{4}\s?\d{4}\b"),
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    re.compile(r"\b\d{3}-\d{3}-\d{4}\b"),
)

UNCERTAINTY_TERMS = (
    "according to my knowledge", "i believe", "i think", "it seems",
    "possibly", "might be", "could be", "appears to be", "suggests that",
    "indicates that", "definitely", "certainly", "without doubt", "guaranteed",
)
LEGAL_REFERENCE_PATTERNS = (
    re.compile(r"\b\d{4}\s+[A-Z][a-z]+\s+\d+\b"),
    re.compile(r"\b[A-Z][a-z]+\s+v\.\s+[A-Z][a-z]+"),
    re.compile(r"\b\d+\s+U\.S\.\s+\d+"),
    re.compile(r"\b\d+\s+F\.\d+d\s+\d+"),
)
BIASED_LANGUAGE_TERMS = (
    "always", "never", "all", "none", "every", "no one",
    "typically", "usually", "generally", "most people",
    "obviously", "clearly", "undoubtedly", "of course",
    "naturally", "inevitably", "unavoidably",
)
SECURITY_TERMS = (
    "password", "secret", "confidential", "private key",
    "ssn", "social security", "credit card", "bank account",
    "api key", "token", "authentication", "login",
)
PRIVACY_TERMS = (
    "personal information", "private data", "client details",
    "confidential client", "attorney-client privilege",
)
LEGAL_STRUCTURE_TERMS = ("analysis", "precedent", "jurisdiction", "court", "statute", "regulation")
UNVERIFIABLE_TERMS = (
    "studies show", "research indicates", "experts agree",
    "it is known", "it is established", "it is proven",
)
HARMFUL_TERMS = ("ignore", "disregard", "skip", "avoid", "do not consult", "do not seek", "do not contact")
COUNSEL_TERMS = ("lawyer", "attorney")

MIN_RESPONSE_LENGTH = 100
CITATION_MARKER = "[["


def severity_score(severity: str) -> int:
    return SEVERITY_SCORES.get(severity, 0)


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


@dataclass
class Incident:
    """A documented AI failure used to derive safety patterns."""

    id: str
    title: str
    description: str
    date: str
    severity: str = "medium"
    category: str = "other"
    keywords: List[str] = field(default_factory=list)
    mitigation: List[str] = field(default_factory=list)
    affected_domains: List[str] = field(default_factory=list)
    legal_implications: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SafetyPattern:
    pattern: str
    risk_level: str
    category: str
    detection_keywords: List[str] = field(default_factory=list)
    prevention_measures: List[str] = field(default_factory=list)

    def matches(self, text: str) -> bool:
        return any(keyword.lower() in text for keyword in self.detection_keywords)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class QuerySafety:
    risk_level: str
    detected_patterns: List[SafetyPattern]
    recommendations: List[str]
    warnings: List[str]

    @property
    def blocked(self) -> bool:
        return self.risk_level == "critical"

    def to_dict(self) -> dict:
        return {
            "risk_level": self.risk_level,
            "detected_patterns": [pattern.to_dict() for pattern in self.detected_patterns],
            "recommendations": list(self.recommendations),
            "warnings": list(self.warnings),
        }


@dataclass
class ResponseSafety:
    is_safe: bool
    issues: List[str]
    suggestions: List[str]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ResponseValidation:
    is_safe: bool
    violations: List[str]
    warnings: List[str]
    corrections: List[str]
    risk_level: str
    must_block: bool

    def to_dict(self) -> dict:
        return asdict(self)


def build_patterns(incidents: Iterable[Incident]) -> List[SafetyPattern]:
    """Collapse incident keywords into one pattern per category and keyword.

    Mitigations from every incident sharing the key are merged and the
    pattern takes the most severe incident's level.
    """

    patterns: Dict[tuple, SafetyPattern] = {}
    for incident in incidents:
        for keyword in incident.keywords:
            key = (incident.category, keyword.lower())
            existing = patterns.get(key)
            if existing is None:
                patterns[key] = SafetyPattern(
                    pattern=keyword,
                    risk_level=incident.severity,
                    category=incident.category,
                    detection_keywords=[keyword],
                    prevention_measures=list(incident.mitigation),
                )
                continue
            existing.detection_keywords.append(keyword)
            existing.prevention_measures.extend(incident.mitigation)
            if severity_score(incident.severity) > severity_score(existing.risk_level):
                existing.risk_level = incident.severity
    return list(patterns.values())


def _parse_date(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SafetyProcessor:
    """Screens queries and generated answers against known incident patterns."""

    def __init__(self, incidents: Optional[Iterable[Incident]] = None) -> None:
        self._incidents: List[Incident] = []
        self._patterns: List[SafetyPattern] = []
        if incidents is not None:
            self.load_incidents(incidents)

    @property
    def incidents(self) -> List[Incident]:
        return list(self._incidents)

    @property
    def patterns(self) -> List[SafetyPattern]:
        return list(self._patterns)

    def load_incidents(self, incidents: Iterable[Incident]) -> None:
        self._incidents = list(incidents)
        self._patterns = build_patterns(self._incidents)
        logger.info(
            "Loaded %d incidents into %d safety patterns",
            len(self._incidents),
            len(self._patterns),
        )

    def analyze_query_safety(self, query: str, context: Optional[str] = None) -> QuerySafety:
        text = f"{query} {context or ''}".lower()
        detected: List[SafetyPattern] = []
        warnings: List[str] = []
        recommendations: List[str] = []

        for pattern in self._patterns:
            if not pattern.matches(text):
                continue
            detected.append(pattern)
            if pattern.risk_level == "critical":
                warnings.append(
                    f'CRITICAL: Detected high-risk pattern "{pattern.pattern}" - {pattern.category} risk'
                )
            elif pattern.risk_level == "high":
                warnings.append(f'HIGH RISK: Detected pattern "{pattern.pattern}" - {pattern.category} risk')
            for measure in pattern.prevention_measures:
                if measure not in recommendations:
                    recommendations.append(measure)

        risk_level = "low"
        if detected:
            top = max(severity_score(pattern.risk_level) for pattern in detected)
            risk_level = SEVERITIES[top - 1] if top else "low"

        return QuerySafety(
            risk_level=risk_level,
            detected_patterns=detected,
            recommendations=recommendations,
            warnings=warnings,
        )

    def analyze_response_safety(self, response: str) -> ResponseSafety:
        lowered = response.lower()
        issues: List[str] = []
        suggestions: List[str] = []

        if _contains_any(lowered, RESPONSE_BIAS_TERMS):
            issues.append("Potential bias detected in response")
            suggestions.append("Review response for balanced perspective and diverse viewpoints")
        if _contains_any(lowered, MISINFORMATION_TERMS):
            issues.append("Potential misinformation patterns detected")
            suggestions.append("Verify all facts and provide source citations")
        if any(pattern.search(response) for pattern in PII_PATTERNS):
            issues.append("Potential privacy concerns detected")
            suggestions.append("Remove or anonymize personal information")

        return ResponseSafety(is_safe=not issues, issues=issues, suggestions=suggestions)

    def validate_response_safety(self, response: str, query: str) -> ResponseValidation:
        """Run the full pre-delivery check on a generated legal answer."""

        lowered = response.lower()
        cited = CITATION_MARKER in response
        violations: List[str] = []
        warnings: List[str] = []
        corrections: List[str] = []
        must_block = False

        if _contains_any(lowered, UNCERTAINTY_TERMS):
            violations.append(
                "Response contains uncertain or fabricated language that may indicate hallucination"
            )
            corrections.append("Replace uncertain language with verified facts and proper citations")

        if not cited and any(pattern.search(response) for pattern in LEGAL_REFERENCE_PATTERNS):
            violations.append("Response contains uncited legal references")
            corrections.append("All legal references must be properly cited with [[C#]] format")

        if _contains_any(lowered, BIASED_LANGUAGE_TERMS):
            warnings.append("Response contains potentially biased language")
            corrections.append("Use more neutral, evidence-based language")

        if _contains_any(lowered, SECURITY_TERMS):
            violations.append("Response contains security-sensitive information")
            corrections.append("Remove or anonymize sensitive information")
            must_block = True

        if _contains_any(lowered, PRIVACY_TERMS) and "protect" not in lowered:
            violations.append("Response may violate privacy standards")
            corrections.append("Ensure proper privacy protection measures are mentioned")

        if "legal" in query.lower() and not _contains_any(lowered, LEGAL_STRUCTURE_TERMS):
            warnings.append("Response lacks proper legal analysis structure")
            corrections.append("Include legal analysis framework and precedents")

        if len(response) < MIN_RESPONSE_LENGTH:
            warnings.append("Response may be too brief for comprehensive legal analysis")
            corrections.append("Provide more detailed legal analysis")

        if not cited and _contains_any(lowered, UNVERIFIABLE_TERMS):
            violations.append("Response contains unverifiable claims without citations")
            corrections.append("Provide proper citations for all claims")

        if _contains_any(lowered, HARMFUL_TERMS) and _contains_any(lowered, COUNSEL_TERMS):
            violations.append("Response may contain potentially harmful legal advice")
            corrections.append(
                "Ensure proper legal disclaimers and professional consultation recommendations"
            )
            must_block = True

        if violations:
            if must_block:
                risk_level = "critical"
            elif len(violations) > 2:
                risk_level = "high"
            else:
                risk_level = "medium"
        elif warnings:
            risk_level = "medium"
        else:
            risk_level = "low"

        return ResponseValidation(
            is_safe=not violations,
            violations=violations,
            warnings=warnings,
            corrections=corrections,
            risk_level=risk_level,
            must_block=must_block,
        )

    def domain_recommendations(self, domain: str) -> List[str]:
        needle = domain.lower()
        recommendations: List[str] = []
        for incident in self._incidents:
            in_domain = domain in incident.affected_domains or any(
                needle in implication.lower() for implication in incident.legal_implications
            )
            if not in_domain:
                continue
            for measure in incident.mitigation:
                if measure not in recommendations:
                    recommendations.append(measure)
        return recommendations

    def recent_incidents(self, limit: int = 5) -> List[Incident]:
        ordered = sorted(self._incidents, key=lambda incident: _parse_date(incident.date), reverse=True)
        return ordered[: max(0, limit)]

    def stats(self) -> dict:
        by_category = Counter(incident.category for incident in self._incidents)
        by_severity = Counter(incident.severity for incident in self._incidents)
        return {
            "total_incidents": len(self._incidents),
            "incidents_by_category": dict(by_category),
            "incidents_by_severity": dict(by_severity),
            "patterns_generated": len(self._patterns),
        }
