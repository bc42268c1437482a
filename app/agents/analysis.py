"""Standalone long-form legal analyses exposed as their own endpoints."""
from __future__ import annotations

import logging
from string import Template
from typing import Any, Iterable, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_TYPE = "comprehensive"

BIAS_PROMPT = Template(
    """You are an expert in AI ethics and legal bias detection. Analyze this legal content for potential bias.

LEGAL CONTENT: "$content"
ANALYSIS TYPE: "$analysis_type"

Report on:
1. Detected bias (gender, racial, socioeconomic, geographic, temporal, confirmation).
2. Severity (low, medium, high or critical) and impact on legal outcomes.
3. A fairness score from 0 to 100 with its rationale.
4. Mitigation strategies.
5. Immediate and long-term recommendations.

Format the answer as a structured bias analysis report."""
)

EMOTIONAL_PROMPT = Template(
    """You are an expert legal psychologist and negotiation strategist. Analyze the emotional and
interpersonal dynamics in this legal scenario.

LEGAL SCENARIO: "$scenario"
CONTEXT: "$context"

Report on:
1. Emotional tone (cooperative, adversarial, neutral or hostile) and its drivers.
2. Interpersonal dynamics, including power and trust between the parties.
3. Negotiation leverage and each side's best alternative.
4. Strategic recommendations for communication and conflict resolution.
5. Escalation risks and how to mitigate them.

Format the answer as a structured analysis."""
)

PREDICTIVE_PROMPT = Template(
    """You are an expert in legal analytics. Analyze this case for outcome prediction.

CASE DETAILS: "$case_details"
JURISDICTION: "$jurisdiction"
CASE TYPE: "$case_type"

Report on:
1. Outcome probability (0-100%) and confidence level.
2. Historical trends for similar cases in the jurisdiction.
3. Key legal, statutory and procedural factors.
4. Risks and evidence challenges.
5. Strategic recommendations, including settlement options.

Format the answer as a structured predictive analysis."""
)

ADAPTIVE_PROMPT = Template(
    """You analyze unprecedented legal situations.

LEGAL SCENARIO: "$scenario"
CONTEXT: "$context"
EXISTING KNOWLEDGE BASE: "$existing_knowledge"

Report on:
1. How novel the scenario is (0-100%) and what makes it unique.
2. Knowledge gaps and areas needing research.
3. Analogous principles from other areas or jurisdictions.
4. Research priorities.
5. Confidence in the analysis and the main uncertainties.
6. How existing legal frameworks could be adapted.

Format the answer as a structured analysis."""
)

MULTI_DOCUMENT_PROMPT = Template(
    """You are an expert legal analyst specializing in multi-document analysis.

DOCUMENTS TO ANALYZE:
$documents

ANALYSIS FOCUS: "$focus"

Report on:
1. How the documents relate and reference each other.
2. Contradictions between terms, positions or obligations.
3. Provisions that reinforce each other.
4. The overall risk profile across the documents.
5. Compliance concerns and recommended amendments.

Format the answer as a structured cross-document analysis."""
)

EXPLAINABLE_PROMPT = Template(
    """Provide a transparent, step-by-step legal analysis.

LEGAL QUERY: "$query"
ANALYSIS TYPE: "$analysis_type"

Report on:
1. The reasoning chain from question to conclusion.
2. How much weight each piece of evidence carries and why.
3. Confidence factors and the strongest supporting precedent.
4. Alternative interpretations and competing theories.
5. Areas of uncertainty and further research needed.
6. An overall confidence score from 0 to 100.

Format the answer so a legal professional can verify each step."""
)

Document = Union[str, dict]


def render_documents(documents: Iterable[Document]) -> str:
    blocks = []
    for index, document in enumerate(documents, start=1):
        content = document.get("content", "") if isinstance(document, dict) else str(document)
        blocks.append(f"DOCUMENT {index}:\n{content}\n---")
    return "\n\n".join(blocks)


class LegalAnalyst:
    """Runs one long-form analysis per call and returns the model's text.

    Model failures propagate to the caller; an empty answer is replaced by a
    fixed fallback sentence.
    """

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    async def _ask(self, name: str, prompt: str, max_tokens: int, fallback: str) -> str:
        logger.info("Running %s analysis", name)
        text = await self.llm.complete(prompt, max_tokens=max_tokens)
        return text or fallback

    async def bias_detection(self, content: str, analysis_type: Optional[str] = None) -> str:
        prompt = BIAS_PROMPT.safe_substitute(
            content=content, analysis_type=analysis_type or DEFAULT_ANALYSIS_TYPE
        )
        return await self._ask("bias", prompt, 2000, "No bias analysis available")

    async def emotional(self, scenario: str, context: Optional[str] = None) -> str:
        prompt = EMOTIONAL_PROMPT.safe_substitute(
            scenario=scenario, context=context or "No additional context provided"
        )
        return await self._ask("emotional", prompt, 2000, "No analysis available")

    async def predictive(
        self,
        case_details: str,
        jurisdiction: Optional[str] = None,
        case_type: Optional[str] = None,
    ) -> str:
        prompt = PREDICTIVE_PROMPT.safe_substitute(
            case_details=case_details,
            jurisdiction=jurisdiction or "Not specified",
            case_type=case_type or "Not specified",
        )
        return await self._ask("predictive", prompt, 2500, "No predictive analysis available")

    async def adaptive(
        self,
        scenario: str,
        context: Optional[str] = None,
        existing_knowledge: Optional[str] = None,
    ) -> str:
        prompt = ADAPTIVE_PROMPT.safe_substitute(
            scenario=scenario,
            context=context or "No additional context",
            existing_knowledge=existing_knowledge or "Standard legal knowledge",
        )
        return await self._ask("adaptive", prompt, 3000, "No adaptive learning analysis available")

    async def multi_document(self, documents: Iterable[Document], focus: Optional[str] = None) -> str:
        prompt = MULTI_DOCUMENT_PROMPT.safe_substitute(
            documents=render_documents(documents),
            focus=focus or "comprehensive cross-document analysis",
        )
        return await self._ask("multi_document", prompt, 4000, "No multi-document analysis available")

    async def explainable(self, query: str, analysis_type: Optional[str] = None) -> str:
        prompt = EXPLAINABLE_PROMPT.safe_substitute(
            query=query, analysis_type=analysis_type or DEFAULT_ANALYSIS_TYPE
        )
        return await self._ask("explainable", prompt, 3000, "No explainable analysis available")
