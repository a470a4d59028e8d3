# src/legalintel/llm/offline.py

from __future__ import annotations

from collections.abc import Iterable

from ..analysis.schemas import (
    AskDocumentQuestionOutput,
    ClassifyDocumentOutput,
    StartRolePlayOutput,
)
from ..core.ports import ChatMessage

_DISCLAIMER = "Offline demo mode: no external LLM is configured. This is not legal advice."


def _offline_analysis() -> ClassifyDocumentOutput:
    return ClassifyDocumentOutput.model_validate(
        {
            "executiveSummary": {
                "overview": _DISCLAIMER,
                "balanceOfPower": "Balanced",
            },
            "costBenefitSnapshot": {"summary": "Balanced", "costs": [], "benefits": []},
            "fairnessScoreJurisdiction": {
                "fairnessScore": 5,
                "fairnessReasoning": "No model was available to score this document.",
                "jurisdiction": "Unknown",
                "jurisdictionImpact": "Unknown",
            },
            "expenditureAnalysis": {
                "proceedingType": "Unknown",
                "estimatedHearings": 0,
                "costFactors": [],
                "disclaimer": "This is a rough estimate and not a guarantee.",
            },
            "consumerChecklist": ["Set LEGALINTEL_OPENROUTER_API_KEY to enable real analysis."],
            "lawyerCategory": "Contract Law",
        }
    )


def _offline_answer() -> AskDocumentQuestionOutput:
    return AskDocumentQuestionOutput.model_validate(
        {
            "plainEnglish": "This document does not provide enough detail; seek a lawyer review.",
            "analysis": {
                "severity": "Low",
                "severityJustification": _DISCLAIMER,
            },
            "riskHeatmapLabel": "Caution",
            "riskJustification": "offline mode",
            "negotiationHelper": {"alternativeClause": "", "messageTemplate": ""},
            "sources": [],
            "confidenceScore": 0,
        }
    )


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no external API is configured.

    Behavior:
    - Document analysis prompt -> minimal valid analysis JSON
    - Question prompt          -> minimal valid answer JSON
    - Role-play start prompt   -> opening line JSON
    - Anything else (role-play continuation) -> plain text echoing the last user message
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        sp = (system_prompt or "").lower()

        if "document analysis module" in sp:
            yield _offline_analysis().model_dump_json(by_alias=True)
            return

        if "legal-document assistant" in sp:
            yield _offline_answer().model_dump_json(by_alias=True)
            return

        if "start a conversation based on the user's role" in sp:
            yield StartRolePlayOutput(
                initial_response="(offline) Good morning. Tell me about your case.",
                conversation_summary="This is an offline role-play simulation.",
            ).model_dump_json(by_alias=True)
            return

        user_text = ""
        for m in reversed(messages):
            if m.get("role") == "user" and isinstance(m.get("content"), str):
                user_text = m["content"]
                break

        yield f"{_DISCLAIMER}\n\nYou said: {user_text}"
