# tests/fakes.py

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from legalintel.core.ports import ChatMessage
from legalintel.tasks.task_store import TaskStore


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Yields a predefined text as a single chunk
    """

    def __init__(self, next_text: str = "ok") -> None:
        self.next_text = next_text
        self.calls: list[tuple[list[ChatMessage], str]] = []

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        self.calls.append((messages, system_prompt))
        yield self.next_text


class FailingTaskStore(TaskStore):
    """TaskStore whose initial insert always fails (disk full, locked db, ...)."""

    def create_task(self, *, owner: str, task_type: str, payload: Any):
        raise OSError("database is locked")


def classify_output(**overrides: Any) -> dict[str, Any]:
    """A complete classifyDocument model response in wire (camelCase) form."""
    out: dict[str, Any] = {
        "executiveSummary": {
            "overview": "A twelve month residential lease.",
            "balanceOfPower": "Landlord Favored (70/30)",
        },
        "clauseByClause": [
            {
                "clause": "Clause 4: Security deposit",
                "simplification": "You pay two months of rent up front.",
                "riskLevel": "Medium",
                "riskReason": "Refund conditions are vague.",
                "suggestions": ["Ask for a refund deadline."],
                "clarityScore": 6,
            }
        ],
        "riskRadar": [
            {"clause": "Clause 9", "risk": "Unlimited repair costs.", "suggestion": "Cap the amount."},
        ],
        "hiddenTraps": [],
        "jargonBuster": [],
        "timeBombDetector": [],
        "privacyDataUse": [],
        "consumerChecklist": ["Photograph the flat before moving in."],
        "negotiationPlaybook": [],
        "costBenefitSnapshot": {"summary": "Fair rent, strict terms.", "costs": [], "benefits": []},
        "fairnessScoreJurisdiction": {
            "fairnessScore": 5,
            "fairnessReasoning": "One-sided repair terms.",
            "jurisdiction": "Karnataka, India",
            "jurisdictionImpact": "Rent control rules apply.",
        },
        "complianceEthicalNote": {},
        "actionPrioritizer": {"critical": ["Negotiate clause 9."], "important": [], "optional": []},
        "expenditureAnalysis": {
            "proceedingType": "Civil Suit",
            "estimatedHearings": 3,
            "costFactors": ["Court fees"],
            "disclaimer": "This is a rough estimate.",
        },
        "lawyerCategory": "Tenant Law",
    }
    out.update(overrides)
    return out


def answer_output() -> dict[str, Any]:
    return {
        "plainEnglish": "You can leave with one month of notice.",
        "analysis": {
            "parties": ["Tenant", "Landlord"],
            "obligations": ["Give notice"],
            "deadlinesOrPenalties": ["30 days"],
            "rightsWaivedOrGained": [],
            "severity": "Low",
            "severityJustification": "Standard notice period.",
        },
        "riskHeatmapLabel": "Safe",
        "riskJustification": "Common notice term.",
        "negotiationHelper": {"alternativeClause": "15 days notice.", "messageTemplate": "Hello. Could we?"},
        "sources": ["Either party may terminate with 30 days notice."],
        "confidenceScore": 90,
    }


def as_json(data: dict[str, Any]) -> str:
    return json.dumps(data)
