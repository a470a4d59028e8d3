# src/legalintel/analysis/schemas.py

"""
Input/output models for the analysis flows.

Field names are snake_case in Python and camelCase on the wire (task payloads,
task results, model JSON). Models accept either spelling on input.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

RiskLevel = Literal["Low", "Medium", "High"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---- document inputs ----


class DocumentInput(CamelModel):
    file_as_base64: str = Field(min_length=1, description="The file content as a Base64 encoded string.")
    mime_type: str = Field(min_length=1, description="The mime type of the file.")
    file_name: Optional[str] = None


class ClassifyDocumentInput(DocumentInput):
    pass


class AskDocumentQuestionInput(DocumentInput):
    question: str = Field(min_length=1, description="The user's question or scenario to simulate.")


# ---- classifyDocument output ----


class ExecutiveSummary(CamelModel):
    overview: str
    balance_of_power: str


class ClauseSimplification(CamelModel):
    clause: str
    simplification: str
    risk_level: RiskLevel
    risk_reason: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)
    clarity_score: float = Field(ge=1, le=10)


class RiskItem(CamelModel):
    clause: str
    risk: str
    suggestion: str


class HiddenTrap(CamelModel):
    clause: str
    trap: str


class JargonTerm(CamelModel):
    term: str
    explanation: str
    clause: str


class TimeBomb(CamelModel):
    action: str
    deadline: str
    consequence: str


class PrivacyDataUse(CamelModel):
    clause: str
    data_shared: str
    shared_with: str
    duration: str


class NegotiationMove(CamelModel):
    clause: str
    strategy: str


class CostBenefitSnapshot(CamelModel):
    summary: str
    costs: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)


class FairnessScoreJurisdiction(CamelModel):
    fairness_score: float = Field(ge=1, le=10)
    fairness_reasoning: str
    jurisdiction: str
    jurisdiction_impact: str


class ComplianceEthicalNote(CamelModel):
    compliance_warning: Optional[str] = None
    ethical_note: Optional[str] = None


class ActionPrioritizer(CamelModel):
    critical: list[str] = Field(default_factory=list)
    important: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)


class ExpenditureAnalysis(CamelModel):
    proceeding_type: str
    estimated_hearings: float = Field(ge=0)
    cost_factors: list[str] = Field(default_factory=list)
    disclaimer: str


class ClassifyDocumentOutput(CamelModel):
    executive_summary: ExecutiveSummary
    clause_by_clause: list[ClauseSimplification] = Field(default_factory=list)
    risk_radar: list[RiskItem] = Field(default_factory=list)
    hidden_traps: list[HiddenTrap] = Field(default_factory=list)
    jargon_buster: list[JargonTerm] = Field(default_factory=list)
    time_bomb_detector: list[TimeBomb] = Field(default_factory=list)
    privacy_data_use: list[PrivacyDataUse] = Field(default_factory=list)
    consumer_checklist: list[str] = Field(default_factory=list)
    negotiation_playbook: list[NegotiationMove] = Field(default_factory=list)
    cost_benefit_snapshot: CostBenefitSnapshot
    fairness_score_jurisdiction: FairnessScoreJurisdiction
    compliance_ethical_note: ComplianceEthicalNote = Field(default_factory=ComplianceEthicalNote)
    action_prioritizer: ActionPrioritizer = Field(default_factory=ActionPrioritizer)
    expenditure_analysis: ExpenditureAnalysis
    lawyer_category: str = ""


# ---- askQuestion output ----


class ClauseAnalysis(CamelModel):
    parties: list[str] = Field(default_factory=list)
    obligations: list[str] = Field(default_factory=list)
    deadlines_or_penalties: list[str] = Field(default_factory=list)
    rights_waived_or_gained: list[str] = Field(default_factory=list)
    severity: RiskLevel
    severity_justification: str


class NegotiationHelper(CamelModel):
    alternative_clause: str
    message_template: str


class AskDocumentQuestionOutput(CamelModel):
    plain_english: str
    analysis: ClauseAnalysis
    risk_heatmap_label: Literal["Safe", "Caution", "High-Risk"]
    risk_justification: str
    negotiation_helper: NegotiationHelper
    sources: list[str] = Field(default_factory=list)
    confidence_score: float = Field(ge=0, le=100)


# ---- role-play ----


class RolePlayMessage(CamelModel):
    role: Literal["user", "assistant", "system"]
    content: str


class StartRolePlayInput(CamelModel):
    role: str = Field(min_length=1, description="The role the user plays (Client, Judge, Lawyer...).")
    scenario: str = Field(min_length=1, description="The legal scenario provided by the user.")


class StartRolePlayOutput(CamelModel):
    initial_response: str
    conversation_summary: str


class ContinueRolePlayInput(CamelModel):
    messages: list[RolePlayMessage] = Field(min_length=1)
    session_id: Optional[str] = None

    @field_validator("messages")
    @classmethod
    def starts_with_system(cls, v: list[RolePlayMessage]) -> list[RolePlayMessage]:
        if v[0].role != "system":
            raise ValueError("Conversation must start with a system message.")
        return v


class ContinueRolePlayOutput(CamelModel):
    response: str
