# src/legalintel/tasks/handlers.py

"""
Default task handlers.

One handler per TaskType. Each runs its analysis flow in a worker thread (the LLM client
is blocking), then shapes and persists the result the way the front-end expects it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from ..analysis.flows import ask_document_question, classify_document, continue_role_play, start_role_play
from ..analysis.prompts import role_play_system_prompt
from ..analysis.schemas import (
    AskDocumentQuestionInput,
    ClassifyDocumentInput,
    ContinueRolePlayInput,
    StartRolePlayInput,
)
from ..core.state import AppState
from .task_models import TaskType
from .task_registry import HandlerRegistry, TaskContext, TaskHandler

logger = logging.getLogger(__name__)


def estimate_cost_range(lawyers: Sequence[Any], estimated_hearings: float) -> str:
    """
    "₹min - ₹max" over cost_per_hearing * estimated_hearings for the recommended lawyers.

    Lawyers without a positive cost are ignored; "N/A" when nothing is left.
    """
    if estimated_hearings <= 0 or not lawyers:
        return "N/A"
    costs = [float(getattr(lawyer, "cost_per_hearing", 0.0)) * estimated_hearings for lawyer in lawyers]
    costs = [c for c in costs if c > 0]
    if not costs:
        return "N/A"
    return f"₹{min(costs):,.0f} - ₹{max(costs):,.0f}"


async def run_classify_document(state: AppState, ctx: TaskContext, data: ClassifyDocumentInput) -> dict[str, Any]:
    analysis = await asyncio.to_thread(classify_document, state.llm, data)

    limit = int(getattr(state.settings, "recommended_lawyers_limit", 3))
    lawyers = []
    if analysis.lawyer_category:
        lawyers = state.records.find_lawyers_by_specialty(analysis.lawyer_category, limit=limit)

    result = analysis.to_wire()
    result["recommendedLawyers"] = [lawyer.to_dict() for lawyer in lawyers]
    result["expenditureAnalysis"]["estimatedCostRange"] = estimate_cost_range(
        lawyers, analysis.expenditure_analysis.estimated_hearings
    )

    try:
        state.records.add_history_entry(
            ctx.owner,
            {
                **result,
                "taskId": ctx.task_id,
                "fileName": data.file_name,
                "fileAsBase64": data.file_as_base64,
                "mimeType": data.mime_type,
            },
        )
    except Exception:
        # History is a convenience copy; the task result is what the client waits for.
        logger.exception("History write failed task_id=%s", ctx.task_id)

    return result


async def run_ask_question(state: AppState, ctx: TaskContext, data: AskDocumentQuestionInput) -> dict[str, Any]:
    answer = await asyncio.to_thread(ask_document_question, state.llm, data)
    return answer.to_wire()


async def run_start_role_play(state: AppState, ctx: TaskContext, data: StartRolePlayInput) -> dict[str, Any]:
    opening = await asyncio.to_thread(start_role_play, state.llm, data)
    out = opening.to_wire()

    session_id = state.records.add_role_play_session(
        ctx.owner,
        {
            "role": data.role,
            "scenario": data.scenario,
            **out,
            "messages": [
                {"role": "system", "content": role_play_system_prompt(data.role, data.scenario)},
                {"role": "assistant", "content": opening.initial_response},
            ],
        },
    )
    out["sessionId"] = session_id
    return out


async def run_continue_role_play(state: AppState, ctx: TaskContext, data: ContinueRolePlayInput) -> dict[str, Any]:
    reply = await asyncio.to_thread(continue_role_play, state.llm, data)

    if data.session_id:
        last = data.messages[-1]
        state.records.append_role_play_messages(
            ctx.owner,
            data.session_id,
            [
                {"role": last.role, "content": last.content},
                {"role": "assistant", "content": reply.response},
            ],
        )

    return reply.to_wire()


def build_default_handlers(state: AppState) -> HandlerRegistry:
    """Registry with one entry per TaskType, bound to `state`."""

    def bind(fn):
        async def run(ctx: TaskContext, payload: Any) -> Any:
            return await fn(state, ctx, payload)

        return run

    return HandlerRegistry(
        [
            TaskHandler(TaskType.CLASSIFY_DOCUMENT.value, bind(run_classify_document), ClassifyDocumentInput),
            TaskHandler(TaskType.ASK_QUESTION.value, bind(run_ask_question), AskDocumentQuestionInput),
            TaskHandler(TaskType.START_ROLE_PLAY.value, bind(run_start_role_play), StartRolePlayInput),
            TaskHandler(TaskType.CONTINUE_ROLE_PLAY.value, bind(run_continue_role_play), ContinueRolePlayInput),
        ]
    )
