# src/legalintel/analysis/flows.py

"""
Analysis flows: prompt in, validated model out.

Each flow builds chat messages (documents travel as multi-part content), collects the
streamed model output, extracts the JSON object and validates it against its pydantic
model. Flows are synchronous because LLMClient.stream_chat is; task handlers run them
in a worker thread.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.ports import ChatMessage, LLMClient
from ..llm.client import friendly_llm_error_message
from .prompts import (
    ASK_QUESTION_SYSTEM_PROMPT,
    CLASSIFY_DOCUMENT_SYSTEM_PROMPT,
    START_ROLE_PLAY_SYSTEM_PROMPT,
)
from .schemas import (
    AskDocumentQuestionInput,
    AskDocumentQuestionOutput,
    ClassifyDocumentInput,
    ClassifyDocumentOutput,
    ContinueRolePlayInput,
    ContinueRolePlayOutput,
    DocumentInput,
    StartRolePlayInput,
    StartRolePlayOutput,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Keep raw model output in logs readable.
_RAW_LOG_LIMIT = 2000


class AnalysisError(RuntimeError):
    """The model produced no usable output."""


def _collect(llm: LLMClient, messages: list[ChatMessage], system_prompt: str) -> str:
    raw = ""
    try:
        for piece in llm.stream_chat(messages, system_prompt):
            raw += piece
    except RuntimeError as e:
        # Client errors become the stored task error; keep them readable.
        raise AnalysisError(friendly_llm_error_message(e)) from e
    return raw.strip()


def _extract_json_object(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("{") and raw.endswith("}"):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def parse_model_output(raw: str, model: type[M]) -> M:
    if not raw:
        raise AnalysisError("The AI returned an empty response.")
    try:
        data = json.loads(_extract_json_object(raw))
    except json.JSONDecodeError as e:
        logger.warning("Model output is not JSON. Raw=%r", raw[:_RAW_LOG_LIMIT])
        raise AnalysisError("The AI response was not valid JSON.") from e
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("Model output failed %s validation: %s", model.__name__, e)
        raise AnalysisError(f"The AI response did not match the expected format ({e.error_count()} errors).") from e


def document_content_parts(doc: DocumentInput) -> list[dict[str, Any]]:
    """
    Turn an uploaded document into chat content parts.

    - text/*  -> decoded and inlined
    - image/* -> image_url data URL
    - other   -> file part with a data URL (PDF, DOCX, ...)
    """
    mime = doc.mime_type.strip().lower()
    data_url = f"data:{mime};base64,{doc.file_as_base64}"

    if mime.startswith("text/"):
        try:
            text = base64.b64decode(doc.file_as_base64, validate=True).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as e:
            raise AnalysisError("The document is not valid base64.") from e
        label = doc.file_name or "document"
        return [{"type": "text", "text": f"Document ({label}):\n\n{text}"}]

    if mime.startswith("image/"):
        return [{"type": "image_url", "image_url": {"url": data_url}}]

    return [
        {
            "type": "file",
            "file": {"filename": doc.file_name or "document", "file_data": data_url},
        }
    ]


def classify_document(llm: LLMClient, data: ClassifyDocumentInput) -> ClassifyDocumentOutput:
    messages: list[ChatMessage] = [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "Analyze this document."},
                *document_content_parts(data),
            ],
        }
    ]
    raw = _collect(llm, messages, CLASSIFY_DOCUMENT_SYSTEM_PROMPT)
    return parse_model_output(raw, ClassifyDocumentOutput)


def ask_document_question(llm: LLMClient, data: AskDocumentQuestionInput) -> AskDocumentQuestionOutput:
    messages: list[ChatMessage] = [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": f'User Question: "{data.question}"'},
                *document_content_parts(data),
            ],
        }
    ]
    raw = _collect(llm, messages, ASK_QUESTION_SYSTEM_PROMPT)
    return parse_model_output(raw, AskDocumentQuestionOutput)


def start_role_play(llm: LLMClient, data: StartRolePlayInput) -> StartRolePlayOutput:
    messages: list[ChatMessage] = [
        {"role": "user", "content": f'User\'s Role: "{data.role}"\nScenario: "{data.scenario}"'}
    ]
    raw = _collect(llm, messages, START_ROLE_PLAY_SYSTEM_PROMPT)
    return parse_model_output(raw, StartRolePlayOutput)


def continue_role_play(llm: LLMClient, data: ContinueRolePlayInput) -> ContinueRolePlayOutput:
    """Free-text reply: the first message is the system prompt, the rest is the history."""
    system_prompt = data.messages[0].content
    history: list[ChatMessage] = [{"role": m.role, "content": m.content} for m in data.messages[1:]]
    if not history:
        raise AnalysisError("The conversation has no user message to answer.")

    text = _collect(llm, history, system_prompt)
    if not text:
        raise AnalysisError("The AI failed to generate a response. This may be due to the content filter.")
    return ContinueRolePlayOutput(response=text)
