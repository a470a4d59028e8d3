# src/legalintel/tasks/task_api.py

from __future__ import annotations

import base64
import logging
import mimetypes
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..core.state import AppState
from ..errors import TaskStorageError, TaskValidationError
from .task_models import TaskType

logger = logging.getLogger(__name__)


async def create_task(state: AppState, user_id: str | None, task_data: Mapping[str, Any] | None) -> dict[str, str]:
    """
    Submission entry point: {"type": ..., "payload": ...} -> {"taskId": id} | {"error": message}.

    The handler keeps running after this returns; its outcome lands on the task record.
    """
    if not user_id or not isinstance(task_data, Mapping) or not task_data:
        return {"error": "User ID and task data are required."}

    try:
        task_id = await state.require_tracker().submit(
            user_id,
            str(task_data.get("type") or ""),
            task_data.get("payload"),
        )
    except TaskValidationError as e:
        return {"error": str(e)}
    except TaskStorageError as e:
        return {"error": f"Failed to create the task. {e}"}

    return {"taskId": task_id}


def build_document_payload(path: str | Path, *, max_bytes: int | None = None) -> dict[str, Any]:
    """
    Read a local file into the {fileAsBase64, mimeType, fileName} payload documents travel as.
    """
    p = Path(path).expanduser()
    if not p.is_file():
        raise TaskValidationError(f"File not found: {p}")

    size = p.stat().st_size
    if size == 0:
        raise TaskValidationError(f"File is empty: {p.name}")
    if max_bytes is not None and max_bytes > 0 and size > max_bytes:
        raise TaskValidationError(f"File is too large ({size} bytes, limit {max_bytes}).")

    mime, _ = mimetypes.guess_type(p.name)
    return {
        "fileAsBase64": base64.b64encode(p.read_bytes()).decode("ascii"),
        "mimeType": mime or "application/octet-stream",
        "fileName": p.name,
    }


async def analyze_document(state: AppState, path: str | Path) -> dict[str, str]:
    """Convenience helper: submit a classifyDocument task for a local file."""
    try:
        payload = build_document_payload(path, max_bytes=getattr(state.settings, "max_upload_bytes", None))
    except TaskValidationError as e:
        return {"error": str(e)}
    return await create_task(state, state.owner, {"type": TaskType.CLASSIFY_DOCUMENT.value, "payload": payload})


async def ask_about_document(state: AppState, path: str | Path, question: str) -> dict[str, str]:
    """Convenience helper: submit an askQuestion task for a local file."""
    try:
        payload = build_document_payload(path, max_bytes=getattr(state.settings, "max_upload_bytes", None))
    except TaskValidationError as e:
        return {"error": str(e)}
    payload["question"] = question
    return await create_task(state, state.owner, {"type": TaskType.ASK_QUESTION.value, "payload": payload})
