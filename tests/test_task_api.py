# tests/test_task_api.py

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from legalintel.errors import TaskValidationError
from legalintel.tasks.handlers import build_default_handlers
from legalintel.tasks.task_api import analyze_document, ask_about_document, build_document_payload, create_task
from legalintel.tasks.task_models import TaskStatus
from legalintel.tasks.task_tracker import TaskTracker

from .fakes import FailingTaskStore, as_json, classify_output


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("user_id", "task_data"),
    [
        (None, {"type": "startRolePlay", "payload": {}}),
        ("alice", None),
        ("", {}),
        ("alice", {}),
        ("alice", ["startRolePlay"]),
        ("alice", "startRolePlay"),
    ],
)
async def test_create_task_requires_user_and_data(state, user_id, task_data) -> None:
    out = await create_task(state, user_id, task_data)
    assert out == {"error": "User ID and task data are required."}


@pytest.mark.asyncio
async def test_create_task_reports_validation_errors(state) -> None:
    assert await create_task(state, "alice", {"type": "summarize", "payload": {"x": 1}}) == {
        "error": "Unknown task type: summarize"
    }
    out = await create_task(state, "alice", {"type": "startRolePlay", "payload": {"role": "Client"}})
    assert out["error"].startswith("Invalid payload for startRolePlay")
    assert state.task_store.count_tasks() == 0


@pytest.mark.asyncio
async def test_create_task_returns_id_of_pending_task(state) -> None:
    state.llm.next_text = '{"initialResponse": "Hello.", "conversationSummary": "A meeting."}'

    out = await create_task(state, "alice", {"type": "startRolePlay", "payload": {"role": "Judge", "scenario": "x"}})

    assert set(out) == {"taskId"}
    task = await state.tracker.wait_for("alice", out["taskId"], timeout=5.0)
    assert task.status == TaskStatus.COMPLETED
    assert task.type == "startRolePlay"


@pytest.mark.asyncio
async def test_create_task_reports_storage_failure(state, settings) -> None:
    state.tracker = TaskTracker(FailingTaskStore(settings.tasks_db_path), build_default_handlers(state))

    out = await create_task(state, "alice", {"type": "startRolePlay", "payload": {"role": "Judge", "scenario": "x"}})
    assert out == {"error": "Failed to create the task. database is locked"}


def test_build_document_payload(tmp_path: Path) -> None:
    f = tmp_path / "lease.txt"
    f.write_text("Rent is due monthly.", encoding="utf-8")

    payload = build_document_payload(f)

    assert payload["fileName"] == "lease.txt"
    assert payload["mimeType"] == "text/plain"
    assert base64.b64decode(payload["fileAsBase64"]) == b"Rent is due monthly."


def test_build_document_payload_rejects_bad_files(tmp_path: Path) -> None:
    with pytest.raises(TaskValidationError, match="File not found"):
        build_document_payload(tmp_path / "missing.pdf")

    empty = tmp_path / "empty.pdf"
    empty.write_bytes(b"")
    with pytest.raises(TaskValidationError, match="File is empty"):
        build_document_payload(empty)

    big = tmp_path / "big.pdf"
    big.write_bytes(b"x" * 100)
    with pytest.raises(TaskValidationError, match="too large"):
        build_document_payload(big, max_bytes=10)

    unknown = tmp_path / "contract.zzz"
    unknown.write_bytes(b"data")
    assert build_document_payload(unknown)["mimeType"] == "application/octet-stream"


@pytest.mark.asyncio
async def test_analyze_document_runs_classification(state, tmp_path: Path) -> None:
    f = tmp_path / "lease.txt"
    f.write_text("Rent is due monthly.", encoding="utf-8")
    state.llm.next_text = as_json(classify_output())

    out = await analyze_document(state, f)
    task = await state.tracker.wait_for(state.owner, out["taskId"], timeout=5.0)

    assert task.owner == "alice"
    assert task.status == TaskStatus.COMPLETED, task.error
    assert task.payload["fileName"] == "lease.txt"


@pytest.mark.asyncio
async def test_document_helpers_report_file_errors(state, tmp_path: Path) -> None:
    missing = tmp_path / "nope.pdf"
    assert (await analyze_document(state, missing))["error"].startswith("File not found")
    assert (await ask_about_document(state, missing, "Is this fair?"))["error"].startswith("File not found")
    assert state.task_store.count_tasks() == 0
