# tests/test_commands.py

from __future__ import annotations

import base64

from legalintel.cli.commands import CommandRegistry, format_update
from legalintel.cli.commands import registry as commands
from legalintel.tasks.task_models import Task, TaskStatus

from .fakes import as_json, classify_output


def test_command_registry_routes_and_emits(state) -> None:
    reg = CommandRegistry()
    called = {"a": 0}
    notes: list[str] = []

    def handler(state, args, emit):
        called["a"] += 1
        if emit is not None:
            emit("note")
        return " ".join(args)

    reg.register("a", handler, "a", aliases=["alpha"])

    assert reg.handle(state, "/a x y") == "x y"
    assert reg.handle(state, "/ALPHA z", emit=notes.append) == "z"
    assert called["a"] == 2
    assert notes == ["note"]
    assert "/a - a" in reg.build_help()


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_login_switches_owner(state) -> None:
    assert commands.handle(state, "/whoami") == "You are acting as owner 'alice'."
    assert commands.handle(state, "/login") == "Usage: /login <owner>"
    assert commands.handle(state, "/login bob") == "Now acting as owner 'bob'."
    assert state.owner == "bob"


def test_status_lists_task_types(state) -> None:
    out = commands.handle(state, "/status") or ""
    assert "Owner: alice" in out
    assert "FakeLLMClient" in out
    assert "askQuestion, classifyDocument, continueRolePlay, startRolePlay" in out


def test_lawyer_add_and_list(state) -> None:
    assert commands.handle(state, "/lawyers") == "No lawyers found."
    assert commands.handle(state, "/lawyer-add only|three|fields") == (
        "Usage: /lawyer-add name|specialty|location|contact|cost"
    )
    assert "Invalid cost" in (commands.handle(state, "/lawyer-add A|Tenant Law|Pune|a@x.in|cheap") or "")

    out = commands.handle(state, "/lawyer-add Anita Rao | Tenant Law | Pune | anita@example.in | 4500") or ""
    assert out.startswith("Lawyer added")

    listing = commands.handle(state, "/lawyers Tenant Law") or ""
    assert "Anita Rao - Tenant Law, Pune, anita@example.in, ₹4,500/hearing" in listing
    assert commands.handle(state, "/lawyers Family Law") == "No lawyers found."


def test_tasks_and_task_lookup(state) -> None:
    assert commands.handle(state, "/tasks") == "No tasks for owner 'alice'."
    assert commands.handle(state, "/task deadbeef") == "Task not found: deadbeef"

    task = state.task_store.create_task(owner="alice", task_type="startRolePlay", payload={"role": "x"})

    listing = commands.handle(state, "/tasks") or ""
    assert task.id[:8] in listing and "pending" in listing
    detail = commands.handle(state, f"/task {task.id[:6]}") or ""
    assert detail.startswith(f"[task {task.id[:8]}] startRolePlay: pending")

    commands.handle(state, "/login bob")
    assert commands.handle(state, f"/task {task.id}") == f"Task not found: {task.id}"


def test_format_update_for_terminal_tasks() -> None:
    base = dict(id="0123456789", owner="alice", payload={}, created_at=0.0, updated_at=0.0, revision=3)

    failed = Task(type="askQuestion", status=TaskStatus.FAILED, error="Task timed out after 180s", **base)
    assert format_update(failed) == "[task 01234567] askQuestion: failed: Task timed out after 180s"

    done = Task(type="continueRolePlay", status=TaskStatus.COMPLETED, result={"response": "Objection."}, **base)
    assert format_update(done) == "[task 01234567] continueRolePlay: completed\nObjection."


def test_analyze_streams_updates_through_emit(state, loop_runner, tmp_path) -> None:
    state.task_loop = loop_runner
    state.llm.next_text = as_json(classify_output())
    state.records.add_lawyer(name="Anita Rao", specialty="Tenant Law", location="Pune", cost_per_hearing=4500)
    doc = tmp_path / "lease.txt"
    doc.write_text("Rent is due monthly.", encoding="utf-8")

    updates: list[str] = []
    reply = commands.handle(state, f"/analyze {doc}", emit=updates.append) or ""
    loop_runner.settle()

    assert reply.startswith("Submitted task")
    statuses = [u.split("\n")[0].rsplit(": ", 1)[-1] for u in updates]
    # the handler may already be running (or done) when the watch starts
    assert statuses and statuses == ["pending", "processing", "completed"][-len(statuses) :]
    assert "Estimated cost: ₹13,500 - ₹13,500" in updates[-1]
    assert "Anita Rao (Pune)" in updates[-1]

    history = commands.handle(state, "/history") or ""
    assert "lease.txt  [Tenant Law]" in history


def test_analyze_reports_submission_errors(state, loop_runner, tmp_path) -> None:
    state.task_loop = loop_runner
    assert commands.handle(state, "/analyze") == "Usage: /analyze <path>"
    out = commands.handle(state, f"/analyze {tmp_path / 'missing.pdf'}") or ""
    assert out.startswith("Error: File not found")


def test_roleplay_then_say(state, loop_runner) -> None:
    state.task_loop = loop_runner
    state.llm.next_text = '{"initialResponse": "Be seated.", "conversationSummary": "A hearing."}'

    assert commands.handle(state, "/roleplay Client") == "Usage: /roleplay <role> | <scenario>"
    assert commands.handle(state, "/roleplay Client | Unpaid deposit", emit=lambda _: None).startswith("Submitted")
    loop_runner.settle()

    started = state.task_store.list_tasks("alice")[0]
    session_id = started.result["sessionId"]

    state.llm.next_text = "What happened next?"
    updates: list[str] = []
    commands.handle(state, f"/say {session_id} He kept the deposit.", emit=updates.append)
    loop_runner.settle()

    assert updates[-1].endswith("completed\nWhat happened next?")
    session = state.records.get_role_play_session("alice", session_id)
    assert session["messages"][-1] == {"role": "assistant", "content": "What happened next?"}
    assert commands.handle(state, "/say nope hi") == "Role-play session not found: nope"


def test_cancel_command(state, loop_runner) -> None:
    state.task_loop = loop_runner
    assert commands.handle(state, "/cancel") == "Usage: /cancel <id>"
    assert commands.handle(state, "/cancel abc") == "Task not found: abc"

    payload = {"fileAsBase64": base64.b64encode(b"x").decode("ascii"), "mimeType": "text/plain"}
    task = state.task_store.create_task(owner="alice", task_type="classifyDocument", payload=payload)
    assert commands.handle(state, f"/cancel {task.id}") == f"Task {task.id[:8]} is not running."


def test_roleplay_delete(state) -> None:
    session_id = state.records.add_role_play_session("alice", {"role": "Client", "messages": []})

    assert commands.handle(state, "/roleplay-delete") == "Usage: /roleplay-delete <session id>"
    commands.handle(state, "/login bob")
    assert commands.handle(state, f"/roleplay-delete {session_id}") == f"Role-play session not found: {session_id}"
    commands.handle(state, "/login alice")
    assert commands.handle(state, f"/roleplay-delete {session_id}") == f"Role-play session {session_id} deleted."
    assert commands.handle(state, f"/say {session_id} hello") == f"Role-play session not found: {session_id}"


def test_case_log_commands(state) -> None:
    assert commands.handle(state, "/cases") == "No case logs yet."
    assert commands.handle(state, "/case-new just a name") == "Usage: /case-new case name|client name[|case number]"
    assert commands.handle(state, "/case-new Rao v. Mehta |  ") == "Error: Client name is required."

    out = commands.handle(state, "/case-new Rao v. Mehta | Anita Rao | 12/2024") or ""
    assert out.startswith("Case log created (")
    case_id = out[len("Case log created (") : -2]

    assert commands.handle(state, f"/case-note {case_id}") == "Usage: /case-note <case id> <text>"
    assert commands.handle(state, "/case-note nope Filed.") == "Case log not found: nope"
    assert commands.handle(state, f"/case-note {case_id} Filed the plaint.") == f"Entry added to case {case_id}."

    listing = commands.handle(state, "/cases") or ""
    assert f"{case_id}  Rao v. Mehta #12/2024 (client: Anita Rao)" in listing

    detail = (commands.handle(state, f"/cases {case_id}") or "").splitlines()
    assert detail[0] == "Rao v. Mehta #12/2024 (client: Anita Rao)"
    assert detail[1].endswith("  Filed the plaint.")

    commands.handle(state, "/login bob")
    assert commands.handle(state, f"/cases {case_id}") == f"Case log not found: {case_id}"
