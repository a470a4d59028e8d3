# src/legalintel/cli/commands.py

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..core.state import AppState
from ..errors import TaskNotFoundError
from ..tasks.task_api import analyze_document, ask_about_document, create_task
from ..tasks.task_models import Task, TaskStatus, TaskType

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /analyze, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _ts_local(ts: float | None = None) -> str:
    dt = datetime.fromtimestamp(ts).astimezone() if ts else datetime.now().astimezone()
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def _short(task_id: str) -> str:
    return task_id[:8]


def _run(state: AppState, coro: Any) -> Any:
    if state.task_loop is None:
        coro.close()
        raise RuntimeError("Task loop is not running.")
    return state.task_loop.run(coro)


def _find_task(state: AppState, ref: str) -> Task | None:
    """Accept a full task id or a unique prefix of one of the owner's recent tasks."""
    tracker = state.require_tracker()
    try:
        return tracker.get(state.owner, ref)
    except TaskNotFoundError:
        pass
    matches = [t for t in tracker.list_tasks(state.owner, limit=100) if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


# ---- task rendering ----


def format_result(task: Task) -> str:
    r = task.result if isinstance(task.result, dict) else {}

    if task.type == TaskType.CLASSIFY_DOCUMENT:
        summary = r.get("executiveSummary") or {}
        expenditure = r.get("expenditureAnalysis") or {}
        lines = [
            f"Overview: {summary.get('overview', '')}",
            f"Balance of power: {summary.get('balanceOfPower', '')}",
        ]
        for item in r.get("riskRadar") or []:
            lines.append(f"  ! {item.get('clause', '?')}: {item.get('risk', '')}")
        lines.append(f"Lawyer category: {r.get('lawyerCategory') or 'n/a'}")
        lines.append(f"Estimated cost: {expenditure.get('estimatedCostRange', 'N/A')}")
        for lawyer in r.get("recommendedLawyers") or []:
            lines.append(f"  - {lawyer.get('name')} ({lawyer.get('location')}) {lawyer.get('contact')}")
        return "\n".join(lines)

    if task.type == TaskType.ASK_QUESTION:
        return (
            f"{r.get('plainEnglish', '')}\n"
            f"Risk: {r.get('riskHeatmapLabel', '?')} ({r.get('riskJustification', '')}), "
            f"confidence {r.get('confidenceScore', '?')}"
        )

    if task.type == TaskType.START_ROLE_PLAY:
        return f"{r.get('initialResponse', '')}\n(session {r.get('sessionId', '?')}; reply with /say <session> <text>)"

    if task.type == TaskType.CONTINUE_ROLE_PLAY:
        return str(r.get("response", ""))

    return json.dumps(task.result, ensure_ascii=False)[:2000]


def format_update(task: Task) -> str:
    head = f"[task {_short(task.id)}] {task.type}: {task.status.value}"
    if task.status == TaskStatus.COMPLETED:
        return f"{head}\n{format_result(task)}"
    if task.status == TaskStatus.FAILED:
        return f"{head}: {task.error}"
    return head


def _submit_and_watch(state: AppState, submit: Any, emit: CommandEmitter | None) -> str:
    """Run a submission on the task loop, then stream the task's updates through emit."""
    out = _run(state, submit)
    if "error" in out:
        return f"Error: {out['error']}"

    task_id = out["taskId"]
    if emit is not None:
        try:
            state.require_tracker().observe(state.owner, task_id, lambda t: emit(format_update(t)))
        except TaskNotFoundError:
            logger.warning("Task %s vanished right after submit", task_id)
    return f"Submitted task {_short(task_id)} ({task_id})."


# ---- commands ----


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    llm_name = type(state.llm).__name__
    timeout = getattr(state.settings, "task_timeout_seconds", 0) or 0
    return (
        "Status:\n"
        f"  Owner: {state.owner}\n"
        f"  LLM client: {llm_name}\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Task timeout: {f'{timeout:g}s' if timeout else 'none'}\n"
        f"  Task types: {', '.join(state.require_tracker().task_types)}"
    )


def cmd_whoami(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return f"You are acting as owner '{state.owner}'."


def cmd_login(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args or not args[0].strip():
        return "Usage: /login <owner>"
    with state.lock:
        state.owner = args[0].strip()
    logger.debug("Owner switched to %s", state.owner)
    return f"Now acting as owner '{state.owner}'."


def cmd_analyze(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /analyze <path>"
    return _submit_and_watch(state, analyze_document(state, " ".join(args)), emit)


def cmd_ask(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 2:
        return "Usage: /ask <path> <question>"
    return _submit_and_watch(state, ask_about_document(state, args[0], " ".join(args[1:])), emit)


def cmd_task(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /task <id>"
    task = _find_task(state, args[0])
    if task is None:
        return f"Task not found: {args[0]}"
    return f"{format_update(task)}\n  created: {_ts_local(task.created_at)}, revision {task.revision}"


def cmd_tasks(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    tasks = state.require_tracker().list_tasks(state.owner, limit=20)
    if not tasks:
        return f"No tasks for owner '{state.owner}'."
    lines = [f"Recent tasks for {state.owner}:"]
    for t in tasks:
        lines.append(f"  {_short(t.id)}  {_ts_local(t.created_at)}  {t.type:<18} {t.status.value}")
    return "\n".join(lines)


def cmd_cancel(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /cancel <id>"
    task = _find_task(state, args[0])
    if task is None:
        return f"Task not found: {args[0]}"
    # asyncio tasks must be cancelled from their own loop.
    cancelled = _run(state, _cancel_on_loop(state.require_tracker(), state.owner, task.id))
    return f"Cancelling task {_short(task.id)}." if cancelled else f"Task {_short(task.id)} is not running."


async def _cancel_on_loop(tracker: Any, owner: str, task_id: str) -> bool:
    return tracker.cancel(owner, task_id)


def cmd_history(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    entries = state.records.list_history(state.owner, limit=20)
    if not entries:
        return "No analyses saved yet."
    lines = ["Saved analyses:"]
    for e in entries:
        category = e.data.get("lawyerCategory") or "n/a"
        lines.append(f"  {_ts_local(e.created_at)}  {e.file_name or '(unnamed)'}  [{category}]")
    return "\n".join(lines)


def cmd_lawyers(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    specialty = " ".join(args).strip()
    if specialty:
        lawyers = state.records.find_lawyers_by_specialty(specialty, limit=50)
    else:
        lawyers = state.records.list_lawyers(limit=50)
    if not lawyers:
        return "No lawyers found."
    lines = ["Lawyers:"]
    for lw in lawyers:
        lines.append(
            f"  {lw.name} - {lw.specialty}, {lw.location}, {lw.contact}, ₹{lw.cost_per_hearing:,.0f}/hearing"
        )
    return "\n".join(lines)


def cmd_lawyer_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    usage = "Usage: /lawyer-add name|specialty|location|contact|cost"
    fields = [f.strip() for f in " ".join(args).split("|")]
    if len(fields) != 5:
        return usage
    name, specialty, location, contact, cost_raw = fields
    try:
        cost = float(cost_raw)
    except ValueError:
        return f"Invalid cost: {cost_raw!r}. {usage}"
    try:
        lawyer_id = state.records.add_lawyer(
            name=name, specialty=specialty, location=location, contact=contact, cost_per_hearing=cost
        )
    except ValueError as e:
        return f"Error: {e}"
    return f"Lawyer added ({lawyer_id})."


def cmd_roleplay(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    raw = " ".join(args)
    if "|" not in raw:
        return "Usage: /roleplay <role> | <scenario>"
    role, scenario = (p.strip() for p in raw.split("|", 1))
    if not role or not scenario:
        return "Role and scenario are required."
    payload = {"role": role, "scenario": scenario}
    return _submit_and_watch(
        state, create_task(state, state.owner, {"type": TaskType.START_ROLE_PLAY.value, "payload": payload}), emit
    )


def cmd_say(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 2:
        return "Usage: /say <session id> <text>"
    session_id, text = args[0], " ".join(args[1:])
    session = state.records.get_role_play_session(state.owner, session_id)
    if session is None:
        return f"Role-play session not found: {session_id}"
    messages = [{"role": m["role"], "content": m["content"]} for m in session.get("messages", [])]
    messages.append({"role": "user", "content": text})
    payload = {"messages": messages, "sessionId": session_id}
    return _submit_and_watch(
        state, create_task(state, state.owner, {"type": TaskType.CONTINUE_ROLE_PLAY.value, "payload": payload}), emit
    )


def cmd_roleplay_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) != 1:
        return "Usage: /roleplay-delete <session id>"
    session_id = args[0]
    if not state.records.delete_role_play_session(state.owner, session_id):
        return f"Role-play session not found: {session_id}"
    return f"Role-play session {session_id} deleted."


def cmd_case_new(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    fields = [f.strip() for f in " ".join(args).split("|")]
    if len(fields) not in (2, 3):
        return "Usage: /case-new case name|client name[|case number]"
    case_name, client_name = fields[0], fields[1]
    case_number = fields[2] if len(fields) == 3 else None
    try:
        case_id = state.records.create_case_log(
            state.owner, case_name=case_name, client_name=client_name, case_number=case_number
        )
    except ValueError as e:
        return f"Error: {e}"
    return f"Case log created ({case_id})."


def cmd_case_note(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 2:
        return "Usage: /case-note <case id> <text>"
    case_id, text = args[0], " ".join(args[1:])
    try:
        state.records.add_case_log_entry(state.owner, case_id, text)
    except LookupError:
        return f"Case log not found: {case_id}"
    except ValueError as e:
        return f"Error: {e}"
    return f"Entry added to case {case_id}."


def cmd_cases(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if args:
        case = state.records.get_case_log(state.owner, args[0])
        if case is None:
            return f"Case log not found: {args[0]}"
        number = f" #{case.case_number}" if case.case_number else ""
        lines = [f"{case.case_name}{number} (client: {case.client_name})"]
        if not case.entries:
            lines.append("  No entries yet.")
        for e in case.entries:
            lines.append(f"  {_ts_local(e.created_at)}  {e.entry}")
        return "\n".join(lines)

    cases = state.records.list_case_logs(state.owner)
    if not cases:
        return "No case logs yet."
    lines = ["Case logs:"]
    for c in cases:
        number = f" #{c.case_number}" if c.case_number else ""
        lines.append(f"  {c.id}  {c.case_name}{number} (client: {c.client_name}), updated {_ts_local(c.updated_at)}")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show owner, LLM client and task settings.")
registry.register("whoami", cmd_whoami, help_text="Show the owner tasks are created under.")
registry.register("login", cmd_login, help_text="Act as another owner: /login <owner>.")
registry.register("analyze", cmd_analyze, help_text="Analyze a document: /analyze <path>.")
registry.register("ask", cmd_ask, help_text="Ask about a document: /ask <path> <question>.")
registry.register("task", cmd_task, help_text="Show one task: /task <id or prefix>.")
registry.register("tasks", cmd_tasks, help_text="List your recent tasks.")
registry.register("cancel", cmd_cancel, help_text="Cancel a running task: /cancel <id or prefix>.")
registry.register("history", cmd_history, help_text="List saved document analyses.")
registry.register("lawyers", cmd_lawyers, help_text="List lawyers: /lawyers [specialty].")
registry.register(
    "lawyer-add", cmd_lawyer_add, help_text="Add a lawyer: /lawyer-add name|specialty|location|contact|cost."
)
registry.register("roleplay", cmd_roleplay, help_text="Start a role-play: /roleplay <role> | <scenario>.")
registry.register("say", cmd_say, help_text="Continue a role-play: /say <session id> <text>.")
registry.register(
    "roleplay-delete", cmd_roleplay_delete, help_text="Delete a role-play: /roleplay-delete <session id>."
)
registry.register(
    "case-new", cmd_case_new, help_text="Open a case log: /case-new case name|client name[|case number]."
)
registry.register("case-note", cmd_case_note, help_text="Add a case log entry: /case-note <case id> <text>.")
registry.register("cases", cmd_cases, help_text="List case logs, or show one: /cases [case id].")
