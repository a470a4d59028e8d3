# tests/conftest.py

from __future__ import annotations

import asyncio
from pathlib import Path
from types import SimpleNamespace

import pytest

from legalintel.core.state import AppState
from legalintel.records.store import RecordStore
from legalintel.tasks.handlers import build_default_handlers
from legalintel.tasks.task_registry import HandlerRegistry, TaskHandler
from legalintel.tasks.task_store import TaskStore
from legalintel.tasks.task_tracker import TaskTracker

from .fakes import FakeLLMClient


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="LegalIntel",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        records_db_path=tmp_path / "records.sqlite3",
        llm_models=["test/model"],
        task_timeout_seconds=0,
        max_upload_bytes=1024 * 1024,
        recommended_lawyers_limit=3,
    )


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


async def _echo(ctx, payload):
    return payload


async def _boom(ctx, payload):
    raise OSError("disk full")


@pytest.fixture()
def basic_handlers() -> HandlerRegistry:
    """Two trivial task types: echo returns its payload, boom always raises."""
    return HandlerRegistry([TaskHandler("echo", _echo), TaskHandler("boom", _boom)])


@pytest.fixture()
def tracker(task_store: TaskStore, basic_handlers: HandlerRegistry) -> TaskTracker:
    return TaskTracker(task_store, basic_handlers)


@pytest.fixture()
def state(settings: SimpleNamespace, task_store: TaskStore) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep real SQLite stores here (TaskStore/RecordStore) because
    their correctness is part of what we want to test.
    """
    st = AppState(
        settings=settings,
        llm=FakeLLMClient(),
        task_store=task_store,
        records=RecordStore(settings.records_db_path),
        owner="alice",
    )
    st.tracker = TaskTracker(st.task_store, build_default_handlers(st))
    return st


class LoopRunner:
    """Stand-in for the background task loop: runs coroutines on a private event loop."""

    def __init__(self) -> None:
        self.loop = asyncio.new_event_loop()

    def run(self, coro, timeout: float | None = 30.0):
        return self.loop.run_until_complete(asyncio.wait_for(coro, timeout))

    def settle(self) -> None:
        """Let every task started on the loop finish."""
        pending = [t for t in asyncio.all_tasks(self.loop) if not t.done()]
        if pending:
            self.loop.run_until_complete(asyncio.wait(pending, timeout=5.0))

    def close(self) -> None:
        self.settle()
        self.loop.run_until_complete(self.loop.shutdown_default_executor())
        self.loop.close()


@pytest.fixture()
def loop_runner():
    runner = LoopRunner()
    yield runner
    runner.close()
