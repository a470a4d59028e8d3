# src/legalintel/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..records.store import RecordStore
from ..tasks.task_store import TaskStore
from ..tasks.task_tracker import TaskTracker
from .ports import LLMClient


@dataclass
class AppState:
    # Settings object (legalintel.config.Settings or a test double with the same attributes).
    settings: Any

    llm: LLMClient
    task_store: TaskStore
    records: RecordStore

    # Wired in bootstrap once the handler registry exists (handlers need the state).
    tracker: TaskTracker | None = None

    # Background event loop the tracker runs on (cli.runner.TaskLoopRunner); None in tests.
    task_loop: Any = None

    # Identity the console acts as; every task is created under it.
    owner: str = "local-user"

    # Guards console-side mutations of this object (owner switch) against the task thread.
    lock: threading.Lock = field(default_factory=threading.Lock)

    def require_tracker(self) -> TaskTracker:
        if self.tracker is None:
            raise RuntimeError("Task tracker is not initialized.")
        return self.tracker
