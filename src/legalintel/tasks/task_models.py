# src/legalintel/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    pending -> processing -> completed | failed
    pending -> failed is only used when a task is cancelled before its handler starts.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    def allowed_sources(self) -> list[TaskStatus]:
        """Statuses from which a task may move into this one."""
        return [src for src, targets in _TRANSITIONS.items() if self in targets]


_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.PROCESSING, TaskStatus.FAILED}),
    TaskStatus.PROCESSING: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


class TaskType(StrEnum):
    """Task types handled by the default registry."""

    CLASSIFY_DOCUMENT = "classifyDocument"
    ASK_QUESTION = "askQuestion"
    START_ROLE_PLAY = "startRolePlay"
    CONTINUE_ROLE_PLAY = "continueRolePlay"


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    owner: str
    type: str
    payload: Any
    status: TaskStatus
    created_at: float
    updated_at: float
    revision: int

    result: Any = None
    error: str | None = None
