# src/legalintel/errors.py

"""
Task error taxonomy.

Synchronous errors (validation, initial write) are raised to the submitting
caller. Errors raised while a handler runs never reach the caller: they end up
in the task record as status=failed + error message.
"""

from __future__ import annotations


class TaskError(Exception):
    """Base class for task tracker errors."""


class TaskValidationError(TaskError, ValueError):
    """Missing owner/type/payload, unknown type, or payload rejected by its model."""


class TaskStorageError(TaskError):
    """The initial task record could not be written."""


class TaskHandlerError(TaskError):
    """A handler reported an explicit failure value instead of raising."""


class TaskNotFoundError(TaskError, LookupError):
    """No task with this id exists under the caller's owner namespace."""

    def __init__(self, owner: str, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.owner = owner
        self.task_id = task_id


class TaskStateError(TaskError):
    """A status transition that the task lifecycle does not allow."""
