# src/legalintel/tasks/task_tracker.py

"""
Task tracker.

submit():
- validates (owner, type, payload) against the handler registry,
- writes a pending record,
- starts the handler on the running event loop and returns the task id
  without waiting for it.

The handler run moves the record pending -> processing -> completed | failed.
Failures after the pending write never reach the submitter: they are stored on
the task (status=failed, error=message) and observers pick them up.

observe() / wait_for():
- deliver the current revision and every later one, in write order,
- stop by themselves once a terminal revision was delivered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..core.ports import TaskRepo
from ..errors import TaskHandlerError, TaskNotFoundError, TaskStorageError, TaskValidationError
from ..logging_setup import bind_task_id
from .task_models import Task, TaskStatus
from .task_registry import TaskContext, TaskHandler

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Task was cancelled."


def error_message(exc: BaseException) -> str:
    msg = str(exc).strip()
    return msg or exc.__class__.__name__


def explicit_failure(result: Any) -> str | None:
    """
    Handlers may report failure without raising:
    - returning None (nothing to store as result)
    - returning {"error": "<message>"}
    """
    if result is None:
        return "Handler returned no result."
    if isinstance(result, Mapping) and set(result.keys()) == {"error"}:
        return str(result["error"] or "Handler reported an error.")
    return None


class TaskSubscription:
    """Handle returned by observe(). cancel() is idempotent and safe from inside the callback."""

    def __init__(self, owner: str, task_id: str) -> None:
        self.owner = owner
        self.task_id = task_id
        self._active = True
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def active(self) -> bool:
        return self._active

    def _attach(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe = unsubscribe
        # Terminal revision may have been delivered while subscribing.
        if not self._active:
            unsubscribe()

    def cancel(self) -> None:
        self._active = False
        if self._unsubscribe is not None:
            self._unsubscribe()


class TaskTracker:
    def __init__(
        self,
        store: TaskRepo,
        handlers: Mapping[str, TaskHandler],
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._handlers = handlers
        self._timeout = float(timeout_seconds) if timeout_seconds else None
        self._running: dict[tuple[str, str], asyncio.Task[None]] = {}

    @property
    def task_types(self) -> list[str]:
        return sorted(self._handlers)

    # ---- submission ----

    async def submit(self, owner: str, task_type: str, payload: Any) -> str:
        """
        Create a task and start its handler.

        Raises TaskValidationError / TaskStorageError; in both cases no record exists
        afterwards and no handler runs. Must be called from a running event loop.
        """
        owner = (owner or "").strip()
        task_type = (task_type or "").strip()
        if not owner:
            raise TaskValidationError("owner is required")
        if not task_type:
            raise TaskValidationError("task type is required")
        if payload is None:
            raise TaskValidationError("payload is required")

        handler = self._handlers.get(task_type)
        if handler is None:
            raise TaskValidationError(f"Unknown task type: {task_type}")

        parsed = handler.parse_payload(payload)

        try:
            task = self._store.create_task(owner=owner, task_type=task_type, payload=payload)
        except Exception as e:
            logger.exception("create_task failed owner=%s type=%s", owner, task_type)
            raise TaskStorageError(error_message(e)) from e

        ctx = TaskContext(owner=owner, task_id=task.id, task_type=task_type)
        runner = asyncio.create_task(self._run(ctx, handler, parsed), name=f"task-{task.id}")
        key = (owner, task.id)
        self._running[key] = runner
        runner.add_done_callback(lambda t, key=key: self._on_run_done(key, t))

        logger.info("Task submitted owner=%s id=%s type=%s", owner, task.id, task_type)
        return task.id

    async def _run(self, ctx: TaskContext, handler: TaskHandler, payload: Any) -> None:
        # Runs in its own asyncio task (copied context): no reset needed.
        bind_task_id(ctx.task_id)
        try:
            self._store.update_task(ctx.owner, ctx.task_id, status=TaskStatus.PROCESSING)
        except Exception:
            logger.exception("Task %s: could not enter processing", ctx.task_id)
            return

        # timeout(None) never expires; expired() tells our deadline apart from a
        # TimeoutError raised by the handler itself.
        deadline = asyncio.timeout(self._timeout)
        try:
            async with deadline:
                result = await handler.run(ctx, payload)
            failure = explicit_failure(result)
            if failure is not None:
                raise TaskHandlerError(failure)
        except TimeoutError as e:
            if deadline.expired():
                logger.warning("Task %s timed out after %ss", ctx.task_id, self._timeout)
                self._fail(ctx, f"Task timed out after {self._timeout:g}s")
            else:
                logger.exception("Error processing %s task %s", ctx.task_type, ctx.task_id)
                self._fail(ctx, error_message(e))
            return
        except TaskHandlerError as e:
            logger.info("Task %s reported failure: %s", ctx.task_id, e)
            self._fail(ctx, error_message(e))
            return
        except Exception as e:
            logger.exception("Error processing %s task %s", ctx.task_type, ctx.task_id)
            self._fail(ctx, error_message(e))
            return

        try:
            self._store.update_task(ctx.owner, ctx.task_id, status=TaskStatus.COMPLETED, result=result)
            logger.info("Task %s -> completed", ctx.task_id)
        except (TypeError, ValueError) as e:
            logger.exception("Task %s: result could not be stored", ctx.task_id)
            self._fail(ctx, f"Result could not be stored: {error_message(e)}")
        except Exception:
            logger.exception("Task %s: could not store completion", ctx.task_id)

    def _fail(self, ctx: TaskContext, message: str) -> None:
        try:
            self._store.update_task(ctx.owner, ctx.task_id, status=TaskStatus.FAILED, error=message)
            logger.info("Task %s -> failed", ctx.task_id)
        except Exception:
            logger.exception("Task %s: could not store failure", ctx.task_id)

    def _on_run_done(self, key: tuple[str, str], runner: asyncio.Task[None]) -> None:
        self._running.pop(key, None)
        owner, task_id = key
        if runner.cancelled():
            # Cancelled either before the handler started or while it ran; both end as failed.
            message = CANCELLED_MESSAGE
        else:
            exc = runner.exception()
            if exc is None:
                return
            logger.error("Task %s: run ended with an unhandled error", task_id, exc_info=exc)
            message = error_message(exc)
        try:
            current = self._store.get_task(owner, task_id)
            if current is not None and not current.status.is_terminal:
                self._store.update_task(owner, task_id, status=TaskStatus.FAILED, error=message)
                logger.info("Task %s -> failed (%s)", task_id, message)
        except Exception:
            logger.exception("Task %s: could not store final failure", task_id)

    # ---- control ----

    def cancel(self, owner: str, task_id: str) -> bool:
        """Cancel a running handler. Returns False if the task is not running."""
        runner = self._running.get((owner, task_id))
        if runner is None or runner.done():
            return False
        runner.cancel()
        logger.info("Task %s cancel requested", task_id)
        return True

    def is_running(self, owner: str, task_id: str) -> bool:
        return (owner, task_id) in self._running

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for every in-flight handler run (used at shutdown)."""
        pending = list(self._running.values())
        if not pending:
            return
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning("drain: %d task(s) still running", len(not_done))

    # ---- reads / observation ----

    def get(self, owner: str, task_id: str) -> Task:
        task = self._store.get_task(owner, task_id)
        if task is None:
            raise TaskNotFoundError(owner, task_id)
        return task

    def list_tasks(self, owner: str, limit: int = 20) -> list[Task]:
        return self._store.list_tasks(owner, limit=limit)

    def observe(self, owner: str, task_id: str, on_update: Callable[[Task], None]) -> TaskSubscription:
        """
        Call `on_update` for the current revision and every later one, in write order.

        Delivery stops after the first terminal revision, or after subscription.cancel().
        Raises TaskNotFoundError when the task does not exist under `owner`.
        """
        sub = TaskSubscription(owner, task_id)

        def dispatch(task: Task) -> None:
            if not sub.active:
                return
            try:
                on_update(task)
            finally:
                if task.status.is_terminal:
                    sub.cancel()

        unsubscribe = self._store.subscribe(owner, task_id, dispatch)
        sub._attach(unsubscribe)
        return sub

    async def wait_for(self, owner: str, task_id: str, timeout: float | None = None) -> Task:
        """Resolve with the terminal revision of a task."""
        loop = asyncio.get_running_loop()
        fut: asyncio.Future[Task] = loop.create_future()

        def resolve(task: Task) -> None:
            if not fut.done():
                fut.set_result(task)

        def on_update(task: Task) -> None:
            if task.status.is_terminal:
                loop.call_soon_threadsafe(resolve, task)

        sub = self.observe(owner, task_id, on_update)
        try:
            return await asyncio.wait_for(fut, timeout=timeout)
        finally:
            sub.cancel()
