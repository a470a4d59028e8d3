# src/legalintel/tasks/task_store.py

from __future__ import annotations

import contextlib
import itertools
import json
import logging
import sqlite3
import threading
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..errors import TaskNotFoundError, TaskStateError
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

TaskListener = Callable[[Task], None]


class TaskStore:
    """
    SQLite task store with per-task change notifications.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Every row lives under an owner namespace: all reads and writes take the owner
    and a task id, and a task stored under another owner is reported as missing.

    Ordering:
    - writes and listener dispatch happen under one re-entrant lock,
      so listeners see revisions in write order
    - subscribe() reads the current revision and registers under the same lock,
      so no revision is skipped between the snapshot and the first notification
    - listeners may unsubscribe from inside their own callback

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._listeners: dict[tuple[str, str], dict[int, TaskListener]] = {}
        self._tokens = itertools.count(1)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Shutdown hook: drops listeners (no persistent connections to close)."""
        with self._lock:
            self._listeners.clear()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    owner TEXT NOT NULL,
                    id TEXT NOT NULL,
                    type TEXT NOT NULL,
                    payload TEXT NOT NULL DEFAULT 'null',
                    status TEXT NOT NULL DEFAULT 'pending',
                    result TEXT,
                    error TEXT,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    revision INTEGER NOT NULL DEFAULT 1,
                    PRIMARY KEY (owner, id)
                )
                """
            )

            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("result", "TEXT")
            add_col("error", "TEXT")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")
            add_col("revision", "INTEGER NOT NULL DEFAULT 1")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_owner_created ON tasks(owner, created_at)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _dump(value: Any) -> str:
        # Raises TypeError for values that cannot be stored; callers decide what that means.
        return json.dumps(value, ensure_ascii=False)

    @staticmethod
    def _load(s: str | None) -> Any:
        if s is None:
            return None
        try:
            return json.loads(s)
        except Exception:
            logger.warning("TaskStore: undecodable JSON column, returning None")
            return None

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            owner=str(row["owner"]),
            type=str(row["type"]),
            payload=self._load(row["payload"]),
            status=TaskStatus(row["status"]),
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
            revision=int(row["revision"] or 1),
            result=self._load(row["result"]),
            error=row["error"],
        )

    @staticmethod
    def _fetch(conn: sqlite3.Connection, owner: str, task_id: str) -> sqlite3.Row | None:
        cur = conn.execute("SELECT * FROM tasks WHERE owner = ? AND id = ?", (owner, task_id))
        return cur.fetchone()

    def _notify(self, task: Task) -> None:
        listeners = list(self._listeners.get((task.owner, task.id), {}).values())
        for listener in listeners:
            try:
                listener(task)
            except Exception:
                logger.exception("Task listener failed task_id=%s revision=%s", task.id, task.revision)

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def create_task(self, *, owner: str, task_type: str, payload: Any) -> Task:
        if not owner or not owner.strip():
            raise ValueError("owner is required")
        if not task_type or not task_type.strip():
            raise ValueError("task_type is required")

        task_id = uuid.uuid4().hex
        now = time.time()
        payload_str = self._dump(payload)

        with self._lock:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO tasks(owner, id, type, payload, status, created_at, updated_at, revision)
                    VALUES (?, ?, ?, ?, ?, ?, ?, 1)
                    """,
                    (owner, task_id, task_type, payload_str, TaskStatus.PENDING.value, now, now),
                )
                conn.commit()
            finally:
                conn.close()

            task = Task(
                id=task_id,
                owner=owner,
                type=task_type,
                payload=self._load(payload_str),
                status=TaskStatus.PENDING,
                created_at=now,
                updated_at=now,
                revision=1,
            )
            logger.debug("Task added owner=%s id=%s type=%s", owner, task_id, task_type)
            self._notify(task)
            return task

    def get_task(self, owner: str, task_id: str) -> Task | None:
        if not owner or not task_id:
            return None
        conn = self._get_conn()
        try:
            row = self._fetch(conn, owner, task_id)
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self, owner: str, limit: int = 20) -> list[Task]:
        """Most recent tasks first."""
        if not owner:
            return []
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE owner = ?
                ORDER BY created_at DESC
                    LIMIT ?
                """,
                (owner, int(limit)),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def update_task(
        self,
        owner: str,
        task_id: str,
        *,
        status: TaskStatus,
        result: Any = None,
        error: str | None = None,
    ) -> Task:
        """
        Move a task to `status`, atomically checking the lifecycle:

          UPDATE ... WHERE status IN (allowed sources)

        result is stored only for completed, error only for failed.
        Raises TaskNotFoundError for a missing task and TaskStateError for an
        illegal transition.
        """
        if status == TaskStatus.COMPLETED:
            if error is not None:
                raise TaskStateError("completed task cannot carry an error")
            if result is None:
                raise TaskStateError("completed task requires a result")
        elif status == TaskStatus.FAILED:
            if not error:
                raise TaskStateError("failed task requires an error message")
            if result is not None:
                raise TaskStateError("failed task cannot carry a result")
        elif result is not None or error is not None:
            raise TaskStateError(f"{status.value} task cannot carry a result or error")

        sources = [s.value for s in status.allowed_sources()]
        if not sources:
            raise TaskStateError(f"no transition leads to {status.value}")

        result_str = self._dump(result) if status == TaskStatus.COMPLETED else None
        placeholders = ",".join("?" for _ in sources)

        with self._lock:
            conn = self._get_conn()
            try:
                cur = conn.execute(
                    f"""
                    UPDATE tasks
                    SET status = ?, result = ?, error = ?, updated_at = ?, revision = revision + 1
                    WHERE owner = ?
                      AND id = ?
                      AND status IN ({placeholders})
                    """,
                    (status.value, result_str, error, time.time(), owner, task_id, *sources),
                )
                conn.commit()

                row = self._fetch(conn, owner, task_id)
                if row is None:
                    raise TaskNotFoundError(owner, task_id)
                if cur.rowcount != 1:
                    raise TaskStateError(f"illegal transition {row['status']} -> {status.value} for task {task_id}")
                task = self._row_to_task(row)
            finally:
                conn.close()

            logger.debug("Task %s -> %s (revision=%s)", task_id, status.value, task.revision)
            self._notify(task)
            return task

    def subscribe(self, owner: str, task_id: str, listener: TaskListener) -> Callable[[], None]:
        """
        Register `listener` for every revision of one task, starting with the current one.

        Returns an unsubscribe callable (idempotent).
        Raises TaskNotFoundError if the task does not exist under `owner`.
        """
        key = (owner, task_id)
        with self._lock:
            current = self.get_task(owner, task_id)
            if current is None:
                raise TaskNotFoundError(owner, task_id)

            token = next(self._tokens)
            self._listeners.setdefault(key, {})[token] = listener

            def unsubscribe() -> None:
                with self._lock:
                    bucket = self._listeners.get(key)
                    if not bucket:
                        return
                    bucket.pop(token, None)
                    if not bucket:
                        self._listeners.pop(key, None)

            try:
                listener(current)
            except Exception:
                logger.exception("Task listener failed task_id=%s revision=%s", task_id, current.revision)

            return unsubscribe

    def listener_count(self, owner: str, task_id: str) -> int:
        with self._lock:
            return len(self._listeners.get((owner, task_id), {}))
