# src/legalintel/records/store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.ports import ChatMessage

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Lawyer:
    id: str
    name: str
    specialty: str
    location: str
    contact: str
    cost_per_hearing: float
    created_at: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "specialty": self.specialty,
            "location": self.location,
            "contact": self.contact,
            "costPerHearing": self.cost_per_hearing,
        }


@dataclass(slots=True)
class HistoryEntry:
    id: str
    owner: str
    file_name: str | None
    data: dict[str, Any]
    created_at: float


@dataclass(slots=True)
class CaseLogEntry:
    id: str
    case_id: str
    entry: str
    created_at: float


@dataclass(slots=True)
class CaseLog:
    id: str
    owner: str
    case_name: str
    client_name: str
    case_number: str | None
    created_at: float
    updated_at: float
    entries: list[CaseLogEntry] = field(default_factory=list)


class RecordStore:
    """
    SQLite store for plain records written by task handlers:
    - lawyers (global directory, matched by specialty)
    - analysis history (per owner)
    - role-play sessions (per owner)
    - case logs with dated entries (per owner)

    Last write wins; no derived state. Each method opens its own connection.
    """

    def __init__(self, db_path: str | Path = "records.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("RecordStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS lawyers (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    specialty TEXT NOT NULL,
                    location TEXT NOT NULL DEFAULT '',
                    contact TEXT NOT NULL DEFAULT '',
                    cost_per_hearing REAL NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS history (
                    id TEXT PRIMARY KEY,
                    owner TEXT NOT NULL,
                    file_name TEXT,
                    data TEXT NOT NULL DEFAULT '{}',
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS role_play_sessions (
                    id TEXT PRIMARY KEY,
                    owner TEXT NOT NULL,
                    data TEXT NOT NULL DEFAULT '{}',
                    messages TEXT NOT NULL DEFAULT '[]',
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS case_logs (
                    id TEXT PRIMARY KEY,
                    owner TEXT NOT NULL,
                    case_name TEXT NOT NULL,
                    client_name TEXT NOT NULL,
                    case_number TEXT,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS case_log_entries (
                    id TEXT PRIMARY KEY,
                    case_id TEXT NOT NULL,
                    entry TEXT NOT NULL,
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_lawyers_specialty ON lawyers(specialty)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_history_owner ON history(owner, created_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_sessions_owner ON role_play_sessions(owner)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_case_logs_owner ON case_logs(owner, updated_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_case_entries_case ON case_log_entries(case_id, created_at)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_lawyer(row: sqlite3.Row) -> Lawyer:
        return Lawyer(
            id=str(row["id"]),
            name=str(row["name"]),
            specialty=str(row["specialty"]),
            location=str(row["location"] or ""),
            contact=str(row["contact"] or ""),
            cost_per_hearing=float(row["cost_per_hearing"] or 0.0),
            created_at=float(row["created_at"] or 0.0),
        )

    # ---- lawyers ----

    def add_lawyer(
        self,
        *,
        name: str,
        specialty: str,
        location: str = "",
        contact: str = "",
        cost_per_hearing: float = 0.0,
    ) -> str:
        if not name or not name.strip():
            raise ValueError("Name is required.")
        if not specialty or not specialty.strip():
            raise ValueError("Specialty is required.")
        if cost_per_hearing < 0:
            raise ValueError("Cost per hearing cannot be negative.")

        lawyer_id = uuid.uuid4().hex
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO lawyers(id, name, specialty, location, contact, cost_per_hearing, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    lawyer_id,
                    name.strip(),
                    specialty.strip(),
                    location.strip(),
                    contact.strip(),
                    float(cost_per_hearing),
                    time.time(),
                ),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Lawyer added id=%s specialty=%s", lawyer_id, specialty)
        return lawyer_id

    def list_lawyers(self, limit: int = 50) -> list[Lawyer]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM lawyers ORDER BY name ASC LIMIT ?", (int(limit),))
            return [self._row_to_lawyer(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def find_lawyers_by_specialty(self, specialty: str, limit: int = 3) -> list[Lawyer]:
        if not specialty:
            return []
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT * FROM lawyers WHERE specialty = ? ORDER BY created_at ASC, rowid ASC LIMIT ?",
                (specialty, int(limit)),
            )
            return [self._row_to_lawyer(r) for r in cur.fetchall()]
        finally:
            conn.close()

    # ---- analysis history ----

    def add_history_entry(self, owner: str, entry: dict[str, Any]) -> str:
        entry_id = uuid.uuid4().hex
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO history(id, owner, file_name, data, created_at) VALUES (?, ?, ?, ?, ?)",
                (entry_id, owner, entry.get("fileName"), json.dumps(entry, ensure_ascii=False), time.time()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("History entry added owner=%s id=%s", owner, entry_id)
        return entry_id

    def list_history(self, owner: str, limit: int = 20) -> list[HistoryEntry]:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT * FROM history WHERE owner = ? ORDER BY created_at DESC LIMIT ?",
                (owner, int(limit)),
            )
            out: list[HistoryEntry] = []
            for r in cur.fetchall():
                try:
                    data = json.loads(r["data"] or "{}")
                except Exception:
                    data = {}
                out.append(
                    HistoryEntry(
                        id=str(r["id"]),
                        owner=str(r["owner"]),
                        file_name=r["file_name"],
                        data=data if isinstance(data, dict) else {},
                        created_at=float(r["created_at"] or 0.0),
                    )
                )
            return out
        finally:
            conn.close()

    # ---- role-play sessions ----

    def add_role_play_session(self, owner: str, session: dict[str, Any]) -> str:
        session_id = uuid.uuid4().hex
        data = {k: v for k, v in session.items() if k != "messages"}
        messages = list(session.get("messages") or [])
        now = time.time()
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO role_play_sessions(id, owner, data, messages, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    owner,
                    json.dumps(data, ensure_ascii=False),
                    json.dumps(messages, ensure_ascii=False),
                    now,
                    now,
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return session_id

    def get_role_play_session(self, owner: str, session_id: str) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM role_play_sessions WHERE owner = ? AND id = ?",
                (owner, session_id),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        out = dict(json.loads(row["data"] or "{}"))
        out["id"] = str(row["id"])
        out["messages"] = json.loads(row["messages"] or "[]")
        return out

    def append_role_play_messages(self, owner: str, session_id: str, messages: list[ChatMessage]) -> None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT messages FROM role_play_sessions WHERE owner = ? AND id = ?",
                (owner, session_id),
            ).fetchone()
            if row is None:
                raise LookupError(f"Role-play session not found: {session_id}")
            history = json.loads(row["messages"] or "[]")
            history.extend(messages)
            conn.execute(
                "UPDATE role_play_sessions SET messages = ?, updated_at = ? WHERE owner = ? AND id = ?",
                (json.dumps(history, ensure_ascii=False), time.time(), owner, session_id),
            )
            conn.commit()
        finally:
            conn.close()

    def delete_role_play_session(self, owner: str, session_id: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM role_play_sessions WHERE owner = ? AND id = ?", (owner, session_id))
            conn.commit()
            deleted = cur.rowcount > 0
        finally:
            conn.close()
        if deleted:
            logger.info("Role-play session deleted owner=%s id=%s", owner, session_id)
        return deleted

    # ---- case logs ----

    @staticmethod
    def _row_to_case_log(row: sqlite3.Row) -> CaseLog:
        return CaseLog(
            id=str(row["id"]),
            owner=str(row["owner"]),
            case_name=str(row["case_name"]),
            client_name=str(row["client_name"]),
            case_number=row["case_number"],
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
        )

    def create_case_log(
        self,
        owner: str,
        *,
        case_name: str,
        client_name: str,
        case_number: str | None = None,
    ) -> str:
        if not case_name or not case_name.strip():
            raise ValueError("Case name is required.")
        if not client_name or not client_name.strip():
            raise ValueError("Client name is required.")

        case_id = uuid.uuid4().hex
        now = time.time()
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO case_logs(id, owner, case_name, client_name, case_number, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (case_id, owner, case_name.strip(), client_name.strip(), (case_number or "").strip() or None, now, now),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Case log created owner=%s id=%s", owner, case_id)
        return case_id

    def add_case_log_entry(self, owner: str, case_id: str, entry: str) -> str:
        """Append a dated note to one of `owner`'s case logs (LookupError if it is not theirs)."""
        if not entry or not entry.strip():
            raise ValueError("Entry text is required.")
        entry_id = uuid.uuid4().hex
        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE case_logs SET updated_at = ? WHERE owner = ? AND id = ?",
                (now, owner, case_id),
            )
            if cur.rowcount == 0:
                conn.rollback()
                raise LookupError(f"Case log not found: {case_id}")
            conn.execute(
                "INSERT INTO case_log_entries(id, case_id, entry, created_at) VALUES (?, ?, ?, ?)",
                (entry_id, case_id, entry.strip(), now),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Case log entry added owner=%s case=%s", owner, case_id)
        return entry_id

    def list_case_logs(self, owner: str, limit: int = 20) -> list[CaseLog]:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT * FROM case_logs WHERE owner = ? ORDER BY updated_at DESC, rowid DESC LIMIT ?",
                (owner, int(limit)),
            )
            return [self._row_to_case_log(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def get_case_log(self, owner: str, case_id: str) -> CaseLog | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM case_logs WHERE owner = ? AND id = ?", (owner, case_id)).fetchone()
            if row is None:
                return None
            case = self._row_to_case_log(row)
            cur = conn.execute(
                "SELECT * FROM case_log_entries WHERE case_id = ? ORDER BY created_at ASC, rowid ASC",
                (case_id,),
            )
            case.entries = [
                CaseLogEntry(
                    id=str(r["id"]),
                    case_id=str(r["case_id"]),
                    entry=str(r["entry"]),
                    created_at=float(r["created_at"] or 0.0),
                )
                for r in cur.fetchall()
            ]
            return case
        finally:
            conn.close()
