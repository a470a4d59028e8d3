# tests/test_config.py

from __future__ import annotations

from pathlib import Path

from legalintel.config import Settings


def test_settings_defaults(monkeypatch) -> None:
    for name in (
        "LEGALINTEL_DATA_DIR",
        "LEGALINTEL_TASKS_DB_PATH",
        "LEGALINTEL_TASK_TIMEOUT_SECONDS",
        "LEGALINTEL_LLM_MODELS",
        "LEGALINTEL_DEFAULT_OWNER",
    ):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()

    assert s.data_dir == Path(".local/legalintel")
    assert s.tasks_db_path == s.data_dir / "tasks.sqlite3"
    assert s.task_timeout_seconds == 180.0
    assert s.default_owner == "local-user"
    assert s.recommended_lawyers_limit == 3
    assert s.llm_models


def test_settings_from_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("LEGALINTEL_RECORDS_DB_PATH", raising=False)
    monkeypatch.setenv("LEGALINTEL_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("LEGALINTEL_TASK_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("LEGALINTEL_LLM_MODELS", "a/one, b/two")
    monkeypatch.setenv("LEGALINTEL_CONSOLE_ENABLED", "off")
    monkeypatch.setenv("LEGALINTEL_MAX_UPLOAD_BYTES", "not-a-number")

    s = Settings.from_env()

    assert s.records_db_path == tmp_path / "records.sqlite3"
    assert s.task_timeout_seconds == 30.0
    assert s.llm_models == ["a/one", "b/two"]
    assert s.console_enabled is False
    assert s.max_upload_bytes == 10 * 1024 * 1024


def test_negative_timeout_means_no_timeout(monkeypatch) -> None:
    monkeypatch.setenv("LEGALINTEL_TASK_TIMEOUT_SECONDS", "-5")
    assert Settings.from_env().task_timeout_seconds == 0.0
