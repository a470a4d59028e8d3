# src/legalintel/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (LLM/tasks/records),
- builds the handler registry and the task tracker on top of that state.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..records.store import RecordStore
from ..tasks.handlers import build_default_handlers
from ..tasks.task_store import TaskStore
from ..tasks.task_tracker import TaskTracker

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.records_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, llm: LLMClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if llm is None:
        try:
            llm = OpenRouterLLMClient(settings)
        except RuntimeError as e:
            # Fallback for demos / local runs without external services.
            logger.warning("LLM client unavailable (%s); using offline demo client.", e)
            llm = OfflineLLMClient()

    state = AppState(
        settings=settings,
        llm=llm,
        task_store=TaskStore(settings.tasks_db_path),
        records=RecordStore(settings.records_db_path),
        owner=settings.default_owner,
    )
    state.tracker = TaskTracker(
        state.task_store,
        build_default_handlers(state),
        timeout_seconds=settings.task_timeout_seconds,
    )
    return state
