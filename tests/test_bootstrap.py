# tests/test_bootstrap.py

from __future__ import annotations

import pytest

from legalintel.cli.bootstrap import create_initial_state
from legalintel.cli.main import _shutdown
from legalintel.llm.offline import OfflineLLMClient
from legalintel.tasks.task_models import TaskStatus, TaskType


@pytest.fixture()
def offline_settings(settings):
    settings.default_owner = "demo"
    settings.openrouter_api_key = None
    settings.openrouter_base_url = "https://openrouter.ai/api/v1"
    settings.task_timeout_seconds = 5.0
    return settings


def test_missing_api_key_falls_back_to_offline_client(offline_settings) -> None:
    state = create_initial_state(settings=offline_settings)

    assert isinstance(state.llm, OfflineLLMClient)
    assert state.owner == "demo"
    assert state.require_tracker().task_types == sorted(t.value for t in TaskType)


@pytest.mark.asyncio
async def test_offline_state_completes_role_play(offline_settings) -> None:
    state = create_initial_state(settings=offline_settings)
    tracker = state.require_tracker()

    task_id = await tracker.submit("demo", TaskType.START_ROLE_PLAY.value, {"role": "Client", "scenario": "Theft"})
    task = await tracker.wait_for("demo", task_id, timeout=5.0)

    assert task.status == TaskStatus.COMPLETED, task.error
    assert task.result["initialResponse"].startswith("(offline)")
    assert state.records.get_role_play_session("demo", task.result["sessionId"]) is not None


def test_shutdown_drops_leftover_observers(offline_settings) -> None:
    state = create_initial_state(settings=offline_settings)
    task = state.task_store.create_task(owner="demo", task_type="startRolePlay", payload={"role": "x"})
    state.task_store.subscribe("demo", task.id, lambda t: None)
    assert state.task_store.listener_count("demo", task.id) == 1

    _shutdown(state)

    assert state.task_store.listener_count("demo", task.id) == 0
