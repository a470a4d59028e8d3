# src/legalintel/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/LLM providers swappable and makes testing easier.
"""

from typing import Any, Callable, Iterable, Protocol

ChatMessage = dict[str, Any]
# OpenAI-style chat messages: {"role": "...", "content": "..." | [content parts]}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class TaskRepo(Protocol):
    """Owner-scoped task storage with a per-task change subscription."""

    def create_task(self, *, owner: str, task_type: str, payload: Any) -> Any: ...
    def get_task(self, owner: str, task_id: str) -> Any | None: ...
    def list_tasks(self, owner: str, limit: int = 20) -> list[Any]: ...
    def update_task(
            self,
            owner: str,
            task_id: str,
            *,
            status: Any,
            result: Any = None,
            error: str | None = None,
    ) -> Any: ...
    def subscribe(self, owner: str, task_id: str, listener: Callable[[Any], None]) -> Callable[[], None]: ...

