# src/legalintel/tasks/task_registry.py

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from ..errors import TaskValidationError


@dataclass(slots=True, frozen=True)
class TaskContext:
    """What a handler knows about the task it runs for."""

    owner: str
    task_id: str
    task_type: str


TaskHandlerFn = Callable[[TaskContext, Any], Awaitable[Any]]


@dataclass(slots=True, frozen=True)
class TaskHandler:
    """
    One task type.

    payload_model (optional) is a pydantic model; the submitted payload must validate
    against it, and the handler then receives the model instance instead of the raw value.
    """

    name: str
    run: TaskHandlerFn
    payload_model: type[BaseModel] | None = None

    def parse_payload(self, payload: Any) -> Any:
        if self.payload_model is None:
            return payload
        try:
            return self.payload_model.model_validate(payload)
        except ValidationError as e:
            raise TaskValidationError(f"Invalid payload for {self.name}: {_short_errors(e)}") from e


def _short_errors(err: ValidationError) -> str:
    parts = []
    for item in err.errors()[:5]:
        loc = ".".join(str(p) for p in item.get("loc", ())) or "payload"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


class HandlerRegistry(Mapping[str, TaskHandler]):
    """
    Closed set of task handlers, fixed at construction.

    There is no register() after start-up: the set of task types is known before
    the first submit, and an unknown type is a validation error.
    """

    def __init__(self, handlers: Iterable[TaskHandler]) -> None:
        table: dict[str, TaskHandler] = {}
        for h in handlers:
            name = (h.name or "").strip()
            if not name:
                raise ValueError("handler name is required")
            if name in table:
                raise ValueError(f"duplicate handler: {name}")
            table[name] = h
        self._handlers = table

    def __getitem__(self, name: str) -> TaskHandler:
        return self._handlers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
