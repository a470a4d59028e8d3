# src/legalintel/cli/runner.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.state import AppState

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _serve(state: AppState, stop_event: asyncio.Event, drain_timeout: float) -> None:
    """Keep the loop alive for task handlers until asked to stop, then let running tasks finish."""
    await stop_event.wait()
    tracker = state.tracker
    if tracker is not None:
        await tracker.drain(timeout=drain_timeout)


@dataclass
class TaskLoopRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def run(self, coro: Coroutine[Any, Any, T], timeout: float | None = 30.0) -> T:
        """Run a coroutine on the task loop and wait for its result from the calling thread."""
        fut = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return fut.result(timeout=timeout)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal task loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_task_loop(state: AppState, *, drain_timeout: float = 10.0) -> TaskLoopRunner | None:
    """
    Start the event loop task handlers run on, in a background thread.

    The console REPL is blocking (input()); submit() needs a running loop and returns
    before the handler finishes, so the handlers need a loop that outlives each command.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_serve(state, stop_event, drain_timeout))
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_asyncgens())
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="task-loop", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Task loop thread did not initialize properly.")
        return None

    logger.info("Task loop thread started.")
    return TaskLoopRunner(thread=t, loop=loop, stop_event=stop_event)
