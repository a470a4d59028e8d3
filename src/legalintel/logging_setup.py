# src/legalintel/logging_setup.py

"""
Logging for the console app.

Lines written while a task runs carry its id ("[task 0123abcd]"). The tracker
binds the id at the start of each run; asyncio tasks and asyncio.to_thread copy
the context, so handler, flow and LLM client logs are tagged too.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from pathlib import Path

_task_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("legalintel_task_id", default=None)

# Console floor per app logger (prefix match). The file log keeps everything.
CONSOLE_MIN_LEVELS: dict[str, int] = {
    # one DEBUG line per task write
    "legalintel.tasks.task_store": logging.WARNING,
    # model fallback, first-token timings
    "legalintel.llm.client": logging.WARNING,
}

QUIET_LIBRARIES = ("httpx", "httpcore", "openai")

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s%(task)s: %(message)s"


def bind_task_id(task_id: str | None) -> None:
    _task_id.set(task_id)


class TaskContextFilter(logging.Filter):
    """Sets record.task for LOG_FORMAT (empty outside a task run)."""

    def filter(self, record: logging.LogRecord) -> bool:
        task_id = _task_id.get()
        record.task = f" [task {task_id[:8]}]" if task_id else ""
        return True


class ConsoleFilter(logging.Filter):
    """
    Keep the REPL readable:
    - legalintel loggers pass, except the chatty ones in CONSOLE_MIN_LEVELS
    - everything else (third party, py.warnings) only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name != "legalintel" and not name.startswith("legalintel."):
            return record.levelno >= logging.ERROR
        for prefix, level in CONSOLE_MIN_LEVELS.items():
            if name == prefix or name.startswith(prefix + "."):
                return record.levelno >= level
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/legalintel",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console handler (filtered) on stderr plus a full log file under `log_dir`.
    Replaces existing root handlers; returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "legalintel.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    context = TaskContextFilter()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(context)
    console.addFilter(ConsoleFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    file_handler.addFilter(context)
    root.addHandler(file_handler)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
