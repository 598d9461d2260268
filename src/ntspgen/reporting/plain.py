from __future__ import annotations

import sys
from typing import Any
from .base import Reporter, TaskRecord, format_completion, get_verbosity


class PlainReporter(Reporter):
    """Plain deterministic reporter with minimal icons and optional color."""

    def __init__(self, stream=None, use_color: bool | None = None):
        super().__init__()
        self.stream = stream or sys.stderr
        self.use_color = (
            use_color
            if use_color is not None
            else getattr(self.stream, "isatty", lambda: False)()
        )

    def _c(self, code: str, text: str):
        if not self.use_color:
            return text
        return f"\x1b[{code}m{text}\x1b[0m"

    def _line(self, code: str, label: str, message: str) -> None:
        self.stream.write(f"{self._c(code, label)}: {message}\n")

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        super().advance(task_id, step, **meta)
        rec = self._tasks.get(task_id)
        if not rec or get_verbosity() < 1:
            return
        item = meta.get("current_item") or f"item#{rec.completed}"
        total = rec.total if rec.total is not None else "?"
        self.stream.write(f"   · {rec.name}: {item} ({rec.completed}/{total})\n")

    def task_finished(self, rec: TaskRecord) -> None:
        self.stream.write(f" {format_completion(rec)}\n")

    def status(self, message: str, **fields: Any) -> None:
        self._line("32", "INFO", message)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._line("36", f"VERB{level}", message)

    def error(self, message: str, **fields: Any) -> None:
        self._line("31", "ERROR", message)

    def warning(self, message: str, **fields: Any) -> None:
        self._line("33", "WARN", message)

    def section(self, title: str) -> None:
        self.stream.write(f"\n[{title}]\n")
