from __future__ import annotations

import json
import sys
from typing import Any, Dict
from .base import Reporter, TaskRecord, get_verbosity

# "<Prefix> summary: k=v k=v" status lines also become summary events
_SUMMARY_TYPES: Dict[str, str] = {
    "textures summary": "textures",
    "plan summary": "plan",
    "build summary": "build",
}


class JsonLinesReporter(Reporter):
    """Machine-readable JSON lines reporter."""

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream or sys.stdout

    def _emit(self, obj: dict):
        self.stream.write(json.dumps(obj, sort_keys=True) + "\n")

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        super().start_task(task_id, name, total, **meta)
        self._emit(
            {
                "event": "task_start",
                "id": task_id,
                "name": name,
                "total": total,
                **meta,
            }
        )

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        super().advance(task_id, step, **meta)
        rec = self._tasks.get(task_id)
        if not rec:
            return
        self._emit(
            {
                "event": "task_progress",
                "id": task_id,
                "completed": rec.completed,
                **meta,
            }
        )

    def task_finished(self, rec: TaskRecord) -> None:
        self._emit(
            {
                **rec.meta,
                "event": "task_end",
                "id": rec.task_id,
                "status": rec.status.name.lower(),
                "completed": rec.completed,
                "total": rec.total,
                "duration_seconds": rec.duration,
            }
        )

    def _maybe_summary(self, message: str, **fields: Any) -> None:
        head, sep, kv_text = message.partition(":")
        stype = _SUMMARY_TYPES.get(head.strip().lower())
        if stype is None or not sep:
            return
        kv_pairs = dict(
            token.split("=", 1) for token in kv_text.split() if "=" in token
        )
        self._emit(
            {
                "event": "summary",
                "summary_type": stype,
                "raw": message,
                **kv_pairs,
                **fields,
            }
        )

    def _status(self, message: str, level: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": level, **fields}
        )

    def status(self, message: str, **fields: Any) -> None:
        self._maybe_summary(message, **fields)
        self._status(message, "info", **fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._status(message, f"verbose{level}", vlevel=level, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._status(message, "error", **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._status(message, "warning", **fields)

    def section(self, title: str) -> None:
        self._emit({"event": "section", "title": title})
