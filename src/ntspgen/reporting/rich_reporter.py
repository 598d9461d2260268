from __future__ import annotations

import os
from typing import Any, Dict, List

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import Reporter, TaskRecord, format_completion, get_verbosity


class RichReporter(Reporter):
    """Progress bars on stderr, one bar per task with a known total."""

    supports_progress = True

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )
        self._transient = os.getenv(
            "NTSPGEN_PROGRESS_TRANSIENT", "0"
        ).lower() in ("1", "true", "yes")
        self.progress: Progress | None = None
        self._bars: Dict[str, TaskID] = {}
        self._completions: List[str] = []

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.description}", justify="left"),
                BarColumn(bar_width=None),
                TextColumn("{task.completed}/{task.total}"),
                TextColumn("[dim]{task.fields[item]}"),
                TimeElapsedColumn(),
                transient=self._transient,
                console=self.console,
                expand=True,
            )
            self.progress.start()
        return self.progress

    def _stop_progress(self) -> None:
        if self.progress is not None:
            try:
                self.progress.stop()
            finally:
                self.progress = None
                self._bars.clear()
        if self._completions:
            self.console.print("\n".join(self._completions))
            self._completions.clear()

    # Tasks --------------------------------------------------------------------
    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        super().start_task(task_id, name, total, **meta)
        # Tasks without a known total render as headers, not bars.
        if total is None:
            self.console.rule(name)
            return
        progress = self._ensure_progress()
        self._bars[task_id] = progress.add_task(name, total=total, item="")

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        super().advance(task_id, step, **meta)
        rec = self._tasks.get(task_id)
        bar = self._bars.get(task_id)
        if not rec or bar is None or self.progress is None:
            return
        self.progress.update(
            bar,
            completed=rec.completed,
            item=meta.get("current_item", "") if meta else "",
        )

    def task_finished(self, rec: TaskRecord) -> None:
        bar = self._bars.pop(rec.task_id, None)
        if bar is not None and self.progress is not None:
            if rec.total is not None:
                self.progress.update(bar, completed=rec.total, item="")
            if self._transient:
                self.progress.remove_task(bar)
        self._completions.append(format_completion(rec))
        if not self._bars:
            self._stop_progress()

    # Messaging / sections ------------------------------------------------------
    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {message}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self.console.print(f"[cyan]VERB{level}[/]: {message}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {message}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {message}")

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        self._stop_progress()
