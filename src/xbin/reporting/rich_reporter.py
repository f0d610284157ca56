from __future__ import annotations

import os
from typing import Any, Dict, List

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
    TaskStatus.SKIPPED: "→",
}


def _transient_from_env() -> bool:
    return os.getenv("XBIN_PROGRESS_TRANSIENT", "0").lower() in ("1", "true", "yes")


class RichReporter(Reporter):
    """Progress bars for counted tasks, rules for uncounted ones."""

    supports_progress = True

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(stderr=True, highlight=False, soft_wrap=False)
        self._transient = _transient_from_env()
        self.progress: Progress | None = None
        self._bars: Dict[str, TaskID] = {}
        self._completions: List[str] = []

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.description}", justify="left"),
                BarColumn(bar_width=None),
                MofNCompleteColumn(),
                TextColumn("{task.fields[current]}"),
                TimeElapsedColumn(),
                transient=self._transient,
                console=self.console,
                expand=True,
            )
            self.progress.start()
        return self.progress

    def _stop_progress(self) -> None:
        if self.progress is None:
            return
        try:
            self.progress.stop()
        finally:
            self.progress = None
            self._bars.clear()
            if self._completions:
                self.console.print("\n".join(self._completions))
                self._completions.clear()

    def on_start(self, rec: TaskRecord) -> None:
        if rec.total is None:
            # Uncounted tasks only get a header line.
            self.console.rule(escape(rec.name))
            return
        self._bars[rec.task_id] = self._ensure_progress().add_task(
            escape(rec.name), total=rec.total, current=""
        )

    def on_advance(self, rec: TaskRecord) -> None:
        bar = self._bars.get(rec.task_id)
        if bar is not None and self.progress is not None:
            self.progress.update(
                bar,
                completed=rec.completed,
                current=escape(str(rec.meta.get("current", ""))),
            )

    def on_end(self, rec: TaskRecord) -> None:
        line = f"{_STATUS_ICON.get(rec.status, '')} {escape(rec.summary())}"
        bar = self._bars.pop(rec.task_id, None)
        if bar is not None and self.progress is not None:
            self.progress.update(bar, completed=rec.completed)
        if self._transient and self.progress is not None:
            self._completions.append(line)
        else:
            self.console.print(line)
        if not self.open_tasks:
            self._stop_progress()

    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {escape(message)}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self.console.print(f"[cyan]VERB{level}[/]: {escape(message)}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {escape(message)}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {escape(message)}")

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        self._stop_progress()
