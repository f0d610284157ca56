from __future__ import annotations

import sys

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

ICONS = {
    TaskStatus.SUCCESS: "✔",
    TaskStatus.FAILED: "✖",
    TaskStatus.SKIPPED: "→",
}

_COLORS = {"INFO": "32", "WARN": "33", "ERROR": "31", "VERB": "36"}


class PlainReporter(Reporter):
    """Line-oriented reporter with optional ANSI color; deterministic output."""

    def __init__(self, stream=None, use_color: bool | None = None):
        super().__init__()
        self.stream = stream or sys.stderr
        if use_color is None:
            use_color = getattr(self.stream, "isatty", lambda: False)()
        self.use_color = use_color

    def _line(self, label: str, message: str, color: str | None = None) -> None:
        if self.use_color:
            label = f"\x1b[{_COLORS[color or label]}m{label}\x1b[0m"
        self.stream.write(f"{label}: {message}\n")

    def on_advance(self, rec: TaskRecord) -> None:
        # Per-document lines only at -v and above.
        if get_verbosity() < 1:
            return
        item = rec.meta.get("current") or f"#{rec.completed}"
        total = rec.total if rec.total is not None else "?"
        self.stream.write(f"   · {rec.name}: {item} ({rec.completed}/{total})\n")

    def on_end(self, rec: TaskRecord) -> None:
        self.stream.write(f" {ICONS.get(rec.status, '?')} {rec.summary()}\n")

    def status(self, message, **fields) -> None:
        self._line("INFO", message)

    def verbose(self, message, *, level: int = 1, **fields) -> None:
        if get_verbosity() >= level:
            self._line(f"VERB{level}", message, "VERB")

    def error(self, message, **fields) -> None:
        self._line("ERROR", message)

    def warning(self, message, **fields) -> None:
        self._line("WARN", message)

    def section(self, title: str) -> None:
        self.stream.write(f"\n[{title}]\n")
