from __future__ import annotations

from .base import Reporter


class SilentReporter(Reporter):
    """Quiet mode: tasks are still tracked, nothing is printed."""

    def status(self, message, **fields) -> None:
        pass

    def error(self, message, **fields) -> None:
        pass

    def warning(self, message, **fields) -> None:
        pass

    def section(self, title: str) -> None:
        pass
