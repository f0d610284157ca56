"""Reporter backends for task progress and messages."""

from .base import (
    STAT_KEYS,
    Reporter,
    TaskRecord,
    TaskStatus,
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
    task,
)
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

__all__ = [
    "STAT_KEYS",
    "Reporter",
    "TaskRecord",
    "TaskStatus",
    "get_reporter",
    "set_reporter",
    "get_verbosity",
    "set_verbosity",
    "task",
    "PlainReporter",
    "RichReporter",
    "SilentReporter",
]
