from .base import (
    Reporter,
    TaskStatus,
    get_reporter,
    set_reporter,
    task,
    set_verbosity,
    get_verbosity,
)
from .plain import PlainReporter
from .jsonl import JsonLinesReporter
from .silent import SilentReporter
from .rich_reporter import RichReporter

__all__ = [
    "Reporter",
    "TaskStatus",
    "get_reporter",
    "set_reporter",
    "task",
    "set_verbosity",
    "get_verbosity",
    "PlainReporter",
    "JsonLinesReporter",
    "SilentReporter",
    "RichReporter",
]
