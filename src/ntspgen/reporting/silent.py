from __future__ import annotations

from typing import Any

from .base import Reporter


class SilentReporter(Reporter):
    """No-op reporter (quiet mode)."""

    def status(self, message: str, **fields: Any) -> None:
        pass

    def error(self, message: str, **fields: Any) -> None:
        pass

    def warning(self, message: str, **fields: Any) -> None:
        pass

    def section(self, title: str) -> None:
        pass
