from __future__ import annotations

from typing import Any

from .base import Reporter, TaskRecord


class SilentReporter(Reporter):
    """Drops everything; the library default and ``-r silent``."""

    def _task_done(self, rec: TaskRecord) -> None:
        pass

    def status(self, message: str, **fields: Any) -> None:
        pass

    def error(self, message: str, **fields: Any) -> None:
        pass

    def section(self, title: str) -> None:
        pass
