from __future__ import annotations

import sys
from typing import Any

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

ICONS = {
    TaskStatus.SUCCESS: "✔",
    TaskStatus.FAILED: "✖",
    TaskStatus.SKIPPED: "→",
}

# Task meta keys echoed on completion lines.
STAT_KEYS = ("entries", "category", "bytes", "error")


def task_stats(rec: TaskRecord) -> str:
    return " ".join(f"{k}={rec.meta[k]}" for k in STAT_KEYS if k in rec.meta)


class PlainReporter(Reporter):
    """Line oriented text on stderr, ANSI colors only on a terminal."""

    def __init__(self, stream=None, use_color: bool | None = None):
        super().__init__()
        self.stream = stream or sys.stderr
        if use_color is None:
            use_color = getattr(self.stream, "isatty", lambda: False)()
        self.use_color = use_color

    def _write(self, line: str) -> None:
        self.stream.write(line + "\n")

    def _label(self, color: str, label: str) -> str:
        return f"\x1b[{color}m{label}\x1b[0m" if self.use_color else label

    def _task_done(self, rec: TaskRecord) -> None:
        stats = task_stats(rec)
        suffix = f" [{stats}]" if stats else ""
        icon = ICONS.get(rec.status, "?")
        self._write(f" {icon} {rec.name} ({rec.duration:.2f}s){suffix}")

    def status(self, message: str, **fields: Any) -> None:
        self._write(f"{self._label('32', 'INFO')}: {message}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._write(f"{self._label('36', f'VERB{level}')}: {message}")

    def error(self, message: str, **fields: Any) -> None:
        self._write(f"{self._label('31', 'ERROR')}: {message}")

    def warning(self, message: str, **fields: Any) -> None:
        self._write(f"{self._label('33', 'WARN')}: {message}")

    def section(self, title: str) -> None:
        self._write(f"\n[{title}]")
