from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity
from .plain import task_stats

_STATUS_STYLE = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[bold red]✖[/]",
    TaskStatus.SKIPPED: "[dim]→[/]",
}


class RichReporter(Reporter):
    """Console reporter rendering through ``rich``.

    Category parses are short, so tasks render as completion lines rather
    than live progress bars.
    """

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )

    def _task_done(self, rec: TaskRecord) -> None:
        icon = _STATUS_STYLE.get(rec.status, "?")
        stats = task_stats(rec)
        suffix = f" [dim]\\[{escape(stats)}][/]" if stats else ""
        self.console.print(
            f"{icon} {escape(rec.name)} ({rec.duration:.2f}s){suffix}"
        )

    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {escape(message)}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self.console.print(f"[cyan]VERB{level}[/]: {escape(message)}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {escape(message)}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {escape(message)}")

    def section(self, title: str) -> None:
        self.console.rule(escape(title))
