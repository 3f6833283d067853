from __future__ import annotations

import json
import sys
from typing import Any, Dict, Tuple

from .base import Reporter, TaskRecord, get_verbosity

# Status message prefix -> summary_type of the extra "summary" event.
SUMMARY_PREFIXES = {
    "asset summary": "asset",
    "validation summary": "validation",
}


def parse_summary(message: str) -> Tuple[str, Dict[str, Any]] | None:
    """Split ``"<Kind> summary: k=v k=v"`` into its type and typed pairs.

    Integer values are converted, everything else stays a string.
    """
    head, _, tail = message.partition(":")
    stype = SUMMARY_PREFIXES.get(head.strip().lower())
    if stype is None:
        return None
    pairs: Dict[str, Any] = {}
    for token in tail.split():
        key, sep, value = token.partition("=")
        if not sep:
            continue
        pairs[key] = int(value) if value.isdigit() else value
    return stype, pairs


class JsonLinesReporter(Reporter):
    """One JSON object per line: task, status, section and summary events."""

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream or sys.stdout

    def _emit(self, event: str, **payload: Any) -> None:
        payload["event"] = event
        self.stream.write(json.dumps(payload, sort_keys=True, default=str) + "\n")

    def _task_started(self, rec: TaskRecord) -> None:
        self._emit(
            "task_start", id=rec.task_id, name=rec.name, total=rec.total, **rec.meta
        )

    def _task_done(self, rec: TaskRecord) -> None:
        self._emit(
            "task_end",
            id=rec.task_id,
            status=rec.status.name.lower(),
            duration_seconds=round(rec.duration, 6),
            **rec.meta,
        )

    def _message(self, level: str, message: str, **fields: Any) -> None:
        self._emit("status", message=message, level=level, **fields)

    def status(self, message: str, **fields: Any) -> None:
        summary = parse_summary(message)
        if summary is not None:
            stype, pairs = summary
            self._emit("summary", summary_type=stype, raw=message, **pairs)
        self._message("info", message, **fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._message(f"verbose{level}", message, vlevel=level, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._message("error", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._message("warning", message, **fields)

    def section(self, title: str) -> None:
        self._emit("section", title=title)
