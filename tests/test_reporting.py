"""Reporter backends and logging routed through them."""

from __future__ import annotations

import io
import json
import logging

import pytest
from rich.console import Console

from gltfgraph.logging import configure_logging, get_logger, section, step
from gltfgraph.reporting.jsonl import parse_summary
from gltfgraph.reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    TaskStatus,
    set_reporter,
    set_verbosity,
    task,
)


def test_plain_task_line_includes_entries():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    with task("parse.nodes", "Parse nodes", category="nodes") as stats:
        stats["entries"] = 4
    line = stream.getvalue()
    assert line.startswith(" ✔ Parse nodes (")
    assert line.rstrip().endswith("[entries=4 category=nodes]")


def test_plain_failed_task():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    with pytest.raises(RuntimeError):
        with task("parse.meshes", "Parse meshes"):
            raise RuntimeError("boom")
    line = stream.getvalue()
    assert line.startswith(" ✖ Parse meshes")
    assert line.rstrip().endswith("[error=RuntimeError]")


def test_jsonl_events_and_summary():
    stream = io.StringIO()
    rep = JsonLinesReporter(stream=stream)
    set_reporter(rep)
    with task("parse.buffers", "Parse buffers", category="buffers") as stats:
        stats["entries"] = 1
    rep.status("Asset summary: nodes=2 meshes=1")
    events = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert [e["event"] for e in events] == ["task_start", "task_end", "summary", "status"]
    assert events[1]["status"] == "success"
    assert events[1]["entries"] == 1
    assert events[1]["category"] == "buffers"
    assert events[2]["summary_type"] == "asset"
    assert events[2]["nodes"] == 2


def test_rich_reporter_renders_text():
    buf = io.StringIO()
    rep = RichReporter(console=Console(file=buf, width=120, color_system=None))
    rep.start_task("parse.scenes", "Parse scenes")
    rep.end_task("parse.scenes", TaskStatus.SUCCESS, entries=1)
    rep.warning("odd [value]")
    out = buf.getvalue()
    assert "Parse scenes" in out
    assert "entries=1" in out
    assert "odd [value]" in out


def test_logging_routes_to_reporter():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    configure_logging(0)
    logger = get_logger()
    logger.warning("careful")
    logger.error("broken")
    logger.debug("hidden")
    step("loading")
    with section("Asset"):
        pass
    out = stream.getvalue()
    assert "WARN: careful" in out
    assert "ERROR: broken" in out
    assert "hidden" not in out
    assert "INFO:   -> loading" in out
    assert "[Asset]" in out


def test_verbose_logging():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    set_verbosity(1)
    configure_logging(1)
    get_logger().debug("details")
    assert "VERB1: details" in stream.getvalue()
    # Reconfiguring does not stack handlers.
    configure_logging(1)
    handlers = [h for h in logging.getLogger("gltfgraph").handlers]
    assert len(handlers) == 1


def test_summary_parsing():
    assert parse_summary("Asset summary: nodes=2 generator=x") == (
        "asset",
        {"nodes": 2, "generator": "x"},
    )
    assert parse_summary("Validation summary: result=ok") == (
        "validation",
        {"result": "ok"},
    )
    assert parse_summary("loading Box.gltf") is None


def test_reporter_base_tracks_open_tasks():
    done = []

    class Collecting(SilentReporter):
        def _task_done(self, rec):
            done.append(rec)

    rep = Collecting()
    rep.start_task("parse.skins", "Parse skins", category="skins")
    rep.end_task("parse.unknown", TaskStatus.SUCCESS)
    rep.end_task("parse.skins", TaskStatus.SKIPPED, entries=0)
    assert len(done) == 1
    assert done[0].status is TaskStatus.SKIPPED
    assert done[0].meta == {"category": "skins", "entries": 0}
    assert done[0].duration >= 0.0
