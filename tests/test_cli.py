"""Command line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gltfgraph.cli import build_parser, main

from gltf_helper import box_bin, box_document, build_glb, write_document


@pytest.fixture
def box_path(tmp_path: Path) -> Path:
    return write_document(tmp_path, "Box.gltf", box_document(), {"Box0.bin": box_bin()})


def test_inspect_json(box_path: Path, capsys):
    assert main(["-r", "silent", "inspect", str(box_path), "--json"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["counts"]["nodes"] == 2
    assert summary["default_scene"] == 0


def test_inspect_plain(box_path: Path, capsys):
    assert main(["inspect", str(box_path)]) == 0
    err = capsys.readouterr().err
    assert "Parse accessors" in err
    assert "nodes: 2" in err


def test_inspect_category_and_decompose(box_path: Path, capsys):
    code = main(
        ["-r", "silent", "inspect", str(box_path), "--json", "--category", "nodes", "--decompose"]
    )
    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["counts"]["scenes"] == 0
    assert summary["counts"]["nodes"] == 2


def test_validate_ok_with_json_events(box_path: Path, capsys):
    assert main(["-r", "json", "validate", str(box_path)]) == 0
    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    starts = [e["id"] for e in events if e["event"] == "task_start"]
    assert "parse.buffers" in starts
    assert "load.validate" in starts
    assert any(e["event"] == "summary" and e["summary_type"] == "validation" for e in events)


def test_validate_reports_error_code(tmp_path: Path, capsys):
    doc = box_document()
    doc["scene"] = 3
    path = write_document(tmp_path, "bad.gltf", doc, {"Box0.bin": box_bin()})
    assert main(["validate", str(path)]) == 1
    assert "E_INDEX_OUT_OF_RANGE" in capsys.readouterr().err


def test_validate_missing_extension(tmp_path: Path, capsys):
    doc = box_document()
    doc["extensionsRequired"] = ["KHR_texture_transform"]
    path = write_document(tmp_path, "ext.gltf", doc, {"Box0.bin": box_bin()})
    assert main(["validate", str(path)]) == 1
    assert "E_MISSING_EXTENSIONS" in capsys.readouterr().err
    assert main(["-r", "silent", "validate", str(path), "--extension", "KHR_texture_transform"]) == 0


def test_config_file(tmp_path: Path, capsys):
    doc = box_document()
    doc["asset"] = {}
    path = write_document(tmp_path, "noasset.gltf", doc, {"Box0.bin": box_bin()})
    assert main(["-r", "silent", "validate", str(path)]) == 1
    config = tmp_path / "loader.yaml"
    config.write_text("options: [dont-require-valid-asset-member]\n", encoding="utf-8")
    assert main(["-r", "silent", "validate", str(path), "--config", str(config)]) == 0
    assert main(["-r", "silent", "validate", str(path), "--no-asset-check"]) == 0


def test_bad_config_and_glb(tmp_path: Path, capsys):
    glb = tmp_path / "box.glb"
    glb.write_bytes(build_glb(box_document(buffer_uri=None), box_bin()))
    config = tmp_path / "loader.json"
    config.write_text('{"options": ["turbo"]}', encoding="utf-8")
    assert main(["validate", str(glb), "--config", str(config)]) == 1
    assert "Invalid configuration" in capsys.readouterr().err
    assert main(["-r", "silent", "validate", str(glb)]) == 0


def test_subcommand_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
