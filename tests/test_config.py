from __future__ import annotations

from pathlib import Path

import pytest

from gltfgraph import Category, Extensions, Options
from gltfgraph.config import LoaderConfig, load_config


def test_yaml_config(tmp_path: Path):
    p = tmp_path / "loader.yaml"
    p.write_text(
        "extensions:\n"
        "  - KHR_texture_transform\n"
        "  - KHR_lights_punctual\n"
        "options: [decompose-node-matrices, ALLOW_DOUBLE]\n"
        "categories: [scenes]\n"
        "validate: true\n",
        encoding="utf-8",
    )
    config = load_config(p)
    assert config.extensions == (
        Extensions.KHR_TEXTURE_TRANSFORM | Extensions.KHR_LIGHTS_PUNCTUAL
    )
    assert config.options == Options.DECOMPOSE_NODE_MATRICES | Options.ALLOW_DOUBLE
    assert config.categories == Category.SCENES
    assert config.validate is True


def test_json_config_defaults(tmp_path: Path):
    p = tmp_path / "loader.json"
    p.write_text("{}", encoding="utf-8")
    assert load_config(p) == LoaderConfig()


def test_empty_yaml_is_default(tmp_path: Path):
    p = tmp_path / "loader.yml"
    p.write_text("", encoding="utf-8")
    assert load_config(p) == LoaderConfig()


@pytest.mark.parametrize(
    "text",
    [
        '{"extensions": ["EXT_unknown"]}',
        '{"options": ["FAST"]}',
        '{"categories": ["everything"]}',
        '{"validate": "yes"}',
        '{"extensions": "KHR_texture_transform"}',
        '{"colour": true}',
        "[1, 2]",
    ],
)
def test_invalid_config(tmp_path: Path, text: str):
    p = tmp_path / "loader.json"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)


def test_missing_config(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
