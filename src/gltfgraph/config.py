"""Loader configuration files (JSON/YAML)."""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List
import json

import yaml

from .extensions import Extensions, flags_from_names
from .options import (
    Category,
    Options,
    category_from_name,
    combine,
    option_from_name,
)

__all__ = ["LoaderConfig", "load_config", "parse_config"]


@dataclass(slots=True)
class LoaderConfig:
    extensions: Extensions = Extensions.NONE
    options: Options = Options.NONE
    categories: Category = Category.ALL
    validate: bool = False


def _name_list(data: dict[str, Any], key: str) -> List[str]:
    value = data.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of names")
    return value


def parse_config(data: dict[str, Any]) -> LoaderConfig:
    unknown = set(data) - {"extensions", "options", "categories", "validate"}
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
    config = LoaderConfig(
        extensions=flags_from_names(_name_list(data, "extensions")),
        options=combine(
            (option_from_name(n) for n in _name_list(data, "options")),
            Options.NONE,
        ),
    )
    categories = _name_list(data, "categories")
    if categories:
        config.categories = combine(
            (category_from_name(n) for n in categories), Category.NONE
        )
    validate = data.get("validate", False)
    if not isinstance(validate, bool):
        raise ValueError("'validate' must be a boolean")
    config.validate = validate
    return config


def load_config(path: str | Path) -> LoaderConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Root of configuration must be an object")
    return parse_config(data)
